"""Interfaces of the external services the backend talks to.

The bank-data aggregator (Plaid) and the payment network (Dwolla) are
described as protocols so services depend on behaviour, not on a concrete
SDK, and tests can hand in lightweight fakes.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Protocol


@dataclass
class ExchangeResult:
    """Outcome of exchanging a Link public token."""

    access_token: str
    item_id: str


@dataclass
class BankAccount:
    """Normalized account metadata returned by the aggregator."""

    account_id: str
    name: str
    official_name: str | None = None
    mask: str | None = None
    type: str | None = None
    subtype: str | None = None
    current_balance: Decimal | None = None
    available_balance: Decimal | None = None
    currency: str = "USD"


@dataclass
class BankTransaction:
    """Normalized transaction returned by the aggregator.

    ``amount`` follows Plaid's sign convention: positive means money left
    the account.
    """

    transaction_id: str
    account_id: str
    name: str
    amount: Decimal
    date: date
    currency: str = "USD"
    pending: bool = False
    category: str | None = None
    payment_channel: str | None = None
    merchant_name: str | None = None


class AggregatorClient(Protocol):
    """Bank-data aggregator operations used by the backend."""

    def is_configured(self) -> bool: ...

    def create_link_token(self, client_user_id: str, client_name: str) -> str: ...

    def exchange_public_token(self, public_token: str) -> ExchangeResult: ...

    def get_accounts(self, access_token: str) -> list[BankAccount]: ...

    def create_processor_token(
        self, access_token: str, account_id: str, processor: str = "dwolla"
    ) -> str: ...

    def sync_transactions(
        self, access_token: str, cursor: str | None = None
    ) -> list[BankTransaction]: ...

    def remove_item(self, access_token: str) -> None: ...


class PaymentNetworkClient(Protocol):
    """ACH payment network operations used by the backend."""

    def is_configured(self) -> bool: ...

    def create_customer(self, profile: dict) -> str: ...

    def create_on_demand_authorization(self) -> dict: ...

    def create_funding_source(
        self,
        customer_id: str,
        name: str,
        processor_token: str,
        auth_links: dict | None = None,
    ) -> str: ...

    def add_funding_source(
        self, customer_id: str, processor_token: str, bank_name: str
    ) -> str: ...

    def remove_funding_source(self, funding_source_url: str) -> None: ...

    def create_transfer(
        self, source_url: str, destination_url: str, amount: str
    ) -> str: ...

    def get_transfer(self, transfer_url: str) -> dict: ...
