"""External API integrations.

This package contains:
- Client protocols: interfaces of the bank-data aggregator and payment network
- Plaid client: account linking, balances and transactions
- Dwolla client: customers, funding sources and ACH transfers
"""

from integrations.dwolla_client import DwollaClient
from integrations.plaid_client import PlaidClient
from integrations.protocols import (
    AggregatorClient,
    BankAccount,
    BankTransaction,
    ExchangeResult,
    PaymentNetworkClient,
)

__all__ = [
    "AggregatorClient",
    "BankAccount",
    "BankTransaction",
    "DwollaClient",
    "ExchangeResult",
    "PaymentNetworkClient",
    "PlaidClient",
]
