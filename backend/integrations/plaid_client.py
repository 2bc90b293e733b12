"""Plaid API client.

Wraps the plaid-python SDK for the calls the backend needs: Link token
creation, public-token exchange, account metadata, Dwolla processor tokens,
transaction sync and Item removal.

SDK ``ApiException`` failures are translated into the typed errors from
:mod:`integrations.exceptions` at this boundary.
"""

import json
import logging
from datetime import date
from decimal import Decimal, InvalidOperation

import urllib3
from plaid import ApiException, Environment
from plaid.api.plaid_api import PlaidApi
from plaid.api_client import ApiClient
from plaid.configuration import Configuration
from plaid.model.accounts_get_request import AccountsGetRequest
from plaid.model.country_code import CountryCode
from plaid.model.item_public_token_exchange_request import ItemPublicTokenExchangeRequest
from plaid.model.item_remove_request import ItemRemoveRequest
from plaid.model.link_token_create_request import LinkTokenCreateRequest
from plaid.model.link_token_create_request_user import LinkTokenCreateRequestUser
from plaid.model.processor_token_create_request import ProcessorTokenCreateRequest
from plaid.model.products import Products
from plaid.model.transactions_sync_request import TransactionsSyncRequest

from config import Settings
from integrations.exceptions import (
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderDataError,
    ProviderError,
)
from integrations.protocols import BankAccount, BankTransaction, ExchangeResult

logger = logging.getLogger(__name__)

# Map PLAID_ENVIRONMENT setting to SDK host URLs.
# Plaid's Development environment is deprecated; only sandbox and production
# are supported.
_ENVIRONMENT_MAP: dict[str, str] = {
    "sandbox": Environment.Sandbox,
    "production": Environment.Production,
}

_AUTH_ERROR_CODES = frozenset({
    "INVALID_API_KEYS",
    "INVALID_ACCESS_TOKEN",
    "ITEM_LOGIN_REQUIRED",
})


class PlaidClient:
    """Wrapper around the Plaid API."""

    def __init__(self, client_id: str, secret: str, environment: str = "sandbox"):
        self._client_id = client_id
        self._secret = secret
        self._environment = environment

        # Lazily created on first use
        self._api: PlaidApi | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "PlaidClient":
        """Build a client from application settings."""
        return cls(
            client_id=settings.PLAID_CLIENT_ID,
            secret=settings.PLAID_SECRET,
            environment=settings.PLAID_ENVIRONMENT,
        )

    def _get_api(self) -> PlaidApi:
        """Return (and cache) a PlaidApi instance."""
        if self._api is None:
            env_key = self._environment.lower()
            host = _ENVIRONMENT_MAP.get(env_key)
            if host is None:
                logger.warning(
                    "Unknown PLAID_ENVIRONMENT=%r, falling back to sandbox. "
                    "Valid values: sandbox, production",
                    self._environment,
                )
                host = Environment.Sandbox
            logger.info(
                "Plaid API client: environment=%s, host=%s, client_id=<configured>",
                env_key,
                host,
            )
            configuration = Configuration(
                host=host,
                api_key={
                    "clientId": self._client_id,
                    "secret": self._secret,
                },
            )
            api_client = ApiClient(configuration)
            self._api = PlaidApi(api_client)
        return self._api

    @property
    def provider_name(self) -> str:
        return "Plaid"

    def is_configured(self) -> bool:
        """Check if Plaid credentials are configured."""
        return bool(self._client_id) and bool(self._secret)

    # ------------------------------------------------------------------
    # Link flow
    # ------------------------------------------------------------------

    def create_link_token(self, client_user_id: str, client_name: str) -> str:
        """Create a Link token for the browser-based linking flow.

        Args:
            client_user_id: Stable id of the end-user requesting the link.
            client_name: Name shown inside Plaid Link.

        Returns:
            The link_token string to be passed to Plaid Link.
        """
        request = LinkTokenCreateRequest(
            user=LinkTokenCreateRequestUser(client_user_id=client_user_id),
            client_name=client_name,
            products=[Products("auth")],
            country_codes=[CountryCode("US")],
            language="en",
        )
        response = self._call(self._get_api().link_token_create, request)
        return self._require(response, "link_token")

    def exchange_public_token(self, public_token: str) -> ExchangeResult:
        """Exchange a single-use Link public_token for a durable access_token."""
        request = ItemPublicTokenExchangeRequest(public_token=public_token)
        response = self._call(self._get_api().item_public_token_exchange, request)
        return ExchangeResult(
            access_token=self._require(response, "access_token"),
            item_id=self._require(response, "item_id"),
        )

    def create_processor_token(
        self, access_token: str, account_id: str, processor: str = "dwolla"
    ) -> str:
        """Create a processor token letting ``processor`` reference one account."""
        request = ProcessorTokenCreateRequest(
            access_token=access_token,
            account_id=account_id,
            processor=processor,
        )
        response = self._call(self._get_api().processor_token_create, request)
        return self._require(response, "processor_token")

    def remove_item(self, access_token: str) -> None:
        """Revoke an access token by calling Plaid's /item/remove endpoint."""
        self._call(
            self._get_api().item_remove,
            ItemRemoveRequest(access_token=access_token),
        )

    # ------------------------------------------------------------------
    # Accounts & transactions
    # ------------------------------------------------------------------

    def get_accounts(self, access_token: str) -> list[BankAccount]:
        """Fetch account metadata and balances for an Item."""
        request = AccountsGetRequest(access_token=access_token)
        response = self._call(self._get_api().accounts_get, request)

        accounts: list[BankAccount] = []
        for acct in response.get("accounts", []) or []:
            balances = acct.get("balances") or {}
            accounts.append(BankAccount(
                account_id=acct.get("account_id") or "",
                name=acct.get("name") or acct.get("official_name") or "Bank Account",
                official_name=acct.get("official_name"),
                mask=acct.get("mask"),
                type=_enum_value(acct.get("type")),
                subtype=_enum_value(acct.get("subtype")),
                current_balance=self._to_decimal(balances.get("current")),
                available_balance=self._to_decimal(balances.get("available")),
                currency=(balances.get("iso_currency_code") or "USD").upper(),
            ))
        return accounts

    def sync_transactions(
        self, access_token: str, cursor: str | None = None
    ) -> list[BankTransaction]:
        """Fetch transactions through /transactions/sync, following ``has_more``.

        Returns the added and modified transactions, newest first.
        """
        api = self._get_api()
        by_id: dict[str, BankTransaction] = {}
        removed: set[str] = set()

        while True:
            kwargs = {"access_token": access_token}
            if cursor:
                kwargs["cursor"] = cursor
            response = self._call(api.transactions_sync, TransactionsSyncRequest(**kwargs))

            for txn in list(response.get("added", []) or []) + list(response.get("modified", []) or []):
                mapped = self._map_transaction(txn)
                if mapped:
                    by_id[mapped.transaction_id] = mapped
            for txn in response.get("removed", []) or []:
                removed.add(txn.get("transaction_id"))

            cursor = response.get("next_cursor")
            if not response.get("has_more"):
                break

        transactions = [t for t in by_id.values() if t.transaction_id not in removed]
        transactions.sort(key=lambda t: t.date, reverse=True)
        logger.info("Plaid: %d transactions synced", len(transactions))
        return transactions

    def _map_transaction(self, txn) -> BankTransaction | None:
        """Map a Plaid transaction to a BankTransaction."""
        transaction_id = txn.get("transaction_id")
        amount = self._to_decimal(txn.get("amount"))
        txn_date = txn.get("date")
        if not transaction_id or amount is None or txn_date is None:
            return None
        if isinstance(txn_date, str):
            txn_date = date.fromisoformat(txn_date)

        category = None
        pfc = txn.get("personal_finance_category")
        if pfc:
            category = pfc.get("primary")

        return BankTransaction(
            transaction_id=transaction_id,
            account_id=txn.get("account_id") or "",
            name=txn.get("name") or txn.get("merchant_name") or "",
            amount=amount,
            date=txn_date,
            currency=(txn.get("iso_currency_code") or "USD").upper(),
            pending=bool(txn.get("pending")),
            category=category,
            payment_channel=_enum_value(txn.get("payment_channel")),
            merchant_name=txn.get("merchant_name"),
        )

    # ------------------------------------------------------------------
    # Error mapping
    # ------------------------------------------------------------------

    def _call(self, fn, request):
        """Invoke an SDK method, translating SDK and network failures."""
        try:
            return fn(request)
        except ApiException as exc:
            raise self._translate_api_exception(exc) from exc
        except (ConnectionError, TimeoutError, urllib3.exceptions.HTTPError) as exc:
            # The SDK runs on urllib3, whose network errors are not ConnectionError
            raise ProviderConnectionError(
                f"Plaid connection failed: {exc}", provider_name="Plaid"
            ) from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderDataError(
                f"Unexpected Plaid response: {exc}", provider_name="Plaid"
            ) from exc

    @staticmethod
    def _translate_api_exception(exc: ApiException) -> ProviderError:
        """Map a Plaid ApiException to a typed ProviderError."""
        status = exc.status or 0
        message = str(exc)

        # Try to extract error_code from the body
        error_code = ""
        try:
            body = json.loads(exc.body) if exc.body else {}
            error_code = body.get("error_code", "")
            error_message = body.get("error_message", "")
            if error_message:
                message = f"Plaid error ({error_code}): {error_message}"
        except (TypeError, ValueError, AttributeError):
            pass

        if status in (401, 403) or error_code in _AUTH_ERROR_CODES:
            return ProviderAuthError(message, provider_name="Plaid")
        return ProviderAPIError(
            message,
            provider_name="Plaid",
            status_code=status or None,
            error_code=error_code,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require(response, key: str):
        """Return a required response field, or raise ProviderDataError."""
        try:
            value = response[key]
        except (KeyError, TypeError) as exc:
            raise ProviderDataError(
                f"Plaid response is missing {key}", provider_name="Plaid"
            ) from exc
        if not value:
            raise ProviderDataError(f"Plaid returned an empty {key}", provider_name="Plaid")
        return value

    @staticmethod
    def _to_decimal(value) -> Decimal | None:
        """Convert a value to Decimal, returning None on failure."""
        if value is None:
            return None
        try:
            return Decimal(str(value))
        except (InvalidOperation, ValueError):
            return None


def _enum_value(value) -> str | None:
    """Return the plain string behind a Plaid SDK enum model."""
    if value is None:
        return None
    return str(getattr(value, "value", value))
