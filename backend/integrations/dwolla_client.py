"""Dwolla API client.

Talks to Dwolla's HAL+JSON REST API over ``httpx``. Authentication uses the
OAuth client-credentials grant; the application token is cached until shortly
before it expires. Resources created by Dwolla (customers, funding sources,
transfers) are identified by the URL in the ``Location`` response header.
"""

import logging
import time

import httpx

from config import Settings
from integrations.exceptions import (
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderDataError,
    ProviderURLError,
)

logger = logging.getLogger(__name__)

_BASE_URLS: dict[str, str] = {
    "sandbox": "https://api-sandbox.dwolla.com",
    "production": "https://api.dwolla.com",
}

_HAL_JSON = "application/vnd.dwolla.v1.hal+json"

# Refresh the app token this many seconds before Dwolla says it expires
_TOKEN_EXPIRY_MARGIN = 60

TRANSFER_CURRENCY = "USD"


def extract_customer_id(customer_url: str) -> str:
    """Return the customer id, the last path segment of a customer URL."""
    return customer_url.rstrip("/").rsplit("/", 1)[-1]


class DwollaClient:
    """Wrapper around the Dwolla API."""

    def __init__(
        self,
        key: str,
        secret: str,
        environment: str = "sandbox",
        http_client: httpx.Client | None = None,
    ):
        if environment not in _BASE_URLS:
            raise ValueError(
                "Dwolla environment should either be set to `sandbox` or `production`"
            )
        self._key = key
        self._secret = secret
        self._environment = environment
        self._base_url = _BASE_URLS[environment]
        self._client = http_client or httpx.Client(base_url=self._base_url, timeout=30.0)
        self._token: str | None = None
        self._token_expires_at = 0.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "DwollaClient":
        """Build a client from application settings."""
        return cls(
            key=settings.DWOLLA_KEY,
            secret=settings.DWOLLA_SECRET,
            environment=settings.DWOLLA_ENVIRONMENT,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    @property
    def provider_name(self) -> str:
        return "Dwolla"

    def is_configured(self) -> bool:
        """Check if Dwolla credentials are configured."""
        return bool(self._key) and bool(self._secret)

    def verify_credentials(self) -> None:
        """Fetch an application token, raising ProviderAuthError if refused."""
        self._token = None
        self._get_token()

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    def create_customer(self, profile: dict) -> str:
        """Create a customer and return its URL.

        Args:
            profile: Dwolla customer payload (firstName, lastName, email,
                type, address1, city, state, postalCode, dateOfBirth, ssn).
        """
        response = self._request("POST", "/customers", json=profile)
        url = self._location(response)
        logger.info("Dwolla: customer created %s", url)
        return url

    # ------------------------------------------------------------------
    # Funding sources
    # ------------------------------------------------------------------

    def create_on_demand_authorization(self) -> dict:
        """Create an on-demand authorization and return its ``_links``.

        The authorization is single-use and only lives until a funding
        source embeds it.
        """
        response = self._request("POST", "/on-demand-authorizations")
        links = self._json(response).get("_links")
        if not links or "self" not in links:
            raise ProviderDataError(
                "Dwolla on-demand authorization response has no self link",
                provider_name="Dwolla",
            )
        return links

    def create_funding_source(
        self,
        customer_id: str,
        name: str,
        processor_token: str,
        auth_links: dict | None = None,
    ) -> str:
        """Create a bank funding source from a Plaid processor token.

        Returns:
            The funding source URL.
        """
        body: dict = {"name": name, "plaidToken": processor_token}
        if auth_links:
            body["_links"] = {
                "on-demand-authorization": {"href": auth_links["self"]["href"]},
            }
        response = self._request(
            "POST", f"/customers/{customer_id}/funding-sources", json=body
        )
        return self._location(response)

    def add_funding_source(
        self, customer_id: str, processor_token: str, bank_name: str
    ) -> str:
        """Authorize on demand, then create the funding source with it embedded."""
        auth_links = self.create_on_demand_authorization()
        url = self.create_funding_source(
            customer_id=customer_id,
            name=bank_name,
            processor_token=processor_token,
            auth_links=auth_links,
        )
        logger.info("Dwolla: funding source created %s", url)
        return url

    def remove_funding_source(self, funding_source_url: str) -> None:
        """Soft-delete a funding source (Dwolla keeps it, flagged removed)."""
        self._request("POST", funding_source_url, json={"removed": True})

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def create_transfer(
        self, source_url: str, destination_url: str, amount: str
    ) -> str:
        """Create an ACH transfer between two funding sources.

        Returns:
            The transfer URL.
        """
        body = {
            "_links": {
                "source": {"href": source_url},
                "destination": {"href": destination_url},
            },
            "amount": {"currency": TRANSFER_CURRENCY, "value": amount},
        }
        response = self._request("POST", "/transfers", json=body)
        url = self._location(response)
        logger.info("Dwolla: transfer created %s", url)
        return url

    def get_transfer(self, transfer_url: str) -> dict:
        """Fetch a transfer resource (status, amount, created)."""
        return self._json(self._request("GET", transfer_url))

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _get_token(self) -> str:
        """Return a cached application token, fetching a new one if needed."""
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        try:
            response = self._client.post(
                "/token",
                auth=(self._key, self._secret),
                data={"grant_type": "client_credentials"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ProviderAuthError(
                f"Dwolla token request failed (HTTP {exc.response.status_code})",
                provider_name="Dwolla",
            ) from exc
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ProviderConnectionError(
                f"Dwolla connection failed: {exc}", provider_name="Dwolla"
            ) from exc

        data = self._json(response)
        token = data.get("access_token")
        if not token:
            raise ProviderAuthError(
                "Dwolla token response has no access_token", provider_name="Dwolla"
            )
        self._token = token
        self._token_expires_at = (
            time.monotonic() + int(data.get("expires_in", 3600)) - _TOKEN_EXPIRY_MARGIN
        )
        return token

    def _request(self, method: str, path_or_url: str, json: dict | None = None) -> httpx.Response:
        """Send an authenticated request and translate failures."""
        self._check_url(path_or_url)
        headers = {
            "Authorization": f"Bearer {self._get_token()}",
            "Accept": _HAL_JSON,
        }
        if json is not None:
            headers["Content-Type"] = _HAL_JSON

        try:
            response = self._client.request(method, path_or_url, json=json, headers=headers)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            code, message = self._error_details(exc.response)
            if status == 401:
                # Token may have been revoked server-side
                self._token = None
            if status in (401, 403):
                raise ProviderAuthError(
                    f"Dwolla authentication failed (HTTP {status}): {message}",
                    provider_name="Dwolla",
                ) from exc
            raise ProviderAPIError(
                f"Dwolla API error (HTTP {status}, {code}): {message}",
                provider_name="Dwolla",
                status_code=status,
                error_code=code,
            ) from exc
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ProviderConnectionError(
                f"Dwolla connection failed: {exc}", provider_name="Dwolla"
            ) from exc

    def _check_url(self, path_or_url: str) -> None:
        """Reject absolute URLs that do not point at this client's Dwolla host.

        Funding source and transfer URLs are full URLs, and httpx sends an
        absolute URL as-is, bearer token included, whatever its host.
        """
        try:
            url = httpx.URL(path_or_url)
        except httpx.InvalidURL as exc:
            raise ProviderURLError(
                f"Invalid Dwolla URL {path_or_url!r}", provider_name="Dwolla"
            ) from exc
        if not url.is_absolute_url and not url.host:
            return
        base = httpx.URL(self._base_url)
        if (url.scheme, url.host, url.port) != (base.scheme, base.host, base.port):
            raise ProviderURLError(
                f"Refusing to call non-Dwolla URL {path_or_url!r}", provider_name="Dwolla"
            )

    @staticmethod
    def _error_details(response: httpx.Response) -> tuple[str, str]:
        """Pull Dwolla's ``code`` and ``message`` out of an error body."""
        try:
            body = response.json()
        except ValueError:
            return "", response.text[:200]
        return body.get("code", ""), body.get("message", "")

    @staticmethod
    def _location(response: httpx.Response) -> str:
        location = response.headers.get("location")
        if not location:
            raise ProviderDataError(
                "Dwolla response has no Location header", provider_name="Dwolla"
            )
        return location

    @staticmethod
    def _json(response: httpx.Response) -> dict:
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderDataError(
                "Dwolla returned a non-JSON body", provider_name="Dwolla"
            ) from exc
