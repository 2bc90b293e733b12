"""Typed exception hierarchy for errors raised by external service clients.

The Plaid and Dwolla clients translate SDK and HTTP failures into these
types so services can tell credential problems from transient network
trouble and from rejected requests.
"""


class ProviderError(Exception):
    """Base exception for all provider-related errors.

    Carries the provider name so callers can identify which service failed.
    """

    def __init__(self, message: str, provider_name: str = ""):
        self.provider_name = provider_name
        super().__init__(message)


class ProviderAuthError(ProviderError):
    """Credentials missing, expired, or invalid (HTTP 401/403)."""

    pass


class ProviderConnectionError(ProviderError):
    """Network failure: timeout, DNS resolution or refused connection."""

    pass


class ProviderAPIError(ProviderError):
    """A 4xx/5xx response from the provider API.

    ``error_code`` holds the provider's machine-readable code when the
    response body carried one (Plaid ``error_code``, Dwolla ``code``).
    """

    def __init__(
        self,
        message: str,
        provider_name: str = "",
        status_code: int | None = None,
        error_code: str = "",
    ):
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message, provider_name)


class ProviderDataError(ProviderError):
    """Malformed or incomplete response from the provider."""

    pass


class ProviderURLError(ProviderDataError):
    """A resource URL points outside the provider's API host."""

    pass
