"""API route handlers."""
from . import accounts, auth, banks, plaid, transfers

__all__ = ["accounts", "auth", "banks", "plaid", "transfers"]
