"""Pydantic schemas for API request/response validation."""

from schemas.account import AccountDetail, AccountsOverview, AccountSummary, TransactionResponse
from schemas.auth import SignInRequest, SignUpRequest, UserResponse
from schemas.bank import (
    BankLinkResponse,
    ExchangeTokenRequest,
    ExchangeTokenResponse,
    LinkTokenResponse,
)
from schemas.transfer import TransferRequest, TransferResponse, TransferStatusResponse

__all__ = [
    "AccountDetail",
    "AccountSummary",
    "AccountsOverview",
    "BankLinkResponse",
    "ExchangeTokenRequest",
    "ExchangeTokenResponse",
    "LinkTokenResponse",
    "SignInRequest",
    "SignUpRequest",
    "TransactionResponse",
    "TransferRequest",
    "TransferResponse",
    "TransferStatusResponse",
    "UserResponse",
]
