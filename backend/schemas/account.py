"""Schemas for balances and transactions of linked accounts."""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class AccountSummary(BaseModel):
    """Balances of one linked bank account."""

    id: str  # bank link id
    account_id: str
    shareable_id: str
    name: str
    official_name: Optional[str] = None
    mask: Optional[str] = None
    type: Optional[str] = None
    subtype: Optional[str] = None
    current_balance: Optional[Decimal] = None
    available_balance: Optional[Decimal] = None
    currency: str = "USD"


class AccountsOverview(BaseModel):
    """All linked accounts of a user with totals."""

    accounts: list[AccountSummary]
    total_banks: int
    total_current_balance: Decimal


class TransactionResponse(BaseModel):
    transaction_id: str
    account_id: str
    name: str
    amount: Decimal
    date: date
    currency: str = "USD"
    pending: bool = False
    category: Optional[str] = None
    payment_channel: Optional[str] = None
    merchant_name: Optional[str] = None


class AccountDetail(BaseModel):
    """One linked account with its transactions, newest first."""

    account: AccountSummary
    transactions: list[TransactionResponse]
