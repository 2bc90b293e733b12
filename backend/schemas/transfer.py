"""Schemas for ACH transfers."""

from typing import Optional

from pydantic import BaseModel, Field


class TransferRequest(BaseModel):
    """Move money from one of the user's banks to a shared recipient bank."""

    source_bank_id: str
    recipient_shareable_id: str
    amount: str = Field(description="Dollar amount, e.g. '25.00'")


class TransferResponse(BaseModel):
    transfer_url: str


class TransferStatusResponse(BaseModel):
    transfer_url: str
    status: str
    amount: Optional[str] = None
    currency: Optional[str] = None
    created: Optional[str] = None
