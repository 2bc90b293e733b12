"""Schemas for linking banks and reading linked banks."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class LinkTokenResponse(BaseModel):
    link_token: str


class ExchangeTokenRequest(BaseModel):
    public_token: str


class ExchangeTokenResponse(BaseModel):
    public_token_exchange: str = "complete"


class BankLinkResponse(BaseModel):
    """A linked bank as seen by the client. The access token is never included."""

    id: str
    user_id: str
    bank_id: str
    account_id: str
    funding_source_url: str
    shareable_id: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
