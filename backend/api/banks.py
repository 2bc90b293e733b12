"""Linked bank endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api.helpers import (
    get_account_view_cache,
    get_current_user,
    get_dwolla_client,
    get_owned_bank_link,
    get_plaid_client,
)
from database import get_db
from integrations.exceptions import ProviderError
from integrations.protocols import AggregatorClient, PaymentNetworkClient
from models import BankLink, User
from schemas import BankLinkResponse
from services.account_overview_service import AccountViewCache
from services.bank_link_service import BankLinkService
from services.exceptions import LedgerIntegrityError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/banks", tags=["banks"])


@router.get("", response_model=list[BankLinkResponse])
def list_banks(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """List the user's linked banks, newest first."""
    return BankLinkService.list_bank_links(db, user.id)


@router.get("/by-account/{account_id}", response_model=BankLinkResponse)
def get_bank_by_account(
    account_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        bank_link = BankLinkService.get_bank_link_by_account_id(db, account_id)
    except LedgerIntegrityError:
        raise HTTPException(status_code=409, detail="Bank lookup is ambiguous")
    if bank_link is None or bank_link.user_id != user.id:
        raise HTTPException(status_code=404, detail="Bank not found")
    return bank_link


@router.get("/{bank_link_id}", response_model=BankLinkResponse)
def get_bank(
    bank_link_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return get_owned_bank_link(db, user, bank_link_id)


@router.delete("/{bank_link_id}", status_code=204)
def unlink_bank(
    bank_link_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    aggregator: AggregatorClient = Depends(get_plaid_client),
    payments: PaymentNetworkClient = Depends(get_dwolla_client),
    view_cache: AccountViewCache = Depends(get_account_view_cache),
):
    """Unlink a bank.

    The Dwolla funding source and, when no other link shares it, the Plaid
    item are removed first. Remote failures are logged and the local link
    is deleted regardless.
    """
    bank_link = get_owned_bank_link(db, user, bank_link_id)

    try:
        payments.remove_funding_source(bank_link.funding_source_url)
    except ProviderError as e:
        logger.warning(
            "Failed to remove funding source %s: %s", bank_link.funding_source_url, e
        )

    shared = (
        db.query(BankLink)
        .filter(BankLink.access_token == bank_link.access_token, BankLink.id != bank_link.id)
        .count()
    )
    if not shared:
        try:
            aggregator.remove_item(bank_link.access_token)
        except ProviderError as e:
            logger.warning("Failed to remove Plaid item %s: %s", bank_link.bank_id, e)

    BankLinkService.delete_bank_link(db, bank_link)
    view_cache.invalidate(user.id)
