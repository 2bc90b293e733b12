"""Account balance and transaction endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api.helpers import get_account_view_cache, get_current_user, get_owned_bank_link, get_plaid_client
from database import get_db
from integrations.exceptions import ProviderError
from integrations.protocols import AggregatorClient
from models import User
from schemas import AccountDetail, AccountsOverview
from services.account_overview_service import AccountOverviewService, AccountViewCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


def _get_overview_service(
    aggregator: AggregatorClient = Depends(get_plaid_client),
    view_cache: AccountViewCache = Depends(get_account_view_cache),
) -> AccountOverviewService:
    return AccountOverviewService(aggregator, view_cache)


@router.get("", response_model=AccountsOverview)
def list_accounts(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    service: AccountOverviewService = Depends(_get_overview_service),
):
    """List balances of all linked accounts with totals."""
    return service.get_accounts(db, user)


@router.get("/{bank_link_id}", response_model=AccountDetail)
def get_account(
    bank_link_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    service: AccountOverviewService = Depends(_get_overview_service),
):
    """Get one linked account with its transactions."""
    bank_link = get_owned_bank_link(db, user, bank_link_id)
    try:
        return service.get_account(bank_link)
    except ProviderError as e:
        logger.error("Failed to load account %s: %s", bank_link_id, e)
        raise HTTPException(status_code=502, detail="Failed to load account")
