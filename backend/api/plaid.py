"""Plaid Link API endpoints.

Provides the server-side half of the Plaid Link flow: creating link tokens
and exchanging the public token, which links the account end to end
(Plaid item, Dwolla funding source, stored bank link).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api.helpers import get_account_view_cache, get_current_user, get_dwolla_client, get_plaid_client
from database import get_db
from integrations.exceptions import ProviderAuthError, ProviderError
from integrations.protocols import AggregatorClient, PaymentNetworkClient
from models import User
from schemas import ExchangeTokenRequest, ExchangeTokenResponse, LinkTokenResponse
from services.account_link_service import AccountLinkService
from services.account_overview_service import AccountViewCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/plaid", tags=["plaid"])

CLIENT_NAME = "linkbank"


def _get_link_service(
    aggregator: AggregatorClient = Depends(get_plaid_client),
    payments: PaymentNetworkClient = Depends(get_dwolla_client),
    view_cache: AccountViewCache = Depends(get_account_view_cache),
) -> AccountLinkService:
    return AccountLinkService(aggregator, payments, view_cache)


@router.post("/link-token", response_model=LinkTokenResponse)
def create_link_token(
    user: User = Depends(get_current_user),
    client: AggregatorClient = Depends(get_plaid_client),
):
    """Create a Plaid Link token for the frontend."""
    if not client.is_configured():
        raise HTTPException(status_code=400, detail="Plaid is not configured")

    try:
        link_token = client.create_link_token(client_user_id=user.id, client_name=CLIENT_NAME)
    except ProviderAuthError as e:
        # Most often sandbox keys used against production or the reverse
        logger.error(
            "Plaid rejected the credentials; check that PLAID_ENVIRONMENT matches the keys: %s", e
        )
        raise HTTPException(status_code=502, detail="Failed to create link token")
    except ProviderError as e:
        logger.error("Failed to create Plaid link token: %s", e)
        raise HTTPException(status_code=502, detail="Failed to create link token")
    return LinkTokenResponse(link_token=link_token)


@router.post("/exchange-token", response_model=ExchangeTokenResponse)
def exchange_token(
    body: ExchangeTokenRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    service: AccountLinkService = Depends(_get_link_service),
):
    """Exchange a Plaid Link public_token and link the account for payments."""
    result = service.link_account(db, body.public_token, user)
    if not result.ok:
        # Stage and cause are logged by the service
        raise HTTPException(status_code=502, detail="Failed to link bank account")
    return ExchangeTokenResponse()
