"""Shared API dependencies and helpers for route handlers.

Clients and services are built once per process from settings. Tests swap
them through ``app.dependency_overrides``.
"""

import logging
from functools import lru_cache

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from integrations.dwolla_client import DwollaClient
from integrations.plaid_client import PlaidClient
from models import BankLink, User
from services.account_overview_service import AccountViewCache
from services.bank_link_service import BankLinkService
from services.identity_service import IdentityService

logger = logging.getLogger(__name__)


@lru_cache
def get_plaid_client() -> PlaidClient:
    """Dependency for injecting the Plaid client (overridable in tests)."""
    return PlaidClient.from_settings(settings)


@lru_cache
def get_dwolla_client() -> DwollaClient:
    """Dependency for injecting the Dwolla client (overridable in tests)."""
    return DwollaClient.from_settings(settings)


@lru_cache
def get_account_view_cache() -> AccountViewCache:
    return AccountViewCache(ttl=settings.ACCOUNT_VIEW_CACHE_TTL)


@lru_cache
def get_identity_service() -> IdentityService:
    return IdentityService(
        hash_rounds=settings.PASSWORD_HASH_ROUNDS,
        session_hours=settings.SESSION_EXPIRE_HOURS,
    )


def get_session_token(request: Request) -> str | None:
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_current_user(
    token: str | None = Depends(get_session_token),
    db: Session = Depends(get_db),
    identity: IdentityService = Depends(get_identity_service),
) -> User:
    """Resolve the session cookie to the signed-in user or raise 401."""
    identity_id = identity.current_session_identity(db, token)
    if identity_id is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    user = db.query(User).filter(User.identity_id == identity_id).first()
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def get_owned_bank_link(db: Session, user: User, bank_link_id: str) -> BankLink:
    """Fetch one of the user's bank links or raise 404.

    Another user's link is reported as missing.
    """
    bank_link = BankLinkService.get_bank_link(db, bank_link_id)
    if bank_link is None or bank_link.user_id != user.id:
        raise HTTPException(status_code=404, detail="Bank not found")
    return bank_link
