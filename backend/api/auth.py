"""Sign-up, sign-in and session endpoints.

The session token travels in an httpOnly cookie; the body only ever
carries the user profile.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from api.helpers import (
    get_current_user,
    get_dwolla_client,
    get_identity_service,
    get_session_token,
)
from config import settings
from database import get_db
from integrations.protocols import PaymentNetworkClient
from models import User
from schemas import SignInRequest, SignUpRequest, UserResponse
from services.exceptions import AuthenticationError, SignUpError
from services.identity_service import IdentityService
from services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _get_user_service(
    identity: IdentityService = Depends(get_identity_service),
    payments: PaymentNetworkClient = Depends(get_dwolla_client),
) -> UserService:
    return UserService(identity, payments)


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_EXPIRE_HOURS * 3600,
        httponly=True,
        samesite="strict",
        secure=True,
        path="/",
    )


@router.post("/sign-up", response_model=UserResponse, status_code=201)
def sign_up(
    body: SignUpRequest,
    response: Response,
    db: Session = Depends(get_db),
    service: UserService = Depends(_get_user_service),
):
    """Register a user, create their Dwolla customer and sign them in."""
    try:
        user, token = service.sign_up(db, body)
    except SignUpError as e:
        logger.warning("Sign-up failed: %s", e)
        raise HTTPException(status_code=400, detail="Sign up failed")
    _set_session_cookie(response, token)
    return user


@router.post("/sign-in", response_model=UserResponse)
def sign_in(
    body: SignInRequest,
    response: Response,
    db: Session = Depends(get_db),
    service: UserService = Depends(_get_user_service),
):
    try:
        user, token = service.sign_in(db, body.email, body.password)
    except AuthenticationError:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    _set_session_cookie(response, token)
    return user


@router.post("/logout", status_code=204)
def logout(
    response: Response,
    token: str | None = Depends(get_session_token),
    db: Session = Depends(get_db),
    identity: IdentityService = Depends(get_identity_service),
):
    """End the current session. Succeeds even without one."""
    identity.end_session(db, token)
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    response.status_code = 204
    return response


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return user
