"""User registration, sign-in and profile lookup."""

import logging

from sqlalchemy.orm import Session

from integrations.dwolla_client import extract_customer_id
from integrations.exceptions import ProviderError
from integrations.protocols import PaymentNetworkClient
from models import User
from schemas.auth import SignUpRequest
from services.exceptions import AuthenticationError, SignUpError
from services.identity_service import IdentityService

logger = logging.getLogger(__name__)


class UserService:
    """Ties identities, user profiles and Dwolla customers together."""

    def __init__(self, identity_service: IdentityService, payments: PaymentNetworkClient):
        self._identity = identity_service
        self._payments = payments

    def sign_up(self, db: Session, request: SignUpRequest) -> tuple[User, str]:
        """Register a user and open a session for them.

        Creates the identity, then the Dwolla customer, then the profile row,
        and commits all local rows together once Dwolla has answered.

        Returns:
            ``(user, session_token)``.

        Raises:
            SignUpError: If the email is taken or Dwolla rejects the customer.
        """
        identity = self._identity.create_identity(
            db, request.email, request.password, name=f"{request.first_name} {request.last_name}"
        )

        try:
            customer_url = self._payments.create_customer(request.dwolla_customer_payload())
        except ProviderError as exc:
            db.rollback()
            logger.error("Dwolla customer creation failed for %s: %s", identity.email, exc)
            raise SignUpError("Error creating Dwolla customer") from exc

        user = User(
            identity_id=identity.id,
            email=identity.email,
            first_name=request.first_name,
            last_name=request.last_name,
            address1=request.address1,
            city=request.city,
            state=request.state,
            postal_code=request.postal_code,
            date_of_birth=request.date_of_birth.isoformat(),
            dwolla_customer_id=extract_customer_id(customer_url),
            dwolla_customer_url=customer_url,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("User %s signed up (identity %s)", user.id, identity.id)

        token = self._identity.create_session(db, identity.id)
        return user, token

    def sign_in(self, db: Session, email: str, password: str) -> tuple[User, str]:
        """Authenticate and return ``(user, session_token)``.

        Raises:
            AuthenticationError: On bad credentials or a missing profile.
        """
        token = self._identity.authenticate(db, email, password)
        identity_id = self._identity.current_session_identity(db, token)
        user = self.get_user_info(db, identity_id)
        if user is None:
            self._identity.end_session(db, token)
            logger.warning("Identity %s has no user profile", identity_id)
            raise AuthenticationError("User data not found during sign in")
        logger.info("User %s signed in", user.id)
        return user, token

    @staticmethod
    def get_user_info(db: Session, identity_id: str | None) -> User | None:
        """Return the profile owned by an identity."""
        if not identity_id:
            return None
        return db.query(User).filter(User.identity_id == identity_id).first()

    def get_logged_in_user(self, db: Session, token: str | None) -> User | None:
        """Resolve a session token to a user profile, or None."""
        identity_id = self._identity.current_session_identity(db, token)
        if identity_id is None:
            return None
        return self.get_user_info(db, identity_id)

    def logout(self, db: Session, token: str | None) -> bool:
        return self._identity.end_session(db, token)
