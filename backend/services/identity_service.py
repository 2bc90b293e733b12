"""Identity store: login credentials and server-side sessions.

Passwords are hashed with bcrypt. Sessions live in the ``auth_sessions``
table and are referenced by an opaque random token kept in a cookie.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import AuthSession, Identity
from services.exceptions import AuthenticationError, SignUpError

logger = logging.getLogger(__name__)

# 256 bits of entropy
SESSION_TOKEN_BYTES = 32

# bcrypt only looks at the first 72 bytes of a password
_BCRYPT_MAX_BYTES = 72


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    """SQLite drops tzinfo; stored timestamps are UTC."""
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class IdentityService:
    """Creates identities, checks passwords and manages sessions."""

    def __init__(self, hash_rounds: int = 12, session_hours: int = 24):
        self._hash_rounds = hash_rounds
        self._session_hours = session_hours

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._hash_rounds)
        return bcrypt.hashpw(password.encode("utf-8")[:_BCRYPT_MAX_BYTES], salt).decode("utf-8")

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(
                password.encode("utf-8")[:_BCRYPT_MAX_BYTES],
                password_hash.encode("utf-8"),
            )
        except ValueError:
            logger.warning("Stored password hash is malformed")
            return False

    # ------------------------------------------------------------------
    # Identities
    # ------------------------------------------------------------------

    def create_identity(
        self, db: Session, email: str, password: str, name: str | None = None
    ) -> Identity:
        """Register a new identity.

        Raises:
            SignUpError: If the email is already registered.
        """
        identity = Identity(
            email=email.strip().lower(),
            password_hash=self.hash_password(password),
            name=name,
        )
        db.add(identity)
        try:
            db.flush()
        except IntegrityError as exc:
            db.rollback()
            raise SignUpError(f"Email already registered: {identity.email}") from exc
        logger.info("Identity created: %s", identity.id)
        return identity

    def authenticate(self, db: Session, email: str, password: str) -> str:
        """Check credentials and open a session.

        Returns:
            The session token.

        Raises:
            AuthenticationError: If the email is unknown or the password wrong.
        """
        identity = (
            db.query(Identity)
            .filter(Identity.email == email.strip().lower())
            .first()
        )
        if identity is None or not self.verify_password(password, identity.password_hash):
            raise AuthenticationError("Invalid email or password")
        return self.create_session(db, identity.id)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(self, db: Session, identity_id: str) -> str:
        now = _utcnow()
        token = secrets.token_urlsafe(SESSION_TOKEN_BYTES)
        db.add(AuthSession(
            token=token,
            identity_id=identity_id,
            created_at=now,
            expires_at=now + timedelta(hours=self._session_hours),
        ))
        db.commit()
        logger.info("Session created for identity %s", identity_id)
        return token

    def current_session_identity(self, db: Session, token: str | None) -> str | None:
        """Return the identity id behind a session token, or None.

        Expired sessions are deleted on sight.
        """
        if not token:
            return None
        session = db.query(AuthSession).filter(AuthSession.token == token).first()
        if session is None:
            return None
        if _as_utc(session.expires_at) <= _utcnow():
            db.delete(session)
            db.commit()
            logger.info("Session expired for identity %s", session.identity_id)
            return None
        return session.identity_id

    def end_session(self, db: Session, token: str | None) -> bool:
        """Delete a session. Returns False if there was nothing to delete."""
        if not token:
            return False
        session = db.query(AuthSession).filter(AuthSession.token == token).first()
        if session is None:
            return False
        db.delete(session)
        db.commit()
        logger.info("Session ended for identity %s", session.identity_id)
        return True
