"""SQLAlchemy ORM models."""

from .auth_session import AuthSession
from .bank_link import BankLink
from .identity import Identity
from .link_attempt import LinkAttempt
from .user import User
from .utils import generate_uuid

__all__ = ["AuthSession", "BankLink", "Identity", "LinkAttempt", "User", "generate_uuid"]
