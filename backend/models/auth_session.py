"""AuthSession model - server-side login sessions."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class AuthSession(Base):
    """An authenticated session, referenced by an opaque cookie token."""

    __tablename__ = "auth_sessions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    token = Column(String, unique=True, index=True, nullable=False)
    identity_id = Column(String(36), ForeignKey("identities.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    expires_at = Column(DateTime, nullable=False)

    # Relationships
    identity = relationship("Identity", back_populates="sessions")
