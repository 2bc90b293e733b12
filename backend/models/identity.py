"""Identity model - login credentials held by the identity store."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class Identity(Base):
    """A login identity (email + bcrypt password hash).

    Kept apart from the ``users`` profile table so the profile can refer to
    an identity by an id that never changes once assigned.
    """

    __tablename__ = "identities"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String, unique=True, index=True, nullable=False)  # stored lower-cased
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    sessions = relationship(
        "AuthSession", back_populates="identity", cascade="all, delete-orphan"
    )
