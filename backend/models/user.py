"""User model - profile of an end-user and their payment-network customer."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class User(Base):
    """Profile record for an authenticated end-user.

    ``identity_id`` points at the identity-store record and is never
    reassigned. The Dwolla customer id/url are filled in at sign-up and
    required before any bank account can be linked.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    identity_id = Column(
        String(36), ForeignKey("identities.id"), unique=True, index=True, nullable=False
    )
    email = Column(String, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    address1 = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String(2), nullable=True)
    postal_code = Column(String, nullable=True)
    date_of_birth = Column(String, nullable=True)  # YYYY-MM-DD, as Dwolla expects
    dwolla_customer_id = Column(String, nullable=True)
    dwolla_customer_url = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    bank_links = relationship("BankLink", back_populates="user")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
