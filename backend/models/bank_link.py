"""BankLink model - one linked external bank account."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class BankLink(Base):
    """A bank account linked through Plaid and registered with Dwolla.

    ``bank_id`` is the Plaid item id. ``access_token`` is written once at
    link time and must never leave the server. ``shareable_id`` is a
    reversible encoding of ``account_id`` safe to put in URLs.
    """

    __tablename__ = "bank_links"
    __table_args__ = (
        UniqueConstraint("user_id", "account_id", name="uix_bank_link_user_account"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    bank_id = Column(String, nullable=False)
    account_id = Column(String, nullable=False, index=True)
    access_token = Column(String, nullable=False)
    funding_source_url = Column(String, nullable=False)
    shareable_id = Column(String, nullable=False, index=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    user = relationship("User", back_populates="bank_links")
