"""LinkAttempt model - audit trail of account-linking runs."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String

from database import Base
from models.utils import generate_uuid


class LinkAttempt(Base):
    """The outcome of one account-linking run.

    A run that fails after the funding source was created keeps
    ``funding_source_url`` here, since nothing retracts it at Dwolla.
    """

    __tablename__ = "link_attempts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String, nullable=False)  # "success" | "failed"
    last_stage = Column(String, nullable=True)  # last stage that completed
    failed_stage = Column(String, nullable=True)
    error_type = Column(String, nullable=True)
    funding_source_url = Column(String, nullable=True)
    bank_link_id = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
