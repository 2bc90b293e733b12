"""Ledger store operations for linked bank accounts."""

import logging

from sqlalchemy.orm import Session

from models import BankLink
from services.exceptions import LedgerIntegrityError
from utils.shareable_id import decode_shareable_id

logger = logging.getLogger(__name__)


class BankLinkService:
    """Reads and writes BankLink rows."""

    @staticmethod
    def create_bank_link(
        db: Session,
        *,
        user_id: str,
        bank_id: str,
        account_id: str,
        access_token: str,
        funding_source_url: str,
        shareable_id: str,
    ) -> BankLink:
        """Insert a bank link and commit it.

        Raises:
            sqlalchemy.exc.SQLAlchemyError: If the insert or commit fails,
                including a second link of the same account by the same user.
        """
        bank_link = BankLink(
            user_id=user_id,
            bank_id=bank_id,
            account_id=account_id,
            access_token=access_token,
            funding_source_url=funding_source_url,
            shareable_id=shareable_id,
        )
        db.add(bank_link)
        db.commit()
        db.refresh(bank_link)
        logger.info("Bank link created: %s (user=%s)", bank_link.id, user_id)
        return bank_link

    @staticmethod
    def list_bank_links(db: Session, user_id: str) -> list[BankLink]:
        """List a user's bank links, newest first."""
        return (
            db.query(BankLink)
            .filter(BankLink.user_id == user_id)
            .order_by(BankLink.created_at.desc())
            .all()
        )

    @staticmethod
    def get_bank_link(db: Session, bank_link_id: str) -> BankLink | None:
        """Get a bank link by its internal id."""
        return db.query(BankLink).filter(BankLink.id == bank_link_id).first()

    @staticmethod
    def get_bank_link_by_account_id(db: Session, account_id: str) -> BankLink | None:
        """Get the unique bank link for an external account id.

        Returns:
            The bank link, or None when no link has this account id.

        Raises:
            LedgerIntegrityError: If more than one link has this account id.
        """
        matches = db.query(BankLink).filter(BankLink.account_id == account_id).limit(2).all()
        if not matches:
            return None
        if len(matches) > 1:
            count = db.query(BankLink).filter(BankLink.account_id == account_id).count()
            logger.error(
                "Integrity violation: %d bank links share account id %s", count, account_id
            )
            raise LedgerIntegrityError(
                f"{count} bank links found for one account id", match_count=count
            )
        return matches[0]

    @classmethod
    def get_bank_link_by_shareable_id(cls, db: Session, shareable_id: str) -> BankLink | None:
        """Resolve a shareable id to its bank link.

        Returns None for a shareable id that does not decode.
        """
        try:
            account_id = decode_shareable_id(shareable_id)
        except ValueError:
            logger.warning("Undecodable shareable id %r", shareable_id)
            return None
        return cls.get_bank_link_by_account_id(db, account_id)

    @staticmethod
    def delete_bank_link(db: Session, bank_link: BankLink) -> None:
        db.delete(bank_link)
        db.commit()
        logger.info("Bank link deleted: %s", bank_link.id)
