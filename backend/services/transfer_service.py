"""ACH transfers between linked banks.

Dwolla is the system of record for transfers; nothing is stored locally.
"""

import logging
from decimal import Decimal, InvalidOperation

from sqlalchemy.orm import Session

from integrations.dwolla_client import TRANSFER_CURRENCY
from integrations.exceptions import ProviderError, ProviderURLError
from integrations.protocols import PaymentNetworkClient
from models import User
from services.bank_link_service import BankLinkService
from services.exceptions import (
    BankLinkNotFoundError,
    InvalidAmountError,
    TransferError,
    TransferNotFoundError,
)

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


def normalize_amount(amount: str) -> str:
    """Validate a dollar amount and return it with two decimals.

    Raises:
        InvalidAmountError: If the amount is not a positive number with at
            most two fraction digits.
    """
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation as exc:
        raise InvalidAmountError(f"Invalid amount: {amount!r}") from exc
    if not value.is_finite() or value <= 0:
        raise InvalidAmountError(f"Amount must be positive: {amount!r}")
    if value != value.quantize(_CENT):
        raise InvalidAmountError(f"Amount has more than two decimals: {amount!r}")
    return str(value.quantize(_CENT))


class TransferService:
    def __init__(self, payments: PaymentNetworkClient):
        self._payments = payments

    def create_transfer(self, source_url: str, destination_url: str, amount: str) -> str:
        """Create a USD transfer between two funding sources.

        Returns:
            The transfer URL.

        Raises:
            InvalidAmountError: If the amount is not valid.
            TransferError: If Dwolla refuses or cannot be reached.
        """
        value = normalize_amount(amount)
        try:
            url = self._payments.create_transfer(source_url, destination_url, value)
        except ProviderError as exc:
            logger.error("Transfer of %s %s failed: %s", value, TRANSFER_CURRENCY, exc)
            raise TransferError("Transfer could not be created") from exc
        logger.info("Transfer created: %s (%s %s)", url, value, TRANSFER_CURRENCY)
        return url

    def transfer_between_banks(
        self,
        db: Session,
        user: User,
        source_bank_id: str,
        recipient_shareable_id: str,
        amount: str,
    ) -> str:
        """Send money from one of ``user``'s banks to a shared recipient bank.

        Raises:
            BankLinkNotFoundError: If the source bank is not the user's or the
                recipient shareable id matches no bank link.
            LedgerIntegrityError: If the recipient resolves to several links.
        """
        source = BankLinkService.get_bank_link(db, source_bank_id)
        if source is None or source.user_id != user.id:
            raise BankLinkNotFoundError(f"Bank {source_bank_id} not found")

        recipient = BankLinkService.get_bank_link_by_shareable_id(db, recipient_shareable_id)
        if recipient is None:
            raise BankLinkNotFoundError("Recipient bank not found")

        return self.create_transfer(
            source.funding_source_url, recipient.funding_source_url, amount
        )

    def get_transfer_status(self, db: Session, user: User, transfer_url: str) -> dict:
        """Read the status of one of ``user``'s transfers from Dwolla.

        A transfer belongs to the user when its source or destination is the
        funding source of one of their bank links.

        Returns:
            Dict with ``transfer_url``, ``status``, ``amount``, ``currency``
            and ``created``.

        Raises:
            TransferNotFoundError: If the URL is not a Dwolla URL or the
                transfer touches none of the user's banks.
            TransferError: If Dwolla cannot be read.
        """
        try:
            data = self._payments.get_transfer(transfer_url)
        except ProviderURLError as exc:
            logger.warning("User %s asked for a non-Dwolla transfer URL", user.id)
            raise TransferNotFoundError("Transfer not found") from exc
        except ProviderError as exc:
            logger.error("Could not read transfer %s: %s", transfer_url, exc)
            raise TransferError("Transfer status unavailable") from exc

        links = data.get("_links") or {}
        endpoints = {
            (links.get(name) or {}).get("href") for name in ("source", "destination")
        }
        owned = {link.funding_source_url for link in BankLinkService.list_bank_links(db, user.id)}
        if not endpoints & owned:
            logger.warning("User %s asked for transfer %s of another user", user.id, transfer_url)
            raise TransferNotFoundError("Transfer not found")

        amount = data.get("amount") or {}
        return {
            "transfer_url": transfer_url,
            "status": data.get("status", "unknown"),
            "amount": amount.get("value"),
            "currency": amount.get("currency"),
            "created": data.get("created"),
        }
