"""Account-link workflow.

Turns a Plaid Link public token into a stored, transfer-ready bank link.
The run is a fixed sequence of stages, each depending on the one before:

    exchange -> fetch_accounts -> processor_token -> funding_source
             -> encode -> persist -> invalidate

Any failure aborts the remaining stages. Nothing already done is undone:
once the funding source exists at Dwolla, a later failure leaves it
orphaned. The result reports that URL and a ``LinkAttempt`` row keeps it.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from integrations.exceptions import ProviderError
from integrations.protocols import AggregatorClient, BankAccount, PaymentNetworkClient
from models import BankLink, LinkAttempt, User
from services.account_overview_service import AccountViewCache
from services.bank_link_service import BankLinkService
from services.exceptions import (
    EncodingError,
    ExchangeError,
    FundingSourceError,
    LinkError,
    NoAccountError,
    PersistenceError,
    ProcessorTokenError,
)
from utils.shareable_id import encode_shareable_id

logger = logging.getLogger(__name__)

PAYMENT_PROCESSOR = "dwolla"


class LinkStage(str, Enum):
    """Stages of an account-link run, in execution order."""

    EXCHANGE = "exchange"
    FETCH_ACCOUNTS = "fetch_accounts"
    PROCESSOR_TOKEN = "processor_token"
    FUNDING_SOURCE = "funding_source"
    ENCODE = "encode"
    PERSIST = "persist"
    INVALIDATE = "invalidate"


@dataclass
class LinkResult:
    """Outcome of ``AccountLinkService.link_account``.

    ``orphaned_funding_source_url`` is set when a funding source was created
    but the run failed before the bank link was stored.
    """

    ok: bool
    bank_link_id: str | None = None
    failed_stage: LinkStage | None = None
    error: LinkError | None = None
    completed_stages: list[LinkStage] = field(default_factory=list)
    orphaned_funding_source_url: str | None = None


@dataclass
class _LinkRun:
    """Working state of one run."""

    user_id: str
    current: LinkStage | None = None
    completed: list[LinkStage] = field(default_factory=list)
    funding_source_url: str | None = None


class AccountLinkService:
    """Links a bank account for a user (Plaid -> Dwolla -> ledger)."""

    def __init__(
        self,
        aggregator: AggregatorClient,
        payments: PaymentNetworkClient,
        view_cache: AccountViewCache,
    ):
        self._aggregator = aggregator
        self._payments = payments
        self._view_cache = view_cache

    def link_account(self, db: Session, public_token: str, user: User) -> LinkResult:
        """Run the full link workflow for ``user``.

        Not idempotent: Plaid public tokens are single-use, so a repeated
        call fails at the exchange stage and stores nothing.
        """
        run = _LinkRun(user_id=user.id)
        logger.info("Account link started for user %s", user.id)

        try:
            exchange = self._stage(
                run, LinkStage.EXCHANGE, ExchangeError,
                self._aggregator.exchange_public_token, public_token,
            )
            account = self._stage(
                run, LinkStage.FETCH_ACCOUNTS, NoAccountError,
                self._select_account, exchange.access_token,
            )
            processor_token = self._stage(
                run, LinkStage.PROCESSOR_TOKEN, ProcessorTokenError,
                self._aggregator.create_processor_token,
                exchange.access_token, account.account_id, PAYMENT_PROCESSOR,
            )
            run.funding_source_url = self._stage(
                run, LinkStage.FUNDING_SOURCE, FundingSourceError,
                self._provision_funding_source, user, processor_token, account.name,
            )
            shareable_id = self._stage(
                run, LinkStage.ENCODE, EncodingError,
                encode_shareable_id, account.account_id,
            )
            bank_link = self._stage(
                run, LinkStage.PERSIST, PersistenceError,
                self._persist, db,
                user_id=user.id,
                bank_id=exchange.item_id,
                account_id=account.account_id,
                access_token=exchange.access_token,
                funding_source_url=run.funding_source_url,
                shareable_id=shareable_id,
            )
        except LinkError as exc:
            result = self._failure(run, exc)
            self._record_attempt(db, run, result)
            return result

        self._invalidate_view(run)
        result = LinkResult(
            ok=True,
            bank_link_id=bank_link.id,
            completed_stages=list(run.completed),
        )
        logger.info("Account link complete for user %s: bank link %s", user.id, bank_link.id)
        self._record_attempt(db, run, result)
        return result

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    @staticmethod
    def _stage(run: _LinkRun, stage: LinkStage, error_cls: type[LinkError], fn, *args, **kwargs):
        """Run one stage, wrapping expected failures in the stage's error type.

        Any other exception is a bug and propagates unchanged.
        """
        run.current = stage
        logger.info("Account link [%s] user=%s", stage.value, run.user_id)
        try:
            value = fn(*args, **kwargs)
        except LinkError:
            raise
        except (ProviderError, ValueError, SQLAlchemyError) as exc:
            raise error_cls(f"{stage.value} failed: {exc}") from exc
        run.completed.append(stage)
        return value

    def _select_account(self, access_token: str) -> BankAccount:
        """Take the first account of the Item."""
        accounts = self._aggregator.get_accounts(access_token)
        if not accounts:
            raise NoAccountError("Aggregator returned no accounts")
        account = accounts[0]
        if not account.account_id:
            raise NoAccountError("First account has no account id")
        return account

    def _provision_funding_source(self, user: User, processor_token: str, bank_name: str) -> str:
        if not user.dwolla_customer_id:
            raise FundingSourceError(f"User {user.id} has no Dwolla customer")
        url = self._payments.add_funding_source(
            customer_id=user.dwolla_customer_id,
            processor_token=processor_token,
            bank_name=bank_name,
        )
        if not url:
            raise FundingSourceError("Dwolla returned no funding source URL")
        return url

    @staticmethod
    def _persist(db: Session, **record) -> BankLink:
        try:
            return BankLinkService.create_bank_link(db, **record)
        except Exception:
            db.rollback()
            raise

    def _invalidate_view(self, run: _LinkRun) -> None:
        """Drop the cached account list. The link is already durable here."""
        run.current = LinkStage.INVALIDATE
        try:
            self._view_cache.invalidate(run.user_id)
        except Exception:
            logger.warning("Account view invalidation failed for user %s", run.user_id, exc_info=True)
            return
        run.completed.append(LinkStage.INVALIDATE)

    # ------------------------------------------------------------------
    # Outcome
    # ------------------------------------------------------------------

    @staticmethod
    def _failure(run: _LinkRun, exc: LinkError) -> LinkResult:
        orphan = (
            run.funding_source_url
            if LinkStage.FUNDING_SOURCE in run.completed
            else None
        )
        logger.warning(
            "Account link failed at [%s] for user %s: %s",
            run.current.value if run.current else "?", run.user_id, exc,
        )
        if orphan:
            logger.error(
                "Funding source %s was created for user %s but no bank link was stored",
                orphan, run.user_id,
            )
        return LinkResult(
            ok=False,
            failed_stage=run.current,
            error=exc,
            completed_stages=list(run.completed),
            orphaned_funding_source_url=orphan,
        )

    @staticmethod
    def _record_attempt(db: Session, run: _LinkRun, result: LinkResult) -> None:
        """Store the attempt outcome; a failure here is logged, never raised."""
        attempt = LinkAttempt(
            user_id=run.user_id,
            status="success" if result.ok else "failed",
            last_stage=run.completed[-1].value if run.completed else None,
            failed_stage=result.failed_stage.value if result.failed_stage else None,
            error_type=type(result.error).__name__ if result.error else None,
            funding_source_url=run.funding_source_url,
            bank_link_id=result.bank_link_id,
        )
        try:
            db.add(attempt)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.warning("Could not record link attempt for user %s", run.user_id, exc_info=True)
