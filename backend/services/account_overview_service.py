"""Balances and transactions of linked accounts.

The per-user account list is cached for a short while; linking or unlinking
a bank invalidates the user's entry so the next read reflects the change.
"""

import logging
from decimal import Decimal

from cachetools import TTLCache
from sqlalchemy.orm import Session

from integrations.exceptions import ProviderError
from integrations.protocols import AggregatorClient, BankAccount
from models import BankLink, User
from schemas.account import AccountDetail, AccountsOverview, AccountSummary, TransactionResponse

logger = logging.getLogger(__name__)


class AccountViewCache:
    """TTL cache of rendered account lists, keyed by user id."""

    def __init__(self, ttl: int = 300, maxsize: int = 1024):
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)

    def get(self, user_id: str) -> AccountsOverview | None:
        return self._cache.get(user_id)

    def put(self, user_id: str, overview: AccountsOverview) -> None:
        self._cache[user_id] = overview

    def invalidate(self, user_id: str) -> bool:
        """Drop a user's cached list. Returns True if one was cached."""
        removed = self._cache.pop(user_id, None) is not None
        if removed:
            logger.debug("Account view cache invalidated for user %s", user_id)
        return removed


def _summary(link: BankLink, account: BankAccount | None) -> AccountSummary:
    if account is None:
        return AccountSummary(
            id=link.id,
            account_id=link.account_id,
            shareable_id=link.shareable_id,
            name="Bank Account",
        )
    return AccountSummary(
        id=link.id,
        account_id=link.account_id,
        shareable_id=link.shareable_id,
        name=account.name,
        official_name=account.official_name,
        mask=account.mask,
        type=account.type,
        subtype=account.subtype,
        current_balance=account.current_balance,
        available_balance=account.available_balance,
        currency=account.currency,
    )


class AccountOverviewService:
    """Reads balances and transactions from the aggregator for linked banks."""

    def __init__(self, aggregator: AggregatorClient, cache: AccountViewCache):
        self._aggregator = aggregator
        self._cache = cache

    def get_accounts(self, db: Session, user: User) -> AccountsOverview:
        """Return balances for all of a user's linked accounts with totals.

        A bank whose balances cannot be fetched is still listed, without
        balances, and the result is not cached.
        """
        cached = self._cache.get(user.id)
        if cached is not None:
            return cached

        links = (
            db.query(BankLink)
            .filter(BankLink.user_id == user.id)
            .order_by(BankLink.created_at.desc())
            .all()
        )

        # One Item can back several links; fetch each Item once
        accounts_by_token: dict[str, dict[str, BankAccount] | None] = {}
        for link in links:
            if link.access_token in accounts_by_token:
                continue
            try:
                fetched = self._aggregator.get_accounts(link.access_token)
                accounts_by_token[link.access_token] = {a.account_id: a for a in fetched}
            except ProviderError as exc:
                logger.warning("Failed to fetch balances for bank link %s: %s", link.id, exc)
                accounts_by_token[link.access_token] = None

        summaries = []
        complete = True
        for link in links:
            item_accounts = accounts_by_token[link.access_token]
            if item_accounts is None:
                complete = False
                summaries.append(_summary(link, None))
                continue
            account = item_accounts.get(link.account_id)
            if account is None:
                logger.warning(
                    "Account %s no longer reported for bank link %s", link.account_id, link.id
                )
            summaries.append(_summary(link, account))

        total = sum(
            (s.current_balance for s in summaries if s.current_balance is not None),
            Decimal("0"),
        )
        overview = AccountsOverview(
            accounts=summaries,
            total_banks=len(links),
            total_current_balance=total,
        )
        if complete:
            self._cache.put(user.id, overview)
        return overview

    def get_account(self, bank_link: BankLink) -> AccountDetail:
        """Return one linked account with its transactions, newest first.

        Raises:
            ProviderError: If the aggregator cannot be reached.
        """
        accounts = self._aggregator.get_accounts(bank_link.access_token)
        account = next((a for a in accounts if a.account_id == bank_link.account_id), None)
        transactions = [
            TransactionResponse(
                transaction_id=t.transaction_id,
                account_id=t.account_id,
                name=t.name,
                amount=t.amount,
                date=t.date,
                currency=t.currency,
                pending=t.pending,
                category=t.category,
                payment_channel=t.payment_channel,
                merchant_name=t.merchant_name,
            )
            for t in self._aggregator.sync_transactions(bank_link.access_token)
            if t.account_id == bank_link.account_id
        ]
        return AccountDetail(account=_summary(bank_link, account), transactions=transactions)

    def invalidate(self, user_id: str) -> bool:
        return self._cache.invalidate(user_id)
