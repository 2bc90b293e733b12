"""Tests for the account-link workflow."""

import logging
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from integrations.protocols import BankAccount, ExchangeResult
from models import BankLink, LinkAttempt
from schemas import AccountsOverview
from services.account_link_service import AccountLinkService, LinkStage
from services.exceptions import (
    EncodingError,
    ExchangeError,
    FundingSourceError,
    NoAccountError,
    PersistenceError,
    ProcessorTokenError,
)
from tests.fixtures import create_user
from tests.fixtures.mocks import FUNDING_SOURCE_URL, MockDwollaClient, MockPlaidClient
from utils.shareable_id import decode_shareable_id, encode_shareable_id

ALL_STAGES = [
    LinkStage.EXCHANGE,
    LinkStage.FETCH_ACCOUNTS,
    LinkStage.PROCESSOR_TOKEN,
    LinkStage.FUNDING_SOURCE,
    LinkStage.ENCODE,
    LinkStage.PERSIST,
    LinkStage.INVALIDATE,
]


@pytest.fixture
def service(mock_plaid, mock_dwolla, view_cache):
    return AccountLinkService(mock_plaid, mock_dwolla, view_cache)


def _links(db):
    return db.query(BankLink).all()


class TestSuccessfulLink:
    def test_stores_expected_bank_link(self, db, user, service):
        result = service.link_account(db, "tok_valid", user)

        assert result.ok is True
        assert result.failed_stage is None
        assert result.error is None
        links = _links(db)
        assert len(links) == 1
        link = links[0]
        assert result.bank_link_id == link.id
        assert link.user_id == user.id
        assert link.bank_id == "item_1"
        assert link.account_id == "a1"
        assert link.access_token == "acc_1"
        assert link.funding_source_url == FUNDING_SOURCE_URL
        assert link.shareable_id == encode_shareable_id("a1")

    def test_shareable_id_decodes_to_account_id(self, db, user, service):
        service.link_account(db, "tok_valid", user)
        link = _links(db)[0]
        assert decode_shareable_id(link.shareable_id) == link.account_id

    def test_all_stages_complete_in_order(self, db, user, service):
        result = service.link_account(db, "tok_valid", user)
        assert result.completed_stages == ALL_STAGES
        assert result.orphaned_funding_source_url is None

    def test_uses_first_account_and_dwolla_processor(self, db, user, service, mock_plaid):
        service.link_account(db, "tok_valid", user)
        assert ("create_processor_token", "acc_1", "a1", "dwolla") in mock_plaid.calls

    def test_funding_source_uses_fresh_authorization(self, db, user, service, mock_dwolla):
        service.link_account(db, "tok_valid", user)

        assert mock_dwolla.authorizations == 1
        assert len(mock_dwolla.funding_sources) == 1
        created = mock_dwolla.funding_sources[0]
        assert created["customer_id"] == "cust-1"
        assert created["processor_token"] == "proc_1"
        assert created["name"] == "Plaid Checking"
        assert created["auth_links"]["self"]["href"].endswith("oda-1")

    def test_invalidates_account_view(self, db, user, service, view_cache):
        view_cache.put(
            user.id, AccountsOverview(accounts=[], total_banks=0, total_current_balance=Decimal("0"))
        )
        service.link_account(db, "tok_valid", user)
        assert view_cache.get(user.id) is None

    def test_records_successful_attempt(self, db, user, service):
        result = service.link_account(db, "tok_valid", user)

        attempt = db.query(LinkAttempt).one()
        assert attempt.status == "success"
        assert attempt.last_stage == "invalidate"
        assert attempt.failed_stage is None
        assert attempt.bank_link_id == result.bank_link_id

    def test_logs_each_stage(self, db, user, service, caplog):
        with caplog.at_level(logging.INFO, logger="services.account_link_service"):
            service.link_account(db, "tok_valid", user)
        for stage in ALL_STAGES[:-1]:
            assert f"[{stage.value}]" in caplog.text
        # Secrets never reach the log
        assert "acc_1" not in caplog.text
        assert "proc_1" not in caplog.text


class TestExchangeFailure:
    def test_reused_public_token_fails_at_exchange(self, db, user, service, mock_dwolla):
        first = service.link_account(db, "tok_valid", user)
        assert first.ok

        second = service.link_account(db, "tok_valid", user)

        assert second.ok is False
        assert second.failed_stage == LinkStage.EXCHANGE
        assert isinstance(second.error, ExchangeError)
        assert second.completed_stages == []
        assert len(_links(db)) == 1
        assert len(mock_dwolla.funding_sources) == 1

    def test_unknown_public_token_creates_nothing(self, db, user, service, mock_plaid, mock_dwolla):
        result = service.link_account(db, "tok_bogus", user)

        assert result.failed_stage == LinkStage.EXCHANGE
        assert _links(db) == []
        assert mock_plaid.call_names() == ["exchange_public_token"]
        assert mock_dwolla.calls == []


class TestNoAccount:
    def test_empty_account_list(self, db, user, view_cache, mock_dwolla):
        plaid = MockPlaidClient(accounts=[])
        service = AccountLinkService(plaid, mock_dwolla, view_cache)

        result = service.link_account(db, "tok_valid", user)

        assert result.failed_stage == LinkStage.FETCH_ACCOUNTS
        assert isinstance(result.error, NoAccountError)
        assert mock_dwolla.funding_sources == []
        assert _links(db) == []

    def test_first_account_without_id(self, db, user, view_cache, mock_dwolla):
        plaid = MockPlaidClient(accounts=[BankAccount(account_id="", name="Ghost")])
        service = AccountLinkService(plaid, mock_dwolla, view_cache)

        result = service.link_account(db, "tok_valid", user)

        assert isinstance(result.error, NoAccountError)
        assert "create_processor_token" not in plaid.call_names()

    def test_accounts_fetch_error_is_wrapped(self, db, user, view_cache, mock_dwolla):
        plaid = MockPlaidClient(fail_on={"get_accounts"})
        service = AccountLinkService(plaid, mock_dwolla, view_cache)

        result = service.link_account(db, "tok_valid", user)

        assert result.failed_stage == LinkStage.FETCH_ACCOUNTS
        assert isinstance(result.error, NoAccountError)
        assert result.error.__cause__ is not None


class TestProcessorTokenFailure:
    def test_stops_before_dwolla(self, db, user, view_cache, mock_dwolla):
        plaid = MockPlaidClient(fail_on={"create_processor_token"})
        service = AccountLinkService(plaid, mock_dwolla, view_cache)

        result = service.link_account(db, "tok_valid", user)

        assert result.failed_stage == LinkStage.PROCESSOR_TOKEN
        assert isinstance(result.error, ProcessorTokenError)
        assert result.completed_stages == [LinkStage.EXCHANGE, LinkStage.FETCH_ACCOUNTS]
        assert mock_dwolla.calls == []
        assert _links(db) == []


class TestFundingSourceFailure:
    def test_creation_fails_after_authorization(self, db, user, mock_plaid, view_cache):
        dwolla = MockDwollaClient(fail_on={"create_funding_source"})
        service = AccountLinkService(mock_plaid, dwolla, view_cache)

        result = service.link_account(db, "tok_valid", user)

        assert dwolla.authorizations == 1
        assert result.failed_stage == LinkStage.FUNDING_SOURCE
        assert isinstance(result.error, FundingSourceError)
        assert result.orphaned_funding_source_url is None
        assert _links(db) == []

    def test_authorization_failure(self, db, user, mock_plaid, view_cache):
        dwolla = MockDwollaClient(fail_on={"create_on_demand_authorization"})
        service = AccountLinkService(mock_plaid, dwolla, view_cache)

        result = service.link_account(db, "tok_valid", user)

        assert result.failed_stage == LinkStage.FUNDING_SOURCE
        assert dwolla.funding_sources == []
        assert _links(db) == []

    def test_user_without_dwolla_customer(self, db, identity_service, service, mock_dwolla):
        user = create_user(db, "nocust@example.com", identity_service, dwolla_customer_id=None)

        result = service.link_account(db, "tok_valid", user)

        assert result.failed_stage == LinkStage.FUNDING_SOURCE
        assert isinstance(result.error, FundingSourceError)
        assert mock_dwolla.calls == []


class TestEncodeFailure:
    def test_encoding_error_leaves_orphaned_funding_source(self, db, user, service, monkeypatch):
        def broken(account_id):
            raise ValueError("cannot encode")

        monkeypatch.setattr("services.account_link_service.encode_shareable_id", broken)

        result = service.link_account(db, "tok_valid", user)

        assert result.failed_stage == LinkStage.ENCODE
        assert isinstance(result.error, EncodingError)
        assert result.orphaned_funding_source_url == FUNDING_SOURCE_URL
        assert _links(db) == []


class TestPersistFailure:
    def test_duplicate_account_for_user(self, db, user, view_cache, mock_dwolla):
        plaid = MockPlaidClient(
            public_tokens={
                "tok_a": ExchangeResult(access_token="acc_1", item_id="item_1"),
                "tok_b": ExchangeResult(access_token="acc_2", item_id="item_2"),
            }
        )
        service = AccountLinkService(plaid, mock_dwolla, view_cache)
        assert service.link_account(db, "tok_a", user).ok

        result = service.link_account(db, "tok_b", user)

        assert result.failed_stage == LinkStage.PERSIST
        assert isinstance(result.error, PersistenceError)
        assert result.orphaned_funding_source_url == FUNDING_SOURCE_URL
        assert len(_links(db)) == 1
        assert len(mock_dwolla.funding_sources) == 2

    def test_session_usable_after_rollback(self, db, user, service, monkeypatch):
        def explode(db, **record):
            raise OperationalError("INSERT INTO bank_links", {}, Exception("disk full"))

        monkeypatch.setattr(
            "services.account_link_service.BankLinkService.create_bank_link", explode
        )

        result = service.link_account(db, "tok_valid", user)

        assert result.failed_stage == LinkStage.PERSIST
        attempt = db.query(LinkAttempt).one()
        assert attempt.status == "failed"
        assert attempt.failed_stage == "persist"
        assert attempt.last_stage == "encode"
        assert attempt.error_type == "PersistenceError"
        assert attempt.funding_source_url == FUNDING_SOURCE_URL

    def test_orphan_is_logged(self, db, user, service, monkeypatch, caplog):
        def explode(db, **record):
            raise OperationalError("INSERT INTO bank_links", {}, Exception("boom"))

        monkeypatch.setattr(
            "services.account_link_service.BankLinkService.create_bank_link", explode
        )
        with caplog.at_level(logging.WARNING, logger="services.account_link_service"):
            service.link_account(db, "tok_valid", user)
        assert FUNDING_SOURCE_URL in caplog.text
        assert "no bank link was stored" in caplog.text


class TestUnexpectedErrors:
    def test_programming_error_propagates(self, db, user, mock_dwolla, view_cache):
        class BrokenPlaid(MockPlaidClient):
            def get_accounts(self, access_token):
                raise TypeError("get_accounts() got an unexpected keyword argument")

        service = AccountLinkService(BrokenPlaid(), mock_dwolla, view_cache)

        with pytest.raises(TypeError):
            service.link_account(db, "tok_valid", user)
        assert _links(db) == []

    def test_attribute_error_is_not_a_link_error(self, db, user, service, monkeypatch):
        def broken(account_id):
            raise AttributeError("'NoneType' object has no attribute 'encode'")

        monkeypatch.setattr("services.account_link_service.encode_shareable_id", broken)

        with pytest.raises(AttributeError):
            service.link_account(db, "tok_valid", user)


class TestInvalidateFailure:
    def test_cache_failure_does_not_fail_link(self, db, user, mock_plaid, mock_dwolla):
        class BrokenCache:
            def invalidate(self, user_id):
                raise RuntimeError("cache down")

        service = AccountLinkService(mock_plaid, mock_dwolla, BrokenCache())

        result = service.link_account(db, "tok_valid", user)

        assert result.ok is True
        assert LinkStage.INVALIDATE not in result.completed_stages
        assert len(_links(db)) == 1
