"""Tests for the identity store."""

from datetime import datetime, timedelta, timezone

import pytest

from models import AuthSession, Identity
from services.exceptions import AuthenticationError, SignUpError
from tests.fixtures import TEST_PASSWORD


class TestPasswords:
    def test_hash_is_not_plaintext_and_verifies(self, identity_service):
        hashed = identity_service.hash_password("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert identity_service.verify_password("s3cret-pass", hashed)
        assert not identity_service.verify_password("wrong-pass", hashed)

    def test_malformed_hash_does_not_verify(self, identity_service):
        assert identity_service.verify_password("anything", "not-a-bcrypt-hash") is False

    def test_long_passwords_are_accepted(self, identity_service):
        long_password = "x" * 100
        hashed = identity_service.hash_password(long_password)
        assert identity_service.verify_password(long_password, hashed)


class TestCreateIdentity:
    def test_email_is_normalized(self, db, identity_service):
        identity = identity_service.create_identity(db, "  Ada@Example.COM ", TEST_PASSWORD)
        assert identity.email == "ada@example.com"

    def test_duplicate_email_rejected(self, db, identity_service, identity):
        with pytest.raises(SignUpError):
            identity_service.create_identity(db, "GRACE@example.com", TEST_PASSWORD)
        assert db.query(Identity).count() == 1


class TestAuthenticate:
    def test_returns_token_for_valid_credentials(self, db, identity_service, identity):
        token = identity_service.authenticate(db, "grace@example.com", TEST_PASSWORD)

        assert len(token) >= 43
        assert identity_service.current_session_identity(db, token) == identity.id

    def test_wrong_password(self, db, identity_service, identity):
        with pytest.raises(AuthenticationError):
            identity_service.authenticate(db, "grace@example.com", "nope-nope")

    def test_unknown_email(self, db, identity_service):
        with pytest.raises(AuthenticationError):
            identity_service.authenticate(db, "nobody@example.com", TEST_PASSWORD)


class TestSessions:
    def test_tokens_are_unique(self, db, identity_service, identity):
        tokens = {identity_service.create_session(db, identity.id) for _ in range(5)}
        assert len(tokens) == 5

    def test_unknown_or_missing_token(self, db, identity_service):
        assert identity_service.current_session_identity(db, None) is None
        assert identity_service.current_session_identity(db, "") is None
        assert identity_service.current_session_identity(db, "bogus") is None

    def test_expired_session_is_removed(self, db, identity_service, identity):
        token = identity_service.create_session(db, identity.id)
        session = db.query(AuthSession).filter_by(token=token).one()
        session.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        db.commit()

        assert identity_service.current_session_identity(db, token) is None
        assert db.query(AuthSession).count() == 0

    def test_end_session(self, db, identity_service, identity):
        token = identity_service.create_session(db, identity.id)

        assert identity_service.end_session(db, token) is True
        assert identity_service.current_session_identity(db, token) is None
        assert identity_service.end_session(db, token) is False
        assert identity_service.end_session(db, None) is False
