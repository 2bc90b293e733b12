"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from api.helpers import (
    get_account_view_cache,
    get_dwolla_client,
    get_identity_service,
    get_plaid_client,
)
from config import settings
from database import Base, get_db
from main import app
from services.account_overview_service import AccountViewCache
# Pytest fixtures - imported to make them available to tests
from tests.fixtures import (  # noqa: F401
    bank_link,
    identity,
    identity_service,
    other_user,
    user,
)
from tests.fixtures.mocks import MockDwollaClient, MockPlaidClient


@pytest.fixture(name="db")
def db_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="mock_plaid")
def mock_plaid_fixture():
    return MockPlaidClient()


@pytest.fixture(name="mock_dwolla")
def mock_dwolla_fixture():
    return MockDwollaClient()


@pytest.fixture(name="view_cache")
def view_cache_fixture():
    return AccountViewCache(ttl=300)


@pytest.fixture(name="client")
def client_fixture(db, mock_plaid, mock_dwolla, view_cache, identity_service):
    """Create a test client with the test database and mock providers."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_plaid_client] = lambda: mock_plaid
    app.dependency_overrides[get_dwolla_client] = lambda: mock_dwolla
    app.dependency_overrides[get_account_view_cache] = lambda: view_cache
    app.dependency_overrides[get_identity_service] = lambda: identity_service
    # Session cookies are Secure, so talk https to the test server
    client = TestClient(app, base_url="https://testserver")
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="auth_client")
def auth_client_fixture(client, db, user, identity_service):
    """Test client carrying a session cookie for ``user``."""
    token = identity_service.create_session(db, user.identity_id)
    client.cookies.set(settings.SESSION_COOKIE_NAME, token)
    return client
