"""Test fixtures and sample data."""
import pytest
from sqlalchemy.orm import Session

from models import BankLink, Identity, User
from services.identity_service import IdentityService
from utils.shareable_id import encode_shareable_id

TEST_PASSWORD = "correct-horse-battery"

SIGN_UP_PAYLOAD = {
    "email": "ada@example.com",
    "password": TEST_PASSWORD,
    "first_name": "Ada",
    "last_name": "Lovelace",
    "address1": "1 Analytical Way",
    "city": "Des Moines",
    "state": "ia",
    "postal_code": "50309",
    "date_of_birth": "1990-12-10",
    "ssn": "1234",
}


def create_user(
    db: Session,
    email: str,
    identity_service: IdentityService,
    dwolla_customer_id: str | None = "cust-1",
) -> User:
    """Create an identity and its user profile.

    This is a helper function (not a fixture) for tests that need several
    users.
    """
    identity = identity_service.create_identity(db, email, TEST_PASSWORD, name="Test User")
    user = User(
        identity_id=identity.id,
        email=identity.email,
        first_name="Test",
        last_name="User",
        dwolla_customer_id=dwolla_customer_id,
        dwolla_customer_url=(
            f"https://api-sandbox.dwolla.com/customers/{dwolla_customer_id}"
            if dwolla_customer_id
            else None
        ),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_bank_link(
    db: Session,
    user: User,
    account_id: str,
    bank_id: str = "item_1",
    access_token: str = "acc_1",
    funding_source_url: str | None = None,
) -> BankLink:
    """Insert a bank link directly, bypassing the link workflow."""
    link = BankLink(
        user_id=user.id,
        bank_id=bank_id,
        account_id=account_id,
        access_token=access_token,
        funding_source_url=(
            funding_source_url
            or f"https://api-sandbox.dwolla.com/funding-sources/fs-{account_id}"
        ),
        shareable_id=encode_shareable_id(account_id),
    )
    db.add(link)
    db.commit()
    db.refresh(link)
    return link


@pytest.fixture
def identity_service() -> IdentityService:
    """Identity service with a cheap bcrypt cost."""
    return IdentityService(hash_rounds=4, session_hours=1)


@pytest.fixture
def identity(db: Session, identity_service: IdentityService) -> Identity:
    ident = identity_service.create_identity(db, "grace@example.com", TEST_PASSWORD, name="Grace")
    db.commit()
    return ident


@pytest.fixture
def user(db: Session, identity_service: IdentityService) -> User:
    """Create a test user with a Dwolla customer."""
    return create_user(db, "test@example.com", identity_service)


@pytest.fixture
def other_user(db: Session, identity_service: IdentityService) -> User:
    return create_user(db, "other@example.com", identity_service, dwolla_customer_id="cust-2")


@pytest.fixture
def bank_link(db: Session, user: User) -> BankLink:
    """Create a test bank link for account a1."""
    return create_bank_link(db, user, "a1")
