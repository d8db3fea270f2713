import os
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
os.environ["APP_ENV"] = "dev"
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ADMIN_TOKEN", "test-admin-token")
os.environ.pop("TWILIO_AUTH_TOKEN", None)  # Signature checks are opted into per test
os.environ.setdefault("SESSION_TTL_SECONDS", "86400")
os.environ.setdefault("REFERENCE_PREFIX", "RR")

from app.db.base import Base
from app.db.deps import get_db
import app.db.models as _models  # noqa: F401
from app.db.models import Hotel
from app.main import app
from app.services.conversation import reset_engine
from app.services.messaging.message_composer import reset_cache
from tests.helpers.conversation import HOTEL_NUMBER

# Test database URL (in-memory SQLite for fast tests)
SQLALCHEMY_DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///:memory:")


def is_sqlite() -> bool:
    """Return True if the test database is SQLite (e.g. in-memory tests)."""
    return (SQLALCHEMY_DATABASE_URL or "").startswith("sqlite")


# SQLite needs check_same_thread=False and StaticPool; Postgres does not support check_same_thread
if is_sqlite():
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    engine = create_engine(SQLALCHEMY_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

import app.db.session as _db_session

_db_session.engine = engine
_db_session.SessionLocal = TestingSessionLocal


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database dependency override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def fresh_engine():
    """Every test starts with no conversation sessions and freshly loaded copy."""
    reset_engine()
    reset_cache()
    yield
    reset_engine()
    reset_cache()


@pytest.fixture
def make_hotel(db):
    """Factory for hotels; defaults to an active $50/night hotel."""

    def _make_hotel(
        whatsapp_to: str = HOTEL_NUMBER,
        name: str = "Sea View",
        price_per_night: Decimal = Decimal("50.00"),
        currency: str = "$",
        is_active: bool = True,
    ) -> Hotel:
        hotel = Hotel(
            whatsapp_to=whatsapp_to,
            name=name,
            price_per_night=price_per_night,
            currency=currency,
            is_active=is_active,
        )
        db.add(hotel)
        db.commit()
        db.refresh(hotel)
        return hotel

    return _make_hotel


@pytest.fixture
def hotel(make_hotel):
    return make_hotel()
