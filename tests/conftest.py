import os

# Settings are read at import time
os.environ.setdefault("JWT_SECRET_KEY", "esep-test-secret-key-0123456789abcdef")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
import pytest_asyncio
from decimal import Decimal
from typing import Generator

from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from esep.db.models import (
    Base,
    Category,
    Panchayath,
    AdminUser,
    Permission,
    CashAccount,
    Registration,
)
from esep.db.session import get_sync_session
from esep.db.seeds.permissions_seed import seed_permissions
from esep.schemas.registration_schemas import RegistrationCreateRequest
from esep.services.registration_service import RegistrationService
from esep.utils.auth import AuthUtils


# Test database setup
TEST_DATABASE_URL = "sqlite:///:memory:"
TEST_PASSWORD = "correct-horse-battery"
TEST_PASSWORD_HASH = AuthUtils.hash_password(TEST_PASSWORD)


@pytest.fixture
def test_engine():
    """Fresh in-memory database per test."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(engine)

    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a database session for each test."""
    session_maker = sessionmaker(bind=test_engine, expire_on_commit=False)
    session = session_maker()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# Test data factories
@pytest.fixture
def make_category(db_session: Session):
    """Factory for categories; defaults to a 30 day window and an offer fee."""

    def _make_category(**overrides) -> Category:
        values = {
            "name_english": "Pennyekka",
            "name_malayalam": "പെണ്ണേക്ക",
            "description": "Women entrepreneurs",
            "actual_fee": Decimal("500.00"),
            "offer_fee": Decimal("300.00"),
            "expiry_days": 30,
            "is_active": True,
        }
        values.update(overrides)
        category = Category(**values)
        db_session.add(category)
        db_session.commit()
        db_session.refresh(category)
        return category

    return _make_category


@pytest.fixture
def sample_category(make_category) -> Category:
    return make_category()


@pytest.fixture
def sample_panchayath(db_session: Session) -> Panchayath:
    panchayath = Panchayath(name="Kondotty", district="Malappuram", is_active=True)
    db_session.add(panchayath)
    db_session.commit()
    db_session.refresh(panchayath)
    return panchayath


@pytest.fixture
def registration_draft(sample_category, sample_panchayath):
    """Factory for valid submission payloads."""

    def _registration_draft(**overrides) -> RegistrationCreateRequest:
        values = {
            "full_name": "Fathima K",
            "mobile_number": "9847012345",
            "address": "Near Juma Masjid, Kondotty",
            "ward": "12",
            "agent": "Rasheed",
            "category_id": sample_category.id,
            "panchayath_id": sample_panchayath.id,
        }
        values.update(overrides)
        return RegistrationCreateRequest(**values)

    return _registration_draft


@pytest_asyncio.fixture
async def pending_registration(db_session: Session, registration_draft) -> Registration:
    service = RegistrationService(db_session)
    return await service.submit(registration_draft())


@pytest_asyncio.fixture
async def approved_registration(
    db_session: Session, pending_registration: Registration
) -> Registration:
    service = RegistrationService(db_session)
    return await service.approve(pending_registration.id, "eva")


@pytest.fixture
def permissions(db_session: Session) -> dict:
    """Seeded permission catalogue keyed by name."""
    seed_permissions(db_session)
    return {p.name: p for p in db_session.execute(select(Permission)).scalars()}


@pytest.fixture
def make_admin(db_session: Session):
    """Factory for admin users sharing TEST_PASSWORD."""

    def _make_admin(username: str, is_super_admin: bool = False, **overrides) -> AdminUser:
        values = {
            "username": username,
            "full_name": username.title(),
            "email": f"{username}@example.com",
            "password_hash": TEST_PASSWORD_HASH,
            "is_active": True,
            "is_super_admin": is_super_admin,
            "access_token_version": 0,
        }
        values.update(overrides)
        admin = AdminUser(**values)
        db_session.add(admin)
        db_session.commit()
        db_session.refresh(admin)
        return admin

    return _make_admin


@pytest.fixture
def super_admin(make_admin, permissions) -> AdminUser:
    return make_admin("eva", is_super_admin=True)


@pytest.fixture
def staff_admin(make_admin, permissions) -> AdminUser:
    """Regular admin with no grants."""
    return make_admin("anil")


@pytest.fixture
def feed_account(db_session: Session) -> CashAccount:
    account = CashAccount(name="Main Cash", is_active=True, is_registration_feed=True)
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


@pytest.fixture
def bank_account(db_session: Session) -> CashAccount:
    account = CashAccount(name="Bank", is_active=True, is_registration_feed=False)
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


# HTTP layer
def _auth_headers(admin: AdminUser) -> dict:
    token = AuthUtils.generate_access_token(
        user_id=admin.id,
        username=admin.username,
        full_name=admin.full_name,
        is_super_admin=admin.is_super_admin,
        token_version=admin.access_token_version,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    """Bearer headers for an admin row, carrying its current token version."""
    return _auth_headers


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """TestClient bound to the per-test database."""
    from esep.main import app

    def override_get_sync_session():
        yield db_session

    app.dependency_overrides[get_sync_session] = override_get_sync_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
