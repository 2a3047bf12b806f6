"""Pytest fixtures for the order workflow engine.

Provides reusable test fixtures for:
- SQLite in-memory database session (fresh schema per test)
- Two organizations and one user per role
- An order factory
- A FastAPI TestClient wired to the test session and a recording notifier

Usage (auth_headers lives in fixtures.tokens):
    def test_staff_can_advance(client, staff_user, make_order):
        order = make_order(stage="Sewing")
        response = client.patch(
            f"/api/v1/orders/{order.id}",
            headers=auth_headers(staff_user),
            json={"stage": "QualityControl", "reason": "QC ready"},
        )
        assert response.status_code == 200
"""

import os

# Set environment variables BEFORE any colorgarb import: the engine is
# created at import time from DATABASE_URL
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-jwt-secret-key-256-bits-minimum-length-required-for-security"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timedelta, timezone
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from colorgarb.config import get_settings
from colorgarb.database import engine, SessionLocal, get_db
from colorgarb.dependencies import get_notifier
from colorgarb.models import Base, Organization, User, OrderModel
from fixtures.in_memory import RecordingNotifier

get_settings.cache_clear()

SHIP_DATE = datetime(2026, 11, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test.

    Creates all tables before the test and drops them after.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def org_a(db_session: Session) -> Organization:
    org = Organization(name="Lincoln High Marching Band")
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope="function")
def org_b(db_session: Session) -> Organization:
    org = Organization(name="Riverside Dance Company")
    db_session.add(org)
    db_session.commit()
    return org


def _make_user(db_session: Session, email: str, role: str, organization_id=None, is_active=True) -> User:
    user = User(
        email=email,
        name=email.split("@")[0].title(),
        role=role,
        organization_id=organization_id,
        is_active=is_active,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope="function")
def staff_user(db_session: Session) -> User:
    return _make_user(db_session, "staff@colorgarb.com", "ColorGarbStaff")


@pytest.fixture(scope="function")
def director_a(db_session: Session, org_a: Organization) -> User:
    return _make_user(db_session, "director@lincoln.edu", "Director", org_a.id)


@pytest.fixture(scope="function")
def finance_a(db_session: Session, org_a: Organization) -> User:
    return _make_user(db_session, "finance@lincoln.edu", "Finance", org_a.id)


@pytest.fixture(scope="function")
def director_b(db_session: Session, org_b: Organization) -> User:
    return _make_user(db_session, "director@riverside.org", "Director", org_b.id)


@pytest.fixture(scope="function")
def make_order(db_session: Session, org_a: Organization):
    """Factory creating committed orders (default: org A, DesignProposal)."""
    counter = {"n": 0}

    def _make(stage: str = "DesignProposal", organization_id=None, is_active: bool = True,
              created_at: datetime = None) -> OrderModel:
        counter["n"] += 1
        order = OrderModel(
            order_number=f"CG-2026-{counter['n']:04d}",
            organization_id=organization_id or org_a.id,
            description="Flag line uniforms",
            current_stage=stage,
            original_ship_date=SHIP_DATE,
            current_ship_date=SHIP_DATE,
            is_active=is_active,
            created_at=created_at or datetime.now(timezone.utc) + timedelta(seconds=counter["n"]),
        )
        db_session.add(order)
        db_session.commit()
        return order

    return _make


@pytest.fixture(scope="function")
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture(scope="function")
def client(db_session: Session, notifier: RecordingNotifier) -> Generator[TestClient, None, None]:
    """TestClient using the test session and a recording notifier."""
    from colorgarb.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
