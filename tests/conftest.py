"""
Shared fixtures: in-memory SQLite database, seeded roles, and a TestClient
whose auth, Firebase and Google Sheets dependencies are replaced.
"""

from datetime import date, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from renovahub.auth import get_decoded_token
from renovahub.database import Base, get_db
from renovahub.domain.users.repository import UserRepository
from renovahub.firebase import get_firebase_app, get_firebase_app_or_none
from renovahub.main import app
from renovahub.models import License, PushToken, User
from renovahub.services.google_sheets import get_sheets_client

TODAY = date(2025, 3, 10)

# Stands in for the initialized firebase_admin.App
FIREBASE_APP = object()

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    UserRepository.seed_default_roles(session)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def admin_user(db):
    user = User(firebase_uid="admin-uid", email="admin@renovahub.app", name="Admin", role_id="01")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def regular_user(db):
    user = User(firebase_uid="user-uid", email="ana@renovahub.app", name="Ana", role_id="02")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def auth_claims():
    """Claims returned for the bearer token; tests may edit them"""
    return {"uid": "admin-uid", "email": "admin@renovahub.app", "name": "Admin"}


@pytest.fixture
def sheets_client():
    return MagicMock()


@pytest.fixture
def enqueue_mock():
    with patch("renovahub.domain.licenses.router.enqueue_job", new=AsyncMock(return_value="job-1")) as mock:
        yield mock


@pytest.fixture
def client(db, auth_claims, sheets_client, enqueue_mock):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_decoded_token] = lambda: dict(auth_claims)
    app.dependency_overrides[get_firebase_app] = lambda: FIREBASE_APP
    app.dependency_overrides[get_firebase_app_or_none] = lambda: FIREBASE_APP
    app.dependency_overrides[get_sheets_client] = lambda: sheets_client

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def make_license(db):
    def _make(**overrides):
        values = {
            "software_name": "Figma",
            "renewal_date": TODAY,
            "amount": 120.0,
            "currency": "USD",
            "responsible_email": "ana@renovahub.app",
            "renewal_url": "https://figma.com/billing",
            "status": "active",
        }
        values.update(overrides)
        license = License(**values)
        db.add(license)
        db.commit()
        db.refresh(license)
        return license

    return _make


@pytest.fixture
def add_push_token(db):
    def _add(user, token):
        db.add(PushToken(user_id=user.id, token=token))
        db.commit()
        db.refresh(user)

    return _add


def fake_license(license_id="lic-1", days=30, status="active", today=TODAY, **overrides):
    """Plain license record for the pure decision and sweep functions"""
    values = {
        "id": license_id,
        "software_name": "Slack",
        "renewal_date": today + timedelta(days=days),
        "amount": 80.0,
        "currency": "USD",
        "responsible_email": "ana@renovahub.app",
        "renewal_url": None,
        "status": status,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def multicast_response(success_count, failure_count=0):
    return SimpleNamespace(success_count=success_count, failure_count=failure_count)
