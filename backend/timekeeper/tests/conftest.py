"""
Pytest configuration and fixtures for backend testing.

Provides fixtures for an in-memory database, the FastAPI test client with
its dependencies overridden, registered users and authentication headers.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from typing import Dict, Generator
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from timekeeper.api.main import app
from timekeeper.auth.action_gate import PendingActionRegistry
from timekeeper.auth.credential_store import CredentialStore
from timekeeper.auth.dependencies import CurrentUser, get_pending_actions
from timekeeper.auth.jwt_handler import PasswordHandler
from timekeeper.database.connection import SessionLocal, create_tables, drop_tables, get_db
from timekeeper.database.models import User, PinCredential
from timekeeper.services.delivery import get_delivery

from .test_base import API, RecordingDelivery


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database and session for each test."""
    create_tables()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        drop_tables()


@pytest.fixture
def pending_actions() -> PendingActionRegistry:
    """Pending action registry private to one test."""
    return PendingActionRegistry()


@pytest.fixture
def delivery() -> RecordingDelivery:
    return RecordingDelivery()


@pytest.fixture(scope="function")
def client(db_session, pending_actions, delivery):
    """Create FastAPI test client with dependency overrides."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_pending_actions] = lambda: pending_actions
    app.dependency_overrides[get_delivery] = lambda: delivery
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sample_user_data() -> Dict:
    """Sample user data for testing."""
    return {
        "email": "alex@timekeeper.io",
        "password": "secure_password123",
        "full_name": "Alex Doe"
    }


@pytest.fixture
def sample_profile_data() -> Dict:
    """Sample billing profile data for testing."""
    return {
        "name": "Acme Consulting",
        "hourly_rate": "80.00"
    }


def register(client: TestClient, email: str, password: str = "secure_password123") -> Dict[str, str]:
    """Register a user and return its authorization headers."""
    response = client.post(f"{API}/auth/register", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth_headers(client, sample_user_data) -> Dict[str, str]:
    """Authorization headers for a freshly registered user (no PIN, PIN required)."""
    return register(client, sample_user_data["email"], sample_user_data["password"])


@pytest.fixture
def other_auth_headers(client) -> Dict[str, str]:
    """Authorization headers for a second, unrelated user."""
    return register(client, "sam@timekeeper.io")


@pytest.fixture
def open_headers(client, auth_headers) -> Dict[str, str]:
    """Headers for a user with PIN 1234 set and the PIN requirement turned off."""
    client.post(f"{API}/pin/setup", json={"pin": "1234", "confirm_pin": "1234"}, headers=auth_headers)
    client.put(f"{API}/pin/requirement", json={"require_pin": False}, headers=auth_headers)
    client.post(f"{API}/pin/verify", json={"pin": "1234"}, headers=auth_headers)
    status_response = client.get(f"{API}/pin/status", headers=auth_headers)
    assert status_response.json()["require_pin"] is False
    return auth_headers


@pytest.fixture
def pin_headers(client, auth_headers) -> Dict[str, str]:
    """Headers for a user with PIN 1234 set and required."""
    response = client.post(f"{API}/pin/setup", json={"pin": "1234", "confirm_pin": "1234"}, headers=auth_headers)
    assert response.status_code == 201
    return auth_headers


@pytest.fixture
def user(db_session) -> User:
    """A user stored directly in the database, with a default credential record."""
    user = User(
        email="casey@timekeeper.io",
        password_hash=PasswordHandler.hash_password("secure_password123"),
        full_name="Casey"
    )
    db_session.add(user)
    db_session.flush()
    db_session.add(PinCredential(user_id=user.id))
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def identity(user) -> CurrentUser:
    return CurrentUser(user_id=user.id, email=user.email)


@pytest.fixture
def store(db_session) -> CredentialStore:
    return CredentialStore(db_session)
