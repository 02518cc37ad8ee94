"""
Pytest configuration and fixtures.
Provides test database, client, users, tokens and quotation helpers.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("DISABLE_BOOTSTRAP_USERS", "true")

from datetime import datetime, timezone
from typing import Any, Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from app.core.config import settings
from app.db.session import get_session
from app.main import app
from app.models.quotation import Quotation
from app.models.standard_content import StandardContent
from app.models.user import User, UserRole
from app.schemas.user import UserCreate
from app.services.user_service import UserService

API = settings.API_PREFIX


@pytest.fixture(name="session")
def session_fixture() -> Generator[Session, None, None]:
    """
    Create a test database session.
    Uses an in-memory SQLite database for fast tests.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)

    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session) -> Generator[TestClient, None, None]:
    """
    Create a test client with dependency overrides.
    """

    def get_session_override() -> Generator[Session, None, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(name="test_user")
def test_user_fixture(session: Session) -> User:
    """A client account."""
    user_create = UserCreate(
        email="client@example.com",
        password="clientpassword123",
        full_name="Client User",
    )
    return UserService.create(session, user_create)


@pytest.fixture(name="test_admin")
def test_admin_fixture(session: Session) -> User:
    user_create = UserCreate(
        email="admin@example.com",
        password="adminpassword123",
        full_name="Admin User",
    )
    return UserService.create(session, user_create, role=UserRole.ADMIN)


def _login(client: TestClient, email: str, password: str) -> str:
    response = client.post(
        f"{API}/auth/login",
        data={"username": email, "password": password},
    )
    assert response.status_code == 200
    return response.json()["access_token"]


@pytest.fixture(name="user_token")
def user_token_fixture(client: TestClient, test_user: User) -> str:
    return _login(client, "client@example.com", "clientpassword123")


@pytest.fixture(name="admin_token")
def admin_token_fixture(client: TestClient, test_admin: User) -> str:
    return _login(client, "admin@example.com", "adminpassword123")


@pytest.fixture(name="admin_headers")
def admin_headers_fixture(admin_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture(name="user_headers")
def user_headers_fixture(user_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {user_token}"}


@pytest.fixture(name="make_quotation")
def make_quotation_fixture(session: Session) -> Callable[..., Quotation]:
    """Factory storing a quotation; keyword arguments override the defaults."""

    def _make(**overrides: Any) -> Quotation:
        values: dict[str, Any] = {
            "title": "Website Redesign",
            "status": "sent",
            "terms": ["Quotation specific term"],
            "client_name": "Jane Client",
            "client_email": "jane@client.com",
            "quotation_date": datetime(2024, 1, 1, tzinfo=timezone.utc),
        }
        values.update(overrides)
        quotation = Quotation(**values)
        session.add(quotation)
        session.commit()
        session.refresh(quotation)
        return quotation

    return _make


@pytest.fixture(name="standard_content")
def standard_content_fixture(session: Session) -> StandardContent:
    content = StandardContent(
        company_details={
            "name": "Acme Studio",
            "email": "hello@acme.test",
            "phone": "+1 (555) 010-2000",
            "website": "acme.test",
            "tagline": "We build things",
        },
        default_terms="Payment: 50% upfront\n\nDelivery in 30 days\n",
        process_steps=[{"step": 1, "title": "Discovery", "description": "Understand the brief"}],
        process_video="https://video.test/process",
        testimonials=[{"name": "Sam", "company": "Co", "message": "Great", "rating": 5}],
    )
    session.add(content)
    session.commit()
    session.refresh(content)
    return content
