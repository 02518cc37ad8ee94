"""
Tests for user endpoints.
"""

from fastapi.testclient import TestClient

from app.core.config import settings
from app.models.user import User


def test_get_current_user(client: TestClient, user_headers: dict, test_user: User) -> None:
    """Test getting current user profile."""
    response = client.get(f"{settings.API_PREFIX}/users/me", headers=user_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["email"] == test_user.email
    assert data["id"] == test_user.id


def test_get_current_user_unauthorized(client: TestClient) -> None:
    """Test that accessing profile without token fails."""
    response = client.get(f"{settings.API_PREFIX}/users/me")
    assert response.status_code == 401


def test_list_users_as_admin(client: TestClient, admin_headers: dict, test_user: User) -> None:
    response = client.get(f"{settings.API_PREFIX}/admin/users", headers=admin_headers)
    assert response.status_code == 200
    emails = {user["email"] for user in response.json()}
    assert emails == {"admin@example.com", "client@example.com"}


def test_list_users_as_client(client: TestClient, user_headers: dict) -> None:
    """Clients cannot reach admin routes."""
    response = client.get(f"{settings.API_PREFIX}/admin/users", headers=user_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Not enough permissions"


def test_export_users(client: TestClient, admin_headers: dict, test_user: User) -> None:
    response = client.get(f"{settings.API_PREFIX}/admin/users/export", headers=admin_headers)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="users_' in response.headers["content-disposition"]

    lines = response.text.split("\n")
    assert lines[0] == '"Name","Email","Role","Active","Created Date"'
    assert len(lines) == 3
    assert any('"Client User","client@example.com","client","Yes"' in line for line in lines[1:])
