"""
Tests for the legacy quotation URLs.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests
from fastapi.testclient import TestClient
from requests.structures import CaseInsensitiveDict
from sqlmodel import Session, select

from app.core.config import settings
from app.models.activity import Activity
from app.services.legacy_proxy import canonical_target, forward_request

LEGACY = f"{settings.API_PREFIX}/quotation"
CANONICAL = f"http://testserver{settings.API_PREFIX}/client/quotation"


def _upstream(status_code: int = 200, content: bytes = b'{"ok":true}', headers: dict | None = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    response.headers = CaseInsensitiveDict(headers or {"Content-Type": "application/json"})
    return response


@pytest.fixture(name="upstream")
def upstream_fixture():
    with patch("app.services.legacy_proxy.requests.request", return_value=_upstream()) as mock_request:
        yield mock_request


def test_action_post_forwarded_verbatim(client: TestClient, upstream: MagicMock) -> None:
    response = client.post(
        f"{LEGACY}/123/action",
        content='{"action":"accept"}',
        headers={"X-Test": "1", "Content-Type": "application/json"},
    )
    assert response.status_code == 200
    assert response.json() == {"ok": True}

    upstream.assert_called_once()
    method, url = upstream.call_args.args
    kwargs = upstream.call_args.kwargs
    assert method == "POST"
    assert url == f"{CANONICAL}/123/action"
    assert kwargs["headers"]["x-test"] == "1"
    assert kwargs["data"] == b'{"action":"accept"}'
    assert kwargs["timeout"] == settings.LEGACY_FORWARD_TIMEOUT_SECONDS
    assert kwargs["allow_redirects"] is False


def test_action_put_forwarded(client: TestClient, upstream: MagicMock) -> None:
    client.put(f"{LEGACY}/abc/action", json={"otp": "123456"})
    method, url = upstream.call_args.args
    assert method == "PUT"
    assert url == f"{CANONICAL}/abc/action"


def test_get_keeps_query_string(client: TestClient, upstream: MagicMock) -> None:
    response = client.get(f"{LEGACY}/abc?ref=email&lang=en")
    assert response.status_code == 200

    method, url = upstream.call_args.args
    assert method == "GET"
    assert url == f"{CANONICAL}/abc?ref=email&lang=en"
    assert upstream.call_args.kwargs["data"] is None


def test_writes_on_base_path_go_to_action(client: TestClient, upstream: MagicMock) -> None:
    client.post(f"{LEGACY}/abc?ignored=1", json={"action": "accept"})
    assert upstream.call_args.args == ("POST", f"{CANONICAL}/abc/action")


def test_upstream_response_passed_through(client: TestClient) -> None:
    reply = _upstream(
        status_code=404,
        content=b'{"detail":"Quotation not available"}',
        headers={"Content-Type": "application/json", "X-Upstream": "yes", "Content-Encoding": "gzip"},
    )
    with patch("app.services.legacy_proxy.requests.request", return_value=reply):
        response = client.get(f"{LEGACY}/abc")

    assert response.status_code == 404
    assert response.json() == {"detail": "Quotation not available"}
    assert response.headers["x-upstream"] == "yes"
    assert "content-encoding" not in response.headers


def test_unreachable_upstream_is_bad_gateway(client: TestClient) -> None:
    with patch(
        "app.services.legacy_proxy.requests.request",
        side_effect=requests.ConnectionError("connection refused"),
    ):
        response = client.post(f"{LEGACY}/abc/action", json={"action": "accept"})
    assert response.status_code == 502


def test_upstream_timeout_is_bad_gateway(client: TestClient) -> None:
    with patch("app.services.legacy_proxy.requests.request", side_effect=requests.Timeout("slow")):
        response = client.get(f"{LEGACY}/abc")
    assert response.status_code == 502


def test_other_methods_not_allowed(client: TestClient, upstream: MagicMock) -> None:
    assert client.delete(f"{LEGACY}/abc").status_code == 405
    assert client.get(f"{LEGACY}/abc/action").status_code == 405
    upstream.assert_not_called()


def test_view_tracking(client: TestClient, session: Session, make_quotation) -> None:
    quotation = make_quotation()
    response = client.post(
        f"{LEGACY}/{quotation.id}/view",
        json={"isAuthenticated": True, "userEmail": "viewer@example.com", "userName": "Viewer"},
        headers={"x-real-ip": "198.51.100.7"},
    )
    assert response.status_code == 200
    assert response.json() == {"success": True}

    activity = session.exec(select(Activity)).one()
    assert activity.type == "quotation_viewed"
    assert activity.description == f"User Viewer viewed quotation: {quotation.title}"
    assert activity.ip_address == "198.51.100.7"
    assert activity.details["viewSource"] == "public_url"  # type: ignore[index]


def test_view_tracking_unknown_quotation(client: TestClient) -> None:
    assert client.post(f"{LEGACY}/missing/view", json={}).status_code == 404


def test_canonical_target() -> None:
    assert canonical_target("https://q.example", "7", "GET", "a=1") == "https://q.example/api/client/quotation/7?a=1"
    assert canonical_target("https://q.example", "7", "GET") == "https://q.example/api/client/quotation/7"
    assert canonical_target("https://q.example", "7", "PUT", "a=1") == "https://q.example/api/client/quotation/7/action"


def test_forward_request_rejects_other_methods() -> None:
    with pytest.raises(ValueError):
        forward_request("DELETE", "http://upstream.test/x", {})
