"""
Tests for the signed-in client dashboard.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, select

from app.core.config import settings
from app.models.activity import Activity, ActivityType
from app.models.user import User
from app.schemas.user import UserCreate
from app.services.activity_service import ActivityService
from app.services.user_service import UserService

CLIENT = f"{settings.API_PREFIX}/client"
MY_EMAIL = "client@example.com"


@pytest.fixture(name="other_client")
def other_client_fixture(session: Session) -> User:
    return UserService.create(
        session,
        UserCreate(email="other@example.com", password="otherpassword123", full_name="Other Client"),
    )


def _action(client: TestClient, quotation_id: str, headers: dict, **body):
    with patch("app.services.quotation_service.enqueue_task") as enqueue:
        response = client.post(f"{CLIENT}/user/quotation/{quotation_id}/action", json=body, headers=headers)
    return response, enqueue


class TestMyQuotations:
    def test_lists_own_non_draft_quotations(
        self, client: TestClient, user_headers: dict, test_user: User, make_quotation
    ) -> None:
        now = datetime.now(timezone.utc)
        older = make_quotation(title="Older", client_email=MY_EMAIL, created_at=now - timedelta(days=2))
        newer = make_quotation(title="Newer", client_email="CLIENT@example.com", created_at=now - timedelta(days=1))
        linked = make_quotation(
            title="Linked", client_email="someone@else.com", associated_user_id=test_user.id, created_at=now
        )
        make_quotation(title="Draft", client_email=MY_EMAIL, status="draft")
        make_quotation(title="Not mine", client_email="someone@else.com")

        response = client.get(f"{CLIENT}/user/quotations", headers=user_headers)
        assert response.status_code == 200
        ids = [q["id"] for q in response.json()["quotations"]]
        assert ids == [linked.id, newer.id, older.id]

    def test_admin_is_refused(self, client: TestClient, admin_headers: dict) -> None:
        assert client.get(f"{CLIENT}/user/quotations", headers=admin_headers).status_code == 403

    def test_requires_sign_in(self, client: TestClient) -> None:
        assert client.get(f"{CLIENT}/user/quotations").status_code == 401


class TestClientAction:
    def test_accept(
        self, client: TestClient, user_headers: dict, test_user: User, make_quotation, session: Session
    ) -> None:
        quotation = make_quotation(client_email=MY_EMAIL)
        response, enqueue = _action(
            client, quotation.id, {**user_headers, "x-real-ip": "192.0.2.5"}, action="accept"
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "status": "accepted"}
        enqueue.assert_called_once()
        assert enqueue.call_args.args[1] == "accepted"

        session.refresh(quotation)
        assert quotation.status == "accepted"
        assert quotation.actions[-1]["action"] == "accept"
        assert quotation.status_timeline[-1]["status"] == "accepted"

        activity = session.exec(select(Activity).where(Activity.type == "quotation_action")).one()
        assert activity.user_id == str(test_user.id)
        assert activity.user_email == MY_EMAIL
        assert activity.ip_address == "192.0.2.5"
        assert activity.details["isAuthenticated"] is True  # type: ignore[index]

    def test_fills_missing_client_details(
        self, client: TestClient, user_headers: dict, test_user: User, make_quotation, session: Session
    ) -> None:
        quotation = make_quotation(client_name=None, client_email=None, associated_user_id=test_user.id)
        response, _ = _action(client, quotation.id, user_headers, action="reject", reason="Too expensive")

        assert response.status_code == 200
        assert response.json()["status"] == "rejected"
        session.refresh(quotation)
        assert quotation.client_name == "Client User"
        assert quotation.client_email == MY_EMAIL
        assert quotation.actions[-1]["reason"] == "Too expensive"

    def test_revision_quotation_can_be_answered(
        self, client: TestClient, user_headers: dict, make_quotation
    ) -> None:
        quotation = make_quotation(client_email=MY_EMAIL, status="revision")
        response, _ = _action(client, quotation.id, user_headers, action="accept")
        assert response.status_code == 200
        assert response.json()["status"] == "accepted"

    @pytest.mark.parametrize(
        "body,detail",
        [
            ({"action": "approve"}, "Invalid action"),
            ({"action": "reject"}, "Reason required for reject/revision"),
            ({"action": "revision", "reason": ""}, "Reason required for reject/revision"),
        ],
    )
    def test_invalid_requests(
        self, client: TestClient, user_headers: dict, make_quotation, body: dict, detail: str
    ) -> None:
        quotation = make_quotation(client_email=MY_EMAIL)
        response, enqueue = _action(client, quotation.id, user_headers, **body)
        assert response.status_code == 400
        assert response.json()["detail"] == detail
        enqueue.assert_not_called()

    @pytest.mark.parametrize("current", ["draft", "accepted", "rejected"])
    def test_status_must_be_open(
        self, client: TestClient, user_headers: dict, make_quotation, session: Session, current: str
    ) -> None:
        quotation = make_quotation(client_email=MY_EMAIL, status=current)
        response, _ = _action(client, quotation.id, user_headers, action="accept")
        assert response.status_code == 400
        assert response.json()["detail"] == "Quotation not available for actions"
        session.refresh(quotation)
        assert quotation.status == current

    def test_other_clients_quotation(
        self, client: TestClient, user_headers: dict, make_quotation, session: Session
    ) -> None:
        quotation = make_quotation(client_email="someone@else.com")
        response, enqueue = _action(client, quotation.id, user_headers, action="accept")
        assert response.status_code == 403
        assert response.json()["detail"] == "Not authorized for this quotation"
        enqueue.assert_not_called()
        session.refresh(quotation)
        assert quotation.status == "sent"

    def test_unknown_quotation(self, client: TestClient, user_headers: dict) -> None:
        response, _ = _action(client, "missing", user_headers, action="accept")
        assert response.status_code == 404

    def test_admin_is_refused(self, client: TestClient, admin_headers: dict, make_quotation) -> None:
        quotation = make_quotation(client_email="admin@example.com")
        response, _ = _action(client, quotation.id, admin_headers, action="accept")
        assert response.status_code == 403


class TestStats:
    def _seed(self, make_quotation) -> None:
        for status in ("sent", "sent", "sent", "accepted", "accepted", "draft"):
            make_quotation(client_email=MY_EMAIL, status=status)
        make_quotation(client_email="someone@else.com", status="sent")
        make_quotation(client_email="someone@else.com", status="draft")

    def test_client_counts_own_quotations(self, client: TestClient, user_headers: dict, make_quotation) -> None:
        self._seed(make_quotation)
        response = client.get(f"{CLIENT}/quotations/stats", headers=user_headers)
        assert response.status_code == 200
        assert response.json() == {"total": 5, "sent": 3, "accepted": 2, "draft": 0, "acceptanceRate": 67}

    def test_admin_counts_everything(self, client: TestClient, admin_headers: dict, make_quotation) -> None:
        self._seed(make_quotation)
        data = client.get(f"{CLIENT}/quotations/stats", headers=admin_headers).json()
        assert data == {"total": 8, "sent": 4, "accepted": 2, "draft": 2, "acceptanceRate": 50}

    def test_no_sent_quotations(self, client: TestClient, user_headers: dict) -> None:
        data = client.get(f"{CLIENT}/quotations/stats", headers=user_headers).json()
        assert data == {"total": 0, "sent": 0, "accepted": 0, "draft": 0, "acceptanceRate": 0}

    def test_requires_sign_in(self, client: TestClient) -> None:
        assert client.get(f"{CLIENT}/quotations/stats").status_code == 401


class TestMyActivities:
    def test_only_own_activity(
        self, client: TestClient, user_headers: dict, test_user: User, other_client: User, session: Session
    ) -> None:
        service = ActivityService(session)
        service.record(ActivityType.QUOTATION_VIEWED, "Viewed Alpha", user_id=str(test_user.id))
        service.record(ActivityType.QUOTATION_ACTION, "Accepted Alpha", user_id=str(test_user.id))
        service.record(ActivityType.QUOTATION_ACTION, "Accepted Beta", user_id=str(other_client.id))

        response = client.get(f"{CLIENT}/activities", headers=user_headers)
        assert response.status_code == 200
        data = response.json()
        descriptions = {a["description"] for a in data["activities"]}
        # the login that issued the token is listed too
        assert data["total"] == 3
        assert {"Viewed Alpha", "Accepted Alpha"} <= descriptions
        assert "Accepted Beta" not in descriptions
        assert all(a["userId"] == str(test_user.id) for a in data["activities"])

    def test_filters(self, client: TestClient, user_headers: dict, test_user: User, session: Session) -> None:
        service = ActivityService(session)
        early = service.record(ActivityType.QUOTATION_ACTION, "Accepted Alpha", user_id=str(test_user.id), commit=False)
        early.created_at = datetime(2024, 2, 1, tzinfo=timezone.utc)
        late = service.record(ActivityType.QUOTATION_ACTION, "Rejected Beta", user_id=str(test_user.id), commit=False)
        late.created_at = datetime(2024, 2, 20, tzinfo=timezone.utc)
        session.commit()

        by_date = client.get(
            f"{CLIENT}/activities",
            params={"type": "quotation_action", "startDate": "2024-02-10T00:00:00Z"},
            headers=user_headers,
        ).json()
        assert [a["description"] for a in by_date["activities"]] == ["Rejected Beta"]

        searched = client.get(f"{CLIENT}/activities", params={"search": "alpha"}, headers=user_headers).json()
        assert [a["description"] for a in searched["activities"]] == ["Accepted Alpha"]

    def test_admin_is_refused(self, client: TestClient, admin_headers: dict) -> None:
        assert client.get(f"{CLIENT}/activities", headers=admin_headers).status_code == 403
