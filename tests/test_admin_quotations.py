"""
Tests for admin quotation management.
"""

from datetime import datetime
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, select

from app.core.config import settings
from app.models.activity import Activity
from app.models.quotation import Quotation
from app.models.user import User
from app.services.content_resolver import effective_validity_days

URL = f"{settings.API_PREFIX}/admin/quotations"


def test_create_quotation_starts_as_draft(client: TestClient, admin_headers: dict, session: Session) -> None:
    body = {
        "title": "Mobile App",
        "terms": ["50% upfront"],
        "clientName": "Jane",
        "clientEmail": "jane@client.com",
        "companyDetails": {"phone": "+44 20 0000"},
        "quantityPricing": [{"item": "Design", "quantity": 1, "rate": 500, "total": 500}],
    }
    response = client.post(URL, json=body, headers=admin_headers)
    assert response.status_code == 200
    quotation = response.json()["quotation"]
    assert quotation["status"] == "draft"
    assert quotation["companyDetails"]["phone"] == "+44 20 0000"
    assert quotation["statusTimeline"][0]["status"] == "draft"

    activity = session.exec(select(Activity).where(Activity.type == "admin_action")).one()
    assert activity.quotation_id == quotation["id"]


def test_create_requires_title_and_terms(client: TestClient, admin_headers: dict) -> None:
    response = client.post(URL, json={"title": "No terms"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Missing required fields: title and terms are required"


def test_create_with_unknown_associated_user(client: TestClient, admin_headers: dict) -> None:
    body = {"title": "T", "terms": ["x"], "associatedUserId": 9999}
    response = client.post(URL, json=body, headers=admin_headers)
    assert response.status_code == 404


def test_client_cannot_manage_quotations(client: TestClient, user_headers: dict) -> None:
    assert client.get(URL, headers=user_headers).status_code == 403
    assert client.post(URL, json={"title": "T", "terms": ["x"]}, headers=user_headers).status_code == 403


def test_list_includes_view_counts(client: TestClient, admin_headers: dict, make_quotation) -> None:
    viewed = make_quotation(title="Viewed")
    make_quotation(title="Unseen")
    for _ in range(2):
        client.post(f"{settings.API_PREFIX}/quotation/{viewed.id}/view", json={"isAuthenticated": False})

    response = client.get(URL, headers=admin_headers)
    assert response.status_code == 200
    counts = {q["title"]: q["viewCount"] for q in response.json()["quotations"]}
    assert counts == {"Viewed": 2, "Unseen": 0}


def test_get_unknown_quotation(client: TestClient, admin_headers: dict) -> None:
    response = client.get(f"{URL}/does-not-exist", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Quotation not found"


def test_update_only_changes_given_fields(client: TestClient, admin_headers: dict, make_quotation) -> None:
    quotation = make_quotation(status="draft", client_phone="555")
    response = client.put(f"{URL}/{quotation.id}", json={"title": "Renamed"}, headers=admin_headers)
    assert response.status_code == 200
    data = response.json()["quotation"]
    assert data["title"] == "Renamed"
    assert data["clientPhone"] == "555"
    assert data["terms"] == ["Quotation specific term"]


def test_update_rejects_unknown_status(client: TestClient, admin_headers: dict, make_quotation) -> None:
    quotation = make_quotation(status="draft")
    response = client.put(f"{URL}/{quotation.id}", json={"status": "archived", "title": "New"}, headers=admin_headers)
    assert response.status_code == 400
    assert client.get(f"{URL}/{quotation.id}", headers=admin_headers).json()["title"] == quotation.title


def test_sending_queues_client_email(client: TestClient, admin_headers: dict, make_quotation) -> None:
    quotation = make_quotation(status="draft")
    with patch("app.services.quotation_service.enqueue_task") as enqueue:
        response = client.put(f"{URL}/{quotation.id}", json={"status": "sent"}, headers=admin_headers)

    assert response.status_code == 200
    data = response.json()["quotation"]
    assert data["status"] == "sent"
    assert [entry["status"] for entry in data["statusTimeline"]] == ["sent"]
    enqueue.assert_called_once()
    assert enqueue.call_args.args[1] == "sent"
    assert enqueue.call_args.args[2] == "jane@client.com"


def test_editing_revision_returns_to_draft(client: TestClient, admin_headers: dict, make_quotation) -> None:
    quotation = make_quotation(status="revision")
    response = client.put(f"{URL}/{quotation.id}", json={"title": "Reworked"}, headers=admin_headers)
    assert response.status_code == 200
    data = response.json()["quotation"]
    assert data["status"] == "draft"
    assert data["actions"][-1]["action"] == "revision"
    assert data["actions"][-1]["reason"] == "Admin updated quotation based on revision request"


def test_email_failure_does_not_fail_update(client: TestClient, admin_headers: dict, make_quotation) -> None:
    quotation = make_quotation(status="draft")
    with patch("app.services.quotation_service.enqueue_task", side_effect=ConnectionError("redis down")):
        response = client.put(f"{URL}/{quotation.id}", json={"status": "sent"}, headers=admin_headers)
    assert response.status_code == 200


def test_delete_quotation(client: TestClient, admin_headers: dict, make_quotation, session: Session) -> None:
    quotation = make_quotation()
    quotation_id = quotation.id
    response = client.delete(f"{URL}/{quotation_id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert session.get(Quotation, quotation_id) is None
    assert client.delete(f"{URL}/{quotation_id}", headers=admin_headers).status_code == 404


def test_export_quotations(client: TestClient, admin_headers: dict, make_quotation) -> None:
    make_quotation(
        title='The "Big" One',
        quotation_no="Q-001",
        quantity_pricing=[{"total": 1200}, {"total": 300}],
    )
    response = client.get(f"{URL}/export", headers=admin_headers)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="quotations_' in response.headers["content-disposition"]

    header, row = response.text.split("\n")
    assert header.startswith('"Quotation Number","Title","Client Name"')
    assert row.startswith('"Q-001","The ""Big"" One","Jane Client","jane@client.com","sent","USD","1500.00","0"')


def test_export_without_quotations(client: TestClient, admin_headers: dict) -> None:
    response = client.get(f"{URL}/export", headers=admin_headers)
    assert response.status_code == 404


def test_associated_user_is_checked_on_update(
    client: TestClient, admin_headers: dict, make_quotation, test_user: User
) -> None:
    quotation = make_quotation(status="draft")
    ok = client.put(f"{URL}/{quotation.id}", json={"associatedUserId": test_user.id}, headers=admin_headers)
    assert ok.status_code == 200
    assert ok.json()["quotation"]["associatedUserId"] == test_user.id

    missing = client.put(f"{URL}/{quotation.id}", json={"associatedUserId": 4242}, headers=admin_headers)
    assert missing.status_code == 404


@pytest.mark.parametrize(
    "field,value",
    [
        ("quotationValidity", -5),
        ("quotationValidity", 0),
        ("quotationValidity", 366),
        ("currency", "EUR"),
        ("templateType", "bogus"),
    ],
)
def test_create_rejects_out_of_range_values(
    client: TestClient, admin_headers: dict, session: Session, field: str, value
) -> None:
    body = {"title": "Mobile App", "terms": ["50% upfront"], field: value}
    response = client.post(URL, json=body, headers=admin_headers)
    assert response.status_code == 422
    assert session.exec(select(Quotation)).all() == []


def test_create_stores_plain_enum_values(client: TestClient, admin_headers: dict, session: Session) -> None:
    body = {
        "title": "Mobile App",
        "terms": ["50% upfront"],
        "currency": "INR",
        "templateType": "dashboard",
        "quotationValidity": 45,
    }
    response = client.post(URL, json=body, headers=admin_headers)
    assert response.status_code == 200
    data = response.json()["quotation"]
    assert data["currency"] == "INR"
    assert data["templateType"] == "dashboard"

    stored = session.get(Quotation, data["id"])
    assert stored.currency == "INR"
    assert stored.template_type == "dashboard"
    assert stored.quotation_validity == 45


def test_update_rejects_out_of_range_validity(client: TestClient, admin_headers: dict, make_quotation) -> None:
    quotation = make_quotation(status="draft", quotation_validity=30)
    response = client.put(f"{URL}/{quotation.id}", json={"quotationValidity": 9999}, headers=admin_headers)
    assert response.status_code == 422
    assert client.get(f"{URL}/{quotation.id}", headers=admin_headers).json()["quotationValidity"] == 30


@pytest.mark.parametrize("field", ["currency", "templateType", "features", "processSteps"])
def test_update_rejects_null_for_required_columns(
    client: TestClient, admin_headers: dict, make_quotation, field: str
) -> None:
    quotation = make_quotation(status="draft")
    response = client.put(f"{URL}/{quotation.id}", json={field: None}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == f"{field} cannot be null"


def test_update_allows_null_for_optional_fields(client: TestClient, admin_headers: dict, make_quotation) -> None:
    quotation = make_quotation(status="draft", client_phone="555")
    response = client.put(f"{URL}/{quotation.id}", json={"clientPhone": None}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["quotation"]["clientPhone"] is None


def test_dates_with_offsets_are_stored_in_utc(client: TestClient, admin_headers: dict, session: Session) -> None:
    body = {
        "title": "Mobile App",
        "terms": ["50% upfront"],
        "quotationDate": "2024-01-02T03:00:00+05:30",
        "expirationDate": "2024-01-11T22:00:00Z",
    }
    response = client.post(URL, json=body, headers=admin_headers)
    assert response.status_code == 200

    session.expire_all()
    stored = session.get(Quotation, response.json()["quotation"]["id"])
    assert stored.quotation_date.replace(tzinfo=None) == datetime(2024, 1, 1, 21, 30)
    # 10 days and 30 minutes apart once both are in UTC
    assert effective_validity_days(stored) == 11
