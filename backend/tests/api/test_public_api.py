# tests/api/test_public_api.py

import pytest
from fastapi.testclient import TestClient

from tests.utils.factories import create_agent, create_campaign, create_invitation, create_pins, create_slot

REGISTRATION = {
    "invitee_name": "Jane Tan",
    "invitee_nric": "s1234567a",
    "invitee_phone": "9123 4567",
    "invitee_email": "jane@example.com",
    "invitee_occupation": "Engineer",
}


@pytest.fixture
def slot(db):
    return create_slot(db, create_campaign(db))


@pytest.fixture
def invitation(db, slot):
    return create_invitation(db, create_agent(db), slot)


def test_resolve_registration_link(client: TestClient, invitation, slot):
    response = client.get(f"/api/public/register/{invitation.unique_token}")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "pending"
    assert body["slot"]["id"] == slot.id
    assert body["slot"]["campaign"]["venue"] == "Level 5 Auditorium"


def test_unknown_registration_link(client: TestClient):
    response = client.get("/api/public/register/no-such-token")

    assert response.status_code == 404
    assert response.json()["code"] == "INVALID_TOKEN"


def test_register_once(client: TestClient, invitation):
    url = f"/api/public/register/{invitation.unique_token}"

    response = client.post(url, json=REGISTRATION)
    assert response.status_code == 200
    assert response.json()["invitation_id"] == invitation.id

    again = client.post(url, json=REGISTRATION)
    assert again.status_code == 409
    assert again.json()["code"] == "TOKEN_ALREADY_USED"
    assert client.get(url).status_code == 409


def test_register_duplicate_nric(client: TestClient, db, invitation, slot):
    other = create_invitation(db, invitation.agent, slot)
    client.post(f"/api/public/register/{invitation.unique_token}", json=REGISTRATION)

    response = client.post(
        f"/api/public/register/{other.unique_token}",
        json={**REGISTRATION, "invitee_phone": "87654321"},
    )

    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_IDENTITY"
    assert response.json()["details"] == {"field": "nric"}


def test_register_validation(client: TestClient, invitation):
    response = client.post(
        f"/api/public/register/{invitation.unique_token}",
        json={**REGISTRATION, "invitee_email": "not-an-email"},
    )
    assert response.status_code == 422


def test_check_in_and_out(client: TestClient, db, invitation, slot):
    create_pins(db, slot, ["123456"])
    client.post(f"/api/public/register/{invitation.unique_token}", json=REGISTRATION)
    credentials = {"pin_code": "123456", "nric": "S1234567A"}

    checked_in = client.post("/api/public/check-in", params={"slot": slot.id}, json=credentials)
    assert checked_in.status_code == 200
    assert checked_in.json()["invitation_status"] == "attended"
    assert checked_in.json()["attendee_name"] == "Jane Tan"
    assert checked_in.json()["checkout_time"] is None

    checked_out = client.post("/api/public/check-out", params={"slot": slot.id}, json=credentials)
    assert checked_out.status_code == 200
    assert checked_out.json()["invitation_status"] == "completed"
    assert checked_out.json()["is_full_attendance"] is True

    again = client.post("/api/public/check-out", params={"slot": slot.id}, json=credentials)
    assert again.status_code == 409
    assert again.json()["code"] == "ALREADY_CHECKED_OUT"


def test_check_out_before_check_in(client: TestClient, db, invitation, slot):
    create_pins(db, slot, ["123456"])
    client.post(f"/api/public/register/{invitation.unique_token}", json=REGISTRATION)

    response = client.post(
        "/api/public/check-out", params={"slot": slot.id}, json={"pin_code": "123456", "nric": "S1234567A"}
    )

    assert response.status_code == 412
    assert response.json()["code"] == "NOT_CHECKED_IN"


def test_check_in_invalid_pin(client: TestClient, slot):
    response = client.post(
        "/api/public/check-in", params={"slot": slot.id}, json={"pin_code": "000000", "nric": "S1234567A"}
    )

    assert response.status_code == 404
    assert response.json()["code"] == "INVALID_PIN"


def test_check_in_request_validation(client: TestClient, slot):
    bad_pin = client.post(
        "/api/public/check-in", params={"slot": slot.id}, json={"pin_code": "12ab56", "nric": "S1234567A"}
    )
    assert bad_pin.status_code == 422

    missing_slot = client.post("/api/public/check-in", json={"pin_code": "123456", "nric": "S1234567A"})
    assert missing_slot.status_code == 422
