# tests/api/test_agent_api.py

import pytest
from fastapi.testclient import TestClient

from campaign_portal.core.config import settings
from campaign_portal.models.enums import CampaignStatus

from tests.utils.auth import get_agent_headers
from tests.utils.factories import create_agent, create_campaign, create_slot, create_tier


@pytest.fixture
def agent(db):
    return create_agent(db, create_tier(db, limit=3, reward_amount="20.00"))


@pytest.fixture
def headers(agent):
    return get_agent_headers(agent.user_id)


def test_unknown_agent_identity(client: TestClient):
    response = client.get("/api/agent/invitations", headers=get_agent_headers("not-provisioned"))
    assert response.status_code == 404
    assert response.json()["code"] == "AGENT_NOT_FOUND"


def test_open_campaigns_hide_inactive_slots(client: TestClient, db, headers):
    campaign = create_campaign(db)
    open_slot = create_slot(db, campaign, day_of_week=1)
    create_slot(db, campaign, is_active=False, day_of_week=3)
    create_slot(db, create_campaign(db, status=CampaignStatus.DRAFT))

    response = client.get("/api/agent/campaigns", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert [c["id"] for c in body] == [campaign.id]
    assert [s["id"] for s in body[0]["slots"]] == [open_slot.id]


def test_create_invitations_and_quota(client: TestClient, db, headers):
    slot = create_slot(db, create_campaign(db))

    response = client.post(
        "/api/agent/invitations",
        json={"slot_id": slot.id, "capacity_type": "agent", "count": 2},
        headers=headers,
    )

    assert response.status_code == 201
    invitations = response.json()
    assert len(invitations) == 2
    for invitation in invitations:
        assert invitation["status"] == "pending"
        assert invitation["registration_url"].startswith(settings.REGISTRATION_BASE_URL)
        assert invitation["registration_url"].endswith(invitation["unique_token"])

    quota = client.get(f"/api/agent/slots/{slot.id}/quota", headers=headers).json()
    assert quota == {"slot_id": slot.id, "limit": 3, "used": 2, "remaining": 1}

    over = client.post(
        "/api/agent/invitations",
        json={"slot_id": slot.id, "capacity_type": "agent", "count": 2},
        headers=headers,
    )
    assert over.status_code == 409
    assert over.json()["code"] == "QUOTA_EXCEEDED"
    assert over.json()["details"] == {"requested": 2, "remaining": 1}

    mine = client.get("/api/agent/invitations", headers=headers).json()
    assert len(mine) == 2
    assert mine[0]["slot"]["campaign"]["venue"] == "Level 5 Auditorium"


def test_inactive_slot_precondition(client: TestClient, db, headers):
    slot = create_slot(db, create_campaign(db), is_active=False)

    response = client.post(
        "/api/agent/invitations",
        json={"slot_id": slot.id, "capacity_type": "agent", "count": 1},
        headers=headers,
    )

    assert response.status_code == 412
    assert response.json()["kind"] == "precondition_failed"
    assert response.json()["code"] == "SLOT_INACTIVE"


def test_batch_size_validated(client: TestClient, db, headers):
    slot = create_slot(db, create_campaign(db))

    response = client.post(
        "/api/agent/invitations",
        json={"slot_id": slot.id, "capacity_type": "agent", "count": 0},
        headers=headers,
    )
    assert response.status_code == 422


def test_rewards_estimate(client: TestClient, headers):
    response = client.get("/api/agent/rewards", headers=headers)

    assert response.status_code == 200
    assert response.json()["source"] == "estimate"
    assert response.json()["reward_amount"] == 20.0
