# tests/services/test_session.py

import pytest
from sqlalchemy.exc import OperationalError

from campaign_portal.core.exceptions import Conflict, NotRegistered, StoreFailure
from campaign_portal.db.session import transaction
from campaign_portal.models import Agent, Tier

from tests.utils.factories import create_agent


def _duplicate_of(agent: Agent) -> Agent:
    return Agent(
        user_id="someone_else",
        name="Copy",
        email="copy@example.com",
        agent_code=agent.agent_code,
        tier_id=agent.tier_id,
    )


def test_transaction_commits(db):
    with transaction(db):
        db.add(Tier(name="Silver", role_type="agent", reward_amount=10, invitation_limit_per_slot=3))

    db.expire_all()
    assert db.query(Tier).count() == 1


def test_portal_error_rolls_back(db):
    with pytest.raises(NotRegistered):
        with transaction(db):
            db.add(Tier(name="Silver", role_type="agent", reward_amount=10, invitation_limit_per_slot=3))
            db.flush()
            raise NotRegistered()

    assert db.query(Tier).count() == 0


def test_integrity_error_translated(db):
    agent = create_agent(db)

    with pytest.raises(Conflict, match="taken"):
        with transaction(db, lambda e: Conflict("taken")):
            db.add(_duplicate_of(agent))

    assert db.query(Agent).count() == 1


def test_integrity_error_without_translator_is_store_failure(db):
    agent = create_agent(db)

    with pytest.raises(StoreFailure):
        with transaction(db):
            db.add(_duplicate_of(agent))


def test_database_error_is_store_failure(db):
    def broken():
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    with pytest.raises(StoreFailure) as exc_info:
        with transaction(db):
            broken()

    assert exc_info.value.status_code == 503
