import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from campaign_portal.core.exceptions import AgentNotFound, Conflict, ResourceInUse, TierNotFound
from campaign_portal.db.session import transaction
from campaign_portal.models import Agent, Invitation, Tier
from campaign_portal.models.enums import AgentStatus
from campaign_portal.schemas import AgentCreate, AgentUpdate, TierCreate, TierUpdate
from campaign_portal.services.common import changed_fields

logger = logging.getLogger(__name__)


def _agent_conflict(e: IntegrityError) -> Conflict:
    detail = str(e.orig)
    if "agent_code" in detail:
        return Conflict("Agent code is already in use")
    if "user_id" in detail:
        return Conflict("This identity is already linked to an agent")
    return Conflict("Agent conflicts with an existing record")


def _tier_in_use(e: IntegrityError) -> ResourceInUse:
    return ResourceInUse("tier", "agents")


def _agent_in_use(e: IntegrityError) -> ResourceInUse:
    return ResourceInUse("agent", "invitations")


class AgentService:
    # ------------------------------------------------------------------ tiers

    def create_tier(self, db: Session, data: TierCreate) -> Tier:
        tier = Tier(
            name=data.name,
            role_type=data.role_type.value,
            reward_amount=data.reward_amount,
            invitation_limit_per_slot=data.invitation_limit_per_slot,
        )
        with transaction(db):
            db.add(tier)
        logger.info(f"🏷️ Created tier {tier.id} ({tier.name})")
        return tier

    def list_tiers(self, db: Session) -> List[Tier]:
        return db.query(Tier).order_by(Tier.role_type.asc(), Tier.name.asc()).all()

    def get_tier(self, db: Session, tier_id: str) -> Tier:
        tier = db.get(Tier, tier_id)
        if tier is None:
            raise TierNotFound()
        return tier

    def update_tier(self, db: Session, tier_id: str, data: TierUpdate) -> Tier:
        changes = changed_fields(data)
        with transaction(db):
            tier = self.get_tier(db, tier_id)
            for field, value in changes.items():
                setattr(tier, field, value)
        db.refresh(tier)
        logger.info(f"🏷️ Updated tier {tier_id}: {sorted(changes)}")
        return tier

    def delete_tier(self, db: Session, tier_id: str) -> None:
        with transaction(db, _tier_in_use):
            tier = self.get_tier(db, tier_id)
            if db.query(Agent.id).filter(Agent.tier_id == tier_id).first():
                raise ResourceInUse("tier", "agents")
            db.delete(tier)
        logger.info(f"🗑️ Deleted tier {tier_id}")

    # ----------------------------------------------------------------- agents

    def create(self, db: Session, data: AgentCreate) -> Agent:
        self.get_tier(db, data.tier_id)
        agent = Agent(**data.model_dump(), status=AgentStatus.ACTIVE.value)
        with transaction(db, _agent_conflict):
            db.add(agent)
        logger.info(f"🧑‍💼 Created agent {agent.id} ({agent.agent_code})")
        return agent

    def list(self, db: Session) -> List[Agent]:
        return (
            db.query(Agent)
            .options(joinedload(Agent.tier))
            .order_by(Agent.created_at.desc())
            .all()
        )

    def get(self, db: Session, agent_id: str) -> Agent:
        agent = db.get(Agent, agent_id)
        if agent is None:
            raise AgentNotFound()
        return agent

    def get_by_user_id(self, db: Session, user_id: str) -> Optional[Agent]:
        return (
            db.query(Agent)
            .options(joinedload(Agent.tier))
            .filter(Agent.user_id == user_id)
            .first()
        )

    def set_tier(self, db: Session, agent_id: str, tier_id: str) -> Agent:
        with transaction(db):
            agent = self.get(db, agent_id)
            self.get_tier(db, tier_id)
            agent.tier_id = tier_id
        db.refresh(agent)
        logger.info(f"🧑‍💼 Agent {agent_id} moved to tier {tier_id}")
        return agent

    def set_status(self, db: Session, agent_id: str, status: AgentStatus) -> Agent:
        with transaction(db):
            agent = self.get(db, agent_id)
            agent.status = status.value
        db.refresh(agent)
        logger.info(f"🧑‍💼 Agent {agent_id} status={status.value}")
        return agent

    def update(self, db: Session, agent_id: str, data: AgentUpdate) -> Agent:
        """Edit profile fields. Tier and status have their own operations."""
        changes = changed_fields(data, nullable=("phone", "nric", "unit_name"))
        with transaction(db, _agent_conflict):
            agent = self.get(db, agent_id)
            for field, value in changes.items():
                setattr(agent, field, value)
        db.refresh(agent)
        logger.info(f"🧑‍💼 Updated agent {agent_id}: {sorted(changes)}")
        return agent

    def delete(self, db: Session, agent_id: str) -> None:
        """Agents who have sent invitations are kept; deactivate them instead."""
        with transaction(db, _agent_in_use):
            agent = self.get(db, agent_id)
            if db.query(Invitation.id).filter(Invitation.agent_id == agent_id).first():
                raise ResourceInUse("agent", "invitations")
            db.delete(agent)
        logger.info(f"🗑️ Deleted agent {agent_id}")


# Singleton instance
agent_service = AgentService()
