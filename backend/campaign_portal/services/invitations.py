import logging
from typing import List

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from campaign_portal.core.exceptions import (
    AgentInactive,
    AgentNotFound,
    Conflict,
    QuotaExceeded,
    SlotInactive,
)
from campaign_portal.db.session import transaction
from campaign_portal.models import Agent, Invitation, Slot
from campaign_portal.models.enums import AgentStatus, CampaignStatus, CapacityType, InvitationStatus
from campaign_portal.services.common import get_slot_or_404
from campaign_portal.utils.crypto import generate_registration_token

logger = logging.getLogger(__name__)


def _token_conflict(e: IntegrityError) -> Conflict:
    return Conflict("Invitation token collision. Please try again.")


class InvitationRegistry:
    """Owns invitation records, their tokens and the per-slot quota."""

    def count_for_agent_slot(self, db: Session, agent_id: str, slot_id: str) -> int:
        """Every invitation of the pair counts against the quota, whatever its status."""
        return (
            db.query(func.count(Invitation.id))
            .filter(Invitation.agent_id == agent_id, Invitation.slot_id == slot_id)
            .scalar()
        )

    def quota(self, db: Session, agent: Agent, slot_id: str) -> dict:
        get_slot_or_404(db, slot_id)
        limit = agent.tier.invitation_limit_per_slot
        used = self.count_for_agent_slot(db, agent.id, slot_id)
        return {
            "slot_id": slot_id,
            "limit": limit,
            "used": used,
            "remaining": max(0, limit - used),
        }

    def create_batch(
        self,
        db: Session,
        agent_id: str,
        slot_id: str,
        capacity_type: CapacityType,
        count: int,
    ) -> List[Invitation]:
        invitations = []
        with transaction(db, _token_conflict):
            # Lock the agent row so concurrent batches for one agent read a fresh count
            agent = (
                db.query(Agent)
                .options(joinedload(Agent.tier))
                .filter(Agent.id == agent_id)
                .with_for_update(of=Agent)
                .first()
            )
            if agent is None:
                raise AgentNotFound()
            if agent.status != AgentStatus.ACTIVE.value:
                raise AgentInactive()

            slot = get_slot_or_404(db, slot_id)
            if not slot.is_active or slot.campaign.status != CampaignStatus.ACTIVE.value:
                raise SlotInactive()

            limit = agent.tier.invitation_limit_per_slot
            remaining = max(0, limit - self.count_for_agent_slot(db, agent_id, slot_id))
            if count > remaining:
                raise QuotaExceeded(count, remaining)

            for _ in range(count):
                invitations.append(Invitation(
                    agent_id=agent_id,
                    slot_id=slot_id,
                    capacity_type=capacity_type.value,
                    unique_token=generate_registration_token(),
                    status=InvitationStatus.PENDING.value,
                ))
            db.add_all(invitations)

        logger.info(f"✉️ Agent {agent_id} created {count} invitations for slot {slot_id}")
        return invitations

    def list_for_agent(self, db: Session, agent_id: str) -> List[Invitation]:
        return (
            db.query(Invitation)
            .options(joinedload(Invitation.slot).joinedload(Slot.campaign))
            .filter(Invitation.agent_id == agent_id)
            .order_by(Invitation.created_at.desc())
            .all()
        )

    def get_by_token(self, db: Session, token: str):
        return (
            db.query(Invitation)
            .options(joinedload(Invitation.slot).joinedload(Slot.campaign))
            .filter(Invitation.unique_token == token)
            .first()
        )

    def expire_for_slot(self, db: Session, slot_id: str) -> int:
        """Move every not-yet-attended invitation of the slot to expired."""
        get_slot_or_404(db, slot_id)
        with transaction(db):
            expired = (
                db.query(Invitation)
                .filter(
                    Invitation.slot_id == slot_id,
                    Invitation.status.in_([
                        InvitationStatus.PENDING.value,
                        InvitationStatus.REGISTERED.value,
                    ]),
                )
                .update({Invitation.status: InvitationStatus.EXPIRED.value}, synchronize_session=False)
            )
        logger.info(f"⌛ Expired {expired} invitations for slot {slot_id}")
        return expired


# Singleton instance
invitation_registry = InvitationRegistry()
