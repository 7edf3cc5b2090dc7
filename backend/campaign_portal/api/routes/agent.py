from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from campaign_portal.core.deps import get_current_agent
from campaign_portal.db.session import get_db
from campaign_portal.models import Agent
from campaign_portal.schemas import (
    CampaignResult,
    CampaignWithSlots,
    InvitationCreateRequest,
    InvitationResult,
    InvitationWithSlot,
    QuotaResult,
    RewardSummary,
    SlotResult,
)
from campaign_portal.services.campaigns import campaign_service
from campaign_portal.services.invitations import invitation_registry
from campaign_portal.services.rewards import reward_service

router = APIRouter()


@router.get("/campaigns", response_model=List[CampaignWithSlots])
def open_campaigns(
    agent: Agent = Depends(get_current_agent),
    db: Session = Depends(get_db),
):
    """Active campaigns with the slots currently accepting invitations"""
    results = []
    for campaign in campaign_service.list_open(db):
        base = CampaignResult.model_validate(campaign).model_dump()
        slots = [SlotResult.model_validate(s) for s in campaign.slots if s.is_active]
        results.append(CampaignWithSlots(**base, slots=slots))
    return results


@router.get("/invitations", response_model=List[InvitationWithSlot])
def my_invitations(
    agent: Agent = Depends(get_current_agent),
    db: Session = Depends(get_db),
):
    return invitation_registry.list_for_agent(db, agent.id)


@router.post("/invitations", response_model=List[InvitationResult], status_code=status.HTTP_201_CREATED)
def create_invitations(
    data: InvitationCreateRequest,
    agent: Agent = Depends(get_current_agent),
    db: Session = Depends(get_db),
):
    """Create `count` single-use invitation links for a slot, within the tier quota"""
    return invitation_registry.create_batch(db, agent.id, data.slot_id, data.capacity_type, data.count)


@router.get("/slots/{slot_id}/quota", response_model=QuotaResult)
def slot_quota(
    slot_id: str,
    agent: Agent = Depends(get_current_agent),
    db: Session = Depends(get_db),
):
    return invitation_registry.quota(db, agent, slot_id)


@router.get("/rewards", response_model=RewardSummary)
def my_rewards(
    agent: Agent = Depends(get_current_agent),
    db: Session = Depends(get_db),
):
    return reward_service.summary(db, agent)
