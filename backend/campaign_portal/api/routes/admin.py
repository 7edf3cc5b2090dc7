from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from campaign_portal.core.deps import get_current_admin
from campaign_portal.db.session import get_db
from campaign_portal.models.enums import CampaignStatus
from campaign_portal.schemas import (
    AgentCreate,
    AgentResult,
    AgentStatusUpdate,
    AgentTierUpdate,
    AgentUpdate,
    CampaignCreate,
    CampaignReport,
    CampaignResult,
    CampaignStatusUpdate,
    CampaignUpdate,
    DeleteResponse,
    ExpireResponse,
    PinCodeResult,
    PinGenerateRequest,
    PinInventory,
    SlotCreate,
    SlotResult,
    SlotUpdate,
    TierCreate,
    TierResult,
    TierUpdate,
)
from campaign_portal.services.agents import agent_service
from campaign_portal.services.campaigns import campaign_service
from campaign_portal.services.invitations import invitation_registry
from campaign_portal.services.pin_pool import pin_pool

router = APIRouter(dependencies=[Depends(get_current_admin)])


# ==============================================================================
# 1. CAMPAIGNS
# ==============================================================================

@router.post("/campaigns", response_model=CampaignResult, status_code=status.HTTP_201_CREATED)
def create_campaign(data: CampaignCreate, db: Session = Depends(get_db)):
    return campaign_service.create(db, data)


@router.get("/campaigns", response_model=List[CampaignResult])
def list_campaigns(
    status_filter: Optional[CampaignStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    """List campaigns, newest first. Optional: ?status=active"""
    return campaign_service.list(db, status_filter)


@router.get("/campaigns/{campaign_id}", response_model=CampaignResult)
def get_campaign(campaign_id: str, db: Session = Depends(get_db)):
    return campaign_service.get(db, campaign_id)


@router.patch("/campaigns/{campaign_id}", response_model=CampaignResult)
def update_campaign(campaign_id: str, data: CampaignUpdate, db: Session = Depends(get_db)):
    return campaign_service.update(db, campaign_id, data)


@router.delete("/campaigns/{campaign_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_campaign(campaign_id: str, db: Session = Depends(get_db)):
    """Delete a campaign, its slots and their PIN codes. 409 once invitations exist."""
    campaign_service.delete(db, campaign_id)


@router.patch("/campaigns/{campaign_id}/status", response_model=CampaignResult)
def update_campaign_status(campaign_id: str, data: CampaignStatusUpdate, db: Session = Depends(get_db)):
    return campaign_service.update_status(db, campaign_id, data.status)


@router.get("/campaigns/{campaign_id}/report", response_model=CampaignReport)
def campaign_report(campaign_id: str, db: Session = Depends(get_db)):
    """Invitation and attendance totals across the campaign's slots"""
    return campaign_service.report(db, campaign_id)


# ==============================================================================
# 2. SLOTS
# ==============================================================================

@router.post("/campaigns/{campaign_id}/slots", response_model=SlotResult, status_code=status.HTTP_201_CREATED)
def create_slot(campaign_id: str, data: SlotCreate, db: Session = Depends(get_db)):
    return campaign_service.create_slot(db, campaign_id, data)


@router.get("/campaigns/{campaign_id}/slots", response_model=List[SlotResult])
def list_slots(campaign_id: str, db: Session = Depends(get_db)):
    return campaign_service.list_slots(db, campaign_id)


@router.patch("/slots/{slot_id}", response_model=SlotResult)
def update_slot(slot_id: str, data: SlotUpdate, db: Session = Depends(get_db)):
    return campaign_service.update_slot(db, slot_id, data)


@router.delete("/slots/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_slot(slot_id: str, db: Session = Depends(get_db)):
    """Delete a slot and all of its PIN codes. 409 once invitations exist."""
    campaign_service.delete_slot(db, slot_id)


@router.post("/slots/{slot_id}/expire-invitations", response_model=ExpireResponse)
def expire_invitations(slot_id: str, db: Session = Depends(get_db)):
    """Expire every pending or registered invitation of the slot"""
    return {"expired": invitation_registry.expire_for_slot(db, slot_id)}


# ==============================================================================
# 3. PIN CODES
# ==============================================================================

@router.post("/slots/{slot_id}/pin-codes", response_model=List[PinCodeResult], status_code=status.HTTP_201_CREATED)
def generate_pin_codes(slot_id: str, data: PinGenerateRequest, db: Session = Depends(get_db)):
    return pin_pool.generate(db, slot_id, data.count)


@router.get("/slots/{slot_id}/pin-codes", response_model=List[PinCodeResult])
def list_pin_codes(slot_id: str, db: Session = Depends(get_db)):
    return pin_pool.list_codes(db, slot_id)


@router.get("/slots/{slot_id}/pin-codes/inventory", response_model=PinInventory)
def pin_code_inventory(slot_id: str, db: Session = Depends(get_db)):
    return pin_pool.inventory(db, slot_id)


@router.delete("/slots/{slot_id}/pin-codes", response_model=DeleteResponse)
def delete_pin_codes(slot_id: str, only_unused: bool = True, db: Session = Depends(get_db)):
    """
    Delete the slot's PIN codes.
    Default removes only unused codes; ?only_unused=false removes all of them.
    """
    if only_unused:
        deleted = pin_pool.delete_unused(db, slot_id)
    else:
        deleted = pin_pool.delete_all(db, slot_id)
    return {"deleted": deleted}


# ==============================================================================
# 4. TIERS & AGENTS
# ==============================================================================

@router.post("/tiers", response_model=TierResult, status_code=status.HTTP_201_CREATED)
def create_tier(data: TierCreate, db: Session = Depends(get_db)):
    return agent_service.create_tier(db, data)


@router.get("/tiers", response_model=List[TierResult])
def list_tiers(db: Session = Depends(get_db)):
    return agent_service.list_tiers(db)


@router.patch("/tiers/{tier_id}", response_model=TierResult)
def update_tier(tier_id: str, data: TierUpdate, db: Session = Depends(get_db)):
    return agent_service.update_tier(db, tier_id, data)


@router.delete("/tiers/{tier_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tier(tier_id: str, db: Session = Depends(get_db)):
    agent_service.delete_tier(db, tier_id)


@router.post("/agents", response_model=AgentResult, status_code=status.HTTP_201_CREATED)
def create_agent(data: AgentCreate, db: Session = Depends(get_db)):
    return agent_service.create(db, data)


@router.get("/agents", response_model=List[AgentResult])
def list_agents(db: Session = Depends(get_db)):
    return agent_service.list(db)


@router.patch("/agents/{agent_id}", response_model=AgentResult)
def update_agent(agent_id: str, data: AgentUpdate, db: Session = Depends(get_db)):
    return agent_service.update(db, agent_id, data)


@router.delete("/agents/{agent_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_agent(agent_id: str, db: Session = Depends(get_db)):
    """Agents who already sent invitations cannot be deleted; deactivate them instead."""
    agent_service.delete(db, agent_id)


@router.patch("/agents/{agent_id}/tier", response_model=AgentResult)
def set_agent_tier(agent_id: str, data: AgentTierUpdate, db: Session = Depends(get_db)):
    return agent_service.set_tier(db, agent_id, data.tier_id)


@router.patch("/agents/{agent_id}/status", response_model=AgentResult)
def set_agent_status(agent_id: str, data: AgentStatusUpdate, db: Session = Depends(get_db)):
    return agent_service.set_status(db, agent_id, data.status)
