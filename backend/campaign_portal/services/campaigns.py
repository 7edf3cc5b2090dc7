import logging
from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campaign_portal.core.exceptions import (
    CampaignNotFound,
    InvalidSchedule,
    InvalidStatusTransition,
    ResourceInUse,
)
from campaign_portal.db.session import transaction
from campaign_portal.models import Attendance, Campaign, Invitation, Slot
from campaign_portal.models.enums import CampaignStatus
from campaign_portal.schemas import CampaignCreate, CampaignUpdate, SlotCreate, SlotUpdate
from campaign_portal.services.common import changed_fields, get_slot_or_404
from campaign_portal.services.pin_pool import pin_pool

logger = logging.getLogger(__name__)

# draft -> active -> (paused <-> active) -> completed
ALLOWED_TRANSITIONS = {
    CampaignStatus.DRAFT: {CampaignStatus.ACTIVE},
    CampaignStatus.ACTIVE: {CampaignStatus.PAUSED, CampaignStatus.COMPLETED},
    CampaignStatus.PAUSED: {CampaignStatus.ACTIVE, CampaignStatus.COMPLETED},
    CampaignStatus.COMPLETED: set(),
}


def _has_invitations(db: Session, *slot_ids: str) -> bool:
    if not slot_ids:
        return False
    return db.query(Invitation.id).filter(Invitation.slot_id.in_(slot_ids)).first() is not None


# An invitation inserted after the check trips the slots FK on delete
def _campaign_in_use(e: IntegrityError) -> ResourceInUse:
    return ResourceInUse("campaign", "invitations")


def _slot_in_use(e: IntegrityError) -> ResourceInUse:
    return ResourceInUse("slot", "invitations")


class CampaignService:
    def create(self, db: Session, data: CampaignCreate) -> Campaign:
        campaign = Campaign(
            name=data.name,
            venue=data.venue,
            start_date=data.start_date,
            end_date=data.end_date,
            invitation_type=data.invitation_type.value,
            status=CampaignStatus.DRAFT.value,
        )
        with transaction(db):
            db.add(campaign)
        logger.info(f"📣 Created campaign {campaign.id} ({campaign.name})")
        return campaign

    def list(self, db: Session, status: CampaignStatus = None) -> List[Campaign]:
        query = db.query(Campaign)
        if status is not None:
            query = query.filter(Campaign.status == status.value)
        return query.order_by(Campaign.start_date.desc()).all()

    def get(self, db: Session, campaign_id: str) -> Campaign:
        campaign = db.get(Campaign, campaign_id)
        if campaign is None:
            raise CampaignNotFound()
        return campaign

    def update_status(self, db: Session, campaign_id: str, target: CampaignStatus) -> Campaign:
        with transaction(db):
            campaign = self.get(db, campaign_id)
            current = CampaignStatus(campaign.status)
            if target not in ALLOWED_TRANSITIONS[current]:
                raise InvalidStatusTransition(current.value, target.value)
            # Guarded write: only move from the status we validated against
            moved = (
                db.query(Campaign)
                .filter(Campaign.id == campaign_id, Campaign.status == current.value)
                .update({Campaign.status: target.value}, synchronize_session=False)
            )
            if moved == 0:
                raise InvalidStatusTransition(current.value, target.value)
        db.refresh(campaign)
        logger.info(f"📣 Campaign {campaign_id}: {current.value} -> {target.value}")
        return campaign

    def update(self, db: Session, campaign_id: str, data: CampaignUpdate) -> Campaign:
        """Edit campaign details. Status has its own guarded transition."""
        changes = changed_fields(data)
        with transaction(db):
            campaign = self.get(db, campaign_id)
            for field, value in changes.items():
                setattr(campaign, field, value)
            if campaign.end_date < campaign.start_date:
                raise InvalidSchedule("end_date must not be before start_date")
        db.refresh(campaign)
        logger.info(f"📣 Updated campaign {campaign_id}: {sorted(changes)}")
        return campaign

    def delete(self, db: Session, campaign_id: str) -> None:
        """
        Delete a campaign with its slots and their PIN codes. Refused once
        any slot has invitations.
        """
        with transaction(db, _campaign_in_use):
            campaign = self.get(db, campaign_id)
            slot_ids = [slot.id for slot in campaign.slots]
            if _has_invitations(db, *slot_ids):
                raise ResourceInUse("campaign", "invitations")
            for slot_id in slot_ids:
                pin_pool.purge(db, slot_id)
            db.delete(campaign)
        for slot_id in slot_ids:
            pin_pool.invalidate(slot_id)
        logger.info(f"🗑️ Deleted campaign {campaign_id} with {len(slot_ids)} slots")

    # ------------------------------------------------------------------ slots

    def create_slot(self, db: Session, campaign_id: str, data: SlotCreate) -> Slot:
        self.get(db, campaign_id)
        slot = Slot(campaign_id=campaign_id, **data.model_dump())
        with transaction(db):
            db.add(slot)
        logger.info(f"🗓️ Created slot {slot.id} for campaign {campaign_id}")
        return slot

    def list_slots(self, db: Session, campaign_id: str) -> List[Slot]:
        self.get(db, campaign_id)
        return (
            db.query(Slot)
            .filter(Slot.campaign_id == campaign_id)
            .order_by(Slot.day_of_week.asc(), Slot.start_time.asc())
            .all()
        )

    def update_slot(self, db: Session, slot_id: str, data: SlotUpdate) -> Slot:
        changes = changed_fields(data)
        with transaction(db):
            slot = get_slot_or_404(db, slot_id)
            for field, value in changes.items():
                setattr(slot, field, value)
            if slot.start_time >= slot.end_time:
                raise InvalidSchedule("start_time must be before end_time")
        db.refresh(slot)
        logger.info(f"🗓️ Updated slot {slot_id}: {sorted(changes)}")
        return slot

    def delete_slot(self, db: Session, slot_id: str) -> None:
        """
        Reset and remove a slot: its PIN codes go with it. Refused once the
        slot has invitations.
        """
        with transaction(db, _slot_in_use):
            slot = get_slot_or_404(db, slot_id)
            if _has_invitations(db, slot_id):
                raise ResourceInUse("slot", "invitations")
            deleted = pin_pool.purge(db, slot_id)
            db.delete(slot)
        pin_pool.invalidate(slot_id)
        logger.info(f"🗑️ Deleted slot {slot_id} and {deleted} PIN codes")

    def list_open(self, db: Session) -> List[Campaign]:
        """Active campaigns that have at least one active slot"""
        return (
            db.query(Campaign)
            .join(Slot, Slot.campaign_id == Campaign.id)
            .filter(Campaign.status == CampaignStatus.ACTIVE.value, Slot.is_active.is_(True))
            .distinct()
            .order_by(Campaign.start_date.asc())
            .all()
        )

    # ---------------------------------------------------------------- reports

    def report(self, db: Session, campaign_id: str) -> dict:
        self.get(db, campaign_id)

        by_status: Dict[str, int] = dict(
            db.query(Invitation.status, func.count(Invitation.id))
            .join(Slot, Slot.id == Invitation.slot_id)
            .filter(Slot.campaign_id == campaign_id)
            .group_by(Invitation.status)
            .all()
        )

        slots = []
        for slot in self.list_slots(db, campaign_id):
            invitations = (
                db.query(func.count(Invitation.id))
                .filter(Invitation.slot_id == slot.id)
                .scalar()
            )
            checked_in = (
                db.query(func.count(Attendance.id))
                .join(Invitation, Invitation.id == Attendance.invitation_id)
                .filter(Invitation.slot_id == slot.id)
                .scalar()
            )
            full = (
                db.query(func.count(Attendance.id))
                .join(Invitation, Invitation.id == Attendance.invitation_id)
                .filter(Invitation.slot_id == slot.id, Attendance.is_full_attendance.is_(True))
                .scalar()
            )
            slots.append({
                "slot_id": slot.id,
                "day_of_week": slot.day_of_week,
                "invitations": invitations,
                "checked_in": checked_in,
                "full_attendance": full,
            })

        return {
            "campaign_id": campaign_id,
            "invitations_by_status": by_status,
            "checked_in": sum(s["checked_in"] for s in slots),
            "full_attendance": sum(s["full_attendance"] for s in slots),
            "slots": slots,
        }


# Singleton instance
campaign_service = CampaignService()
