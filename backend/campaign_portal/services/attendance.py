import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campaign_portal.core.exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    Conflict,
    InvalidPin,
    NoAttendanceRecord,
    NotCheckedIn,
    NotRegistered,
    PinAlreadyClaimed,
    PinNotClaimedBySubmitter,
)
from campaign_portal.db.base import utcnow
from campaign_portal.db.session import transaction
from campaign_portal.models import Attendance, Invitation, PinCode
from campaign_portal.models.enums import InvitationStatus
from campaign_portal.services.pin_pool import pin_pool

logger = logging.getLogger(__name__)

_CHECKED_IN = (InvitationStatus.ATTENDED.value, InvitationStatus.COMPLETED.value)


def _attendance_conflict(e: IntegrityError) -> Conflict:
    # attendance.invitation_id is unique: a concurrent check-in won
    if "invitation_id" in str(e.orig):
        return AlreadyCheckedIn()
    return Conflict("Attendance conflicts with an existing record")


class AttendanceGate:
    """
    Check-in / check-out protocol.

    An invitee proves presence with a slot PIN plus their NRIC. The first
    successful check-in binds the PIN to that NRIC for good. Each protocol
    runs as one transaction; every write is conditional on the state read
    earlier in the same request, so a concurrent request that got there
    first makes this one fail cleanly instead of writing twice.
    """

    def _resolve_pin(self, db: Session, slot_id: str, pin_value: str) -> PinCode:
        pin = (
            db.query(PinCode)
            .filter(PinCode.code == pin_value, PinCode.slot_id == slot_id)
            .first()
        )
        if pin is None:
            raise InvalidPin()
        return pin

    def _find_invitation(self, db: Session, slot_id: str, nric: str, *statuses: InvitationStatus) -> Optional[Invitation]:
        return (
            db.query(Invitation)
            .filter(
                Invitation.invitee_nric == nric,
                Invitation.slot_id == slot_id,
                Invitation.status.in_([s.value for s in statuses]),
            )
            .first()
        )

    def _attendance_for(self, db: Session, invitation_id: str) -> Optional[Attendance]:
        return (
            db.query(Attendance)
            .filter(Attendance.invitation_id == invitation_id)
            .first()
        )

    def _move_status(self, db: Session, invitation_id: str, current: InvitationStatus, target: InvitationStatus) -> Optional[str]:
        """Guarded status write. Returns None on success, else the status found."""
        moved = (
            db.query(Invitation)
            .filter(Invitation.id == invitation_id, Invitation.status == current.value)
            .update({Invitation.status: target.value}, synchronize_session=False)
        )
        if moved:
            return None
        return db.query(Invitation.status).filter(Invitation.id == invitation_id).scalar()

    def check_in(self, db: Session, slot_id: str, pin_value: str, nric: str) -> Attendance:
        now = utcnow()
        claimed_now = False

        with transaction(db, _attendance_conflict):
            pin = self._resolve_pin(db, slot_id, pin_value)
            if pin.is_used and pin.linked_nric != nric:
                raise PinAlreadyClaimed()

            invitation = self._find_invitation(db, slot_id, nric, InvitationStatus.REGISTERED)
            if invitation is None:
                if self._find_invitation(db, slot_id, nric, InvitationStatus.ATTENDED, InvitationStatus.COMPLETED):
                    raise AlreadyCheckedIn()
                raise NotRegistered()

            if self._attendance_for(db, invitation.id) is not None:
                raise AlreadyCheckedIn()

            if not pin.is_used:
                # One-time claim: only succeeds while the PIN is still free
                claimed = (
                    db.query(PinCode)
                    .filter(PinCode.id == pin.id, PinCode.is_used.is_(False))
                    .update(
                        {PinCode.linked_nric: nric, PinCode.is_used: True},
                        synchronize_session=False,
                    )
                )
                if claimed == 0:
                    winner = db.query(PinCode.linked_nric).filter(PinCode.id == pin.id).scalar()
                    if winner is None:
                        # Deleted from the pool since we read it
                        raise InvalidPin()
                    if winner != nric:
                        raise PinAlreadyClaimed()
                else:
                    claimed_now = True

            attendance = Attendance(
                invitation_id=invitation.id,
                pin_code_id=pin.id,
                checkin_time=now,
                checkout_time=None,
                is_full_attendance=False,
            )
            db.add(attendance)
            db.flush()

            found = self._move_status(db, invitation.id, InvitationStatus.REGISTERED, InvitationStatus.ATTENDED)
            if found is not None:
                if found in _CHECKED_IN:
                    raise AlreadyCheckedIn()
                raise NotRegistered()

        if claimed_now:
            pin_pool.invalidate(slot_id)
        db.refresh(attendance)
        db.refresh(invitation)
        logger.info(f"✅ Check-in: invitation {invitation.id} slot {slot_id} pin {pin.id}")
        return attendance

    def check_out(self, db: Session, slot_id: str, pin_value: str, nric: str) -> Attendance:
        now = utcnow()

        with transaction(db):
            pin = self._resolve_pin(db, slot_id, pin_value)
            if pin.linked_nric != nric:
                # Nobody claimed this PIN: if the submitter never checked in
                # either, that is the actual problem to report.
                if not pin.is_used and self._find_invitation(
                    db, slot_id, nric, InvitationStatus.ATTENDED, InvitationStatus.COMPLETED
                ) is None:
                    raise NotCheckedIn()
                raise PinNotClaimedBySubmitter()

            invitation = self._find_invitation(db, slot_id, nric, InvitationStatus.ATTENDED)
            if invitation is None:
                if self._find_invitation(db, slot_id, nric, InvitationStatus.COMPLETED):
                    raise AlreadyCheckedOut()
                raise NotCheckedIn()

            attendance = self._attendance_for(db, invitation.id)
            if attendance is None:
                raise NoAttendanceRecord()
            if attendance.checkout_time is not None:
                raise AlreadyCheckedOut()

            closed = (
                db.query(Attendance)
                .filter(Attendance.id == attendance.id, Attendance.checkout_time.is_(None))
                .update(
                    {Attendance.checkout_time: now, Attendance.is_full_attendance: True},
                    synchronize_session=False,
                )
            )
            if closed == 0:
                raise AlreadyCheckedOut()

            found = self._move_status(db, invitation.id, InvitationStatus.ATTENDED, InvitationStatus.COMPLETED)
            if found is not None:
                if found == InvitationStatus.COMPLETED.value:
                    raise AlreadyCheckedOut()
                raise NotCheckedIn()

        db.refresh(attendance)
        db.refresh(invitation)
        logger.info(f"🏁 Check-out: invitation {invitation.id} slot {slot_id}")
        # Reward accrual happens elsewhere; this event is its only input
        logger.info(f"invitation.completed invitation_id={invitation.id} agent_id={invitation.agent_id}")
        return attendance


# Singleton instance
attendance_gate = AttendanceGate()
