
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from campaign_portal.db.session import get_db
from campaign_portal.schemas import (
    AttendanceRequest,
    AttendanceResponse,
    RegistrationDetails,
    RegistrationRequest,
    RegistrationResponse,
)
from campaign_portal.services.attendance import attendance_gate
from campaign_portal.services.registration import registration_validator

router = APIRouter()


def _attendance_response(attendance, message: str) -> dict:
    invitation = attendance.invitation
    return {
        "status": "success",
        "message": message,
        "attendee_name": invitation.invitee_name,
        "invitation_status": invitation.status,
        "checkin_time": attendance.checkin_time,
        "checkout_time": attendance.checkout_time,
        "is_full_attendance": attendance.is_full_attendance,
    }


# ==============================================================================
# REGISTRATION (token from the invitation link)
# ==============================================================================

@router.get("/register/{token}", response_model=RegistrationDetails)
def get_registration(token: str, db: Session = Depends(get_db)):
    """Resolve an invitation link; fails once the link has been used"""
    return registration_validator.resolve_by_token(db, token)


@router.post("/register/{token}", response_model=RegistrationResponse)
def register(token: str, data: RegistrationRequest, db: Session = Depends(get_db)):
    invitation = registration_validator.register_by_token(db, token, data)
    return {
        "status": "success",
        "message": f"Welcome {invitation.invitee_name}, registration complete!",
        "invitation_id": invitation.id,
        "registered_at": invitation.registered_at,
    }


# ==============================================================================
# CHECK-IN / CHECK-OUT (slot from the venue QR code)
# ==============================================================================

@router.post("/check-in", response_model=AttendanceResponse)
def check_in(
    data: AttendanceRequest,
    slot: str = Query(..., description="Slot id carried by the venue link"),
    db: Session = Depends(get_db),
):
    attendance = attendance_gate.check_in(db, slot, data.pin_code, data.nric)
    return _attendance_response(
        attendance, "Welcome! Please remember to check out when leaving the event."
    )


@router.post("/check-out", response_model=AttendanceResponse)
def check_out(
    data: AttendanceRequest,
    slot: str = Query(..., description="Slot id carried by the venue link"),
    db: Session = Depends(get_db),
):
    attendance = attendance_gate.check_out(db, slot, data.pin_code, data.nric)
    return _attendance_response(attendance, "Thank you for attending!")
