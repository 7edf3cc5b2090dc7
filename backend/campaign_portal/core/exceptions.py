"""
Structured error taxonomy.

Every rejection the services can produce is a PortalError subclass. The kind
tells the caller what to do next:

- not_found: the token/PIN/record does not exist, obtain a new one
- conflict: the request collides with state someone already wrote
- precondition_failed: a prior step (registration, check-in) is missing
- store_failure: the database failed, the request may be retried
"""

import logging
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorKind:
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    PRECONDITION_FAILED = "precondition_failed"
    STORE_FAILURE = "store_failure"


class PortalError(Exception):
    """Base application error with structured information"""

    kind = ErrorKind.STORE_FAILURE
    status_code = 500
    code = "PORTAL_ERROR"
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None, details: Optional[dict] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {
            "status": "error",
            "kind": self.kind,
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            body["details"] = self.details
        return body


# ===========================================
# Kinds
# ===========================================


class NotFound(PortalError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not found"


class Conflict(PortalError):
    kind = ErrorKind.CONFLICT
    status_code = 409
    code = "CONFLICT"
    default_message = "Conflict"


class PreconditionFailed(PortalError):
    kind = ErrorKind.PRECONDITION_FAILED
    status_code = 412
    code = "PRECONDITION_FAILED"
    default_message = "Precondition failed"


class StoreFailure(PortalError):
    """Infrastructure failure, safe to retry."""

    kind = ErrorKind.STORE_FAILURE
    status_code = 503
    code = "STORE_FAILURE"
    default_message = "Service temporarily unavailable. Please try again."


# ===========================================
# Not found
# ===========================================


class InvalidToken(NotFound):
    code = "INVALID_TOKEN"
    default_message = "Invalid or expired invitation link"


class InvalidPin(NotFound):
    code = "INVALID_PIN"
    default_message = "Invalid PIN code for this slot"


class CampaignNotFound(NotFound):
    code = "CAMPAIGN_NOT_FOUND"
    default_message = "Campaign not found"


class SlotNotFound(NotFound):
    code = "SLOT_NOT_FOUND"
    default_message = "Slot not found"


class TierNotFound(NotFound):
    code = "TIER_NOT_FOUND"
    default_message = "Tier not found"


class AgentNotFound(NotFound):
    code = "AGENT_NOT_FOUND"
    default_message = "Agent not found"


class InvitationNotFound(NotFound):
    code = "INVITATION_NOT_FOUND"
    default_message = "Invitation not found"


# ===========================================
# Conflicts
# ===========================================


class TokenAlreadyUsed(Conflict):
    code = "TOKEN_ALREADY_USED"
    default_message = "This invitation has already been used or has expired"


class DuplicateIdentity(Conflict):
    code = "DUPLICATE_IDENTITY"

    def __init__(self, field: str):
        self.field = field
        label = "NRIC" if field == "nric" else "phone number"
        super().__init__(
            f"This {label} has already been registered for another invitation",
            details={"field": field},
        )


class PinAlreadyClaimed(Conflict):
    code = "PIN_ALREADY_CLAIMED"
    default_message = "This PIN code has already been used by another attendee"


class PinNotClaimedBySubmitter(Conflict):
    code = "PIN_NOT_CLAIMED_BY_SUBMITTER"
    default_message = "This PIN code is not associated with this NRIC"


class AlreadyCheckedIn(Conflict):
    code = "ALREADY_CHECKED_IN"
    default_message = "You have already checked in for this slot"


class AlreadyCheckedOut(Conflict):
    code = "ALREADY_CHECKED_OUT"
    default_message = "You have already checked out"


class QuotaExceeded(Conflict):
    code = "QUOTA_EXCEEDED"

    def __init__(self, requested: int, remaining: int):
        super().__init__(
            f"Requested {requested} invitations but only {remaining} remain for this slot",
            details={"requested": requested, "remaining": remaining},
        )


class PinPoolExhausted(Conflict):
    code = "PIN_POOL_EXHAUSTED"

    def __init__(self, requested: int, available: int):
        super().__init__(
            f"Requested {requested} PIN codes but only {available} unused codes remain for this slot",
            details={"requested": requested, "available": available},
        )


class InvalidStatusTransition(Conflict):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot move campaign from '{current}' to '{target}'",
            details={"current": current, "target": target},
        )


class ResourceInUse(Conflict):
    code = "RESOURCE_IN_USE"

    def __init__(self, resource: str, dependents: str):
        super().__init__(
            f"This {resource} still has {dependents} and cannot be deleted",
            details={"resource": resource, "dependents": dependents},
        )


class InvalidSchedule(Conflict):
    """An update that leaves a record's start after its end."""

    code = "INVALID_SCHEDULE"
    default_message = "Start must be before end"


# ===========================================
# Preconditions
# ===========================================


class NotRegistered(PreconditionFailed):
    code = "NOT_REGISTERED"
    default_message = (
        "No registered invitation found for this NRIC. "
        "Please ensure you have registered first."
    )


class NotCheckedIn(PreconditionFailed):
    code = "NOT_CHECKED_IN"
    default_message = "No check-in record found. Please check in first."


class NoAttendanceRecord(PreconditionFailed):
    code = "NO_ATTENDANCE_RECORD"
    default_message = "No attendance record found. Please check in first."


class SlotInactive(PreconditionFailed):
    code = "SLOT_INACTIVE"
    default_message = "This slot is not accepting invitations"


class AgentInactive(PreconditionFailed):
    code = "AGENT_INACTIVE"
    default_message = "Agent account is inactive"


async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    """Render a PortalError as a structured JSON response."""
    if isinstance(exc, StoreFailure):
        logger.error(f"❌ {request.method} {request.url.path}: {exc.code} - {exc.message}")
    else:
        logger.warning(f"⚠️ {request.method} {request.url.path}: {exc.code} - {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
