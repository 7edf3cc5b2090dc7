import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campaign_portal.core.exceptions import (
    Conflict,
    DuplicateIdentity,
    InvalidToken,
    InvitationNotFound,
    TokenAlreadyUsed,
)
from campaign_portal.db.base import utcnow
from campaign_portal.db.session import transaction
from campaign_portal.models import Invitation
from campaign_portal.models.enums import InvitationStatus
from campaign_portal.schemas import RegistrationRequest
from campaign_portal.services.invitations import invitation_registry

logger = logging.getLogger(__name__)


def _identity_conflict(e: IntegrityError) -> Conflict:
    detail = str(e.orig)
    if "invitee_nric" in detail:
        return DuplicateIdentity("nric")
    if "invitee_phone" in detail:
        return DuplicateIdentity("phone")
    return Conflict("Registration conflicts with an existing record")


class RegistrationValidator:
    """
    Single-use registration gate.

    A token is only good while its invitation is `pending`; the first
    successful registration moves it to `registered` and the token is dead
    from then on. NRIC and phone must not appear on any other invitation.
    """

    def resolve_by_token(self, db: Session, token: str) -> Invitation:
        invitation = invitation_registry.get_by_token(db, token)
        if invitation is None:
            raise InvalidToken()
        if invitation.status != InvitationStatus.PENDING.value:
            raise TokenAlreadyUsed()
        return invitation

    def _identity_taken(self, db: Session, column, value: str, invitation_id: str) -> bool:
        return (
            db.query(Invitation.id)
            .filter(column == value, Invitation.id != invitation_id)
            .first()
        ) is not None

    def register(self, db: Session, invitation_id: str, data: RegistrationRequest) -> Invitation:
        registered_at = utcnow()
        with transaction(db, _identity_conflict):
            invitation = db.get(Invitation, invitation_id)
            if invitation is None:
                raise InvitationNotFound()
            if invitation.status != InvitationStatus.PENDING.value:
                raise TokenAlreadyUsed()

            # Global scans, not scoped to campaign or slot
            if self._identity_taken(db, Invitation.invitee_nric, data.invitee_nric, invitation_id):
                raise DuplicateIdentity("nric")
            if self._identity_taken(db, Invitation.invitee_phone, data.invitee_phone, invitation_id):
                raise DuplicateIdentity("phone")

            updated = (
                db.query(Invitation)
                .filter(
                    Invitation.id == invitation_id,
                    Invitation.status == InvitationStatus.PENDING.value,
                )
                .update(
                    {
                        Invitation.invitee_name: data.invitee_name,
                        Invitation.invitee_nric: data.invitee_nric,
                        Invitation.invitee_phone: data.invitee_phone,
                        Invitation.invitee_email: data.invitee_email,
                        Invitation.invitee_occupation: data.invitee_occupation,
                        Invitation.status: InvitationStatus.REGISTERED.value,
                        Invitation.registered_at: registered_at,
                    },
                    synchronize_session=False,
                )
            )
            if updated == 0:
                raise TokenAlreadyUsed()

        db.refresh(invitation)
        logger.info(f"📝 Invitation {invitation_id} registered")
        return invitation

    def register_by_token(self, db: Session, token: str, data: RegistrationRequest) -> Invitation:
        invitation = self.resolve_by_token(db, token)
        return self.register(db, invitation.id, data)


# Singleton instance
registration_validator = RegistrationValidator()
