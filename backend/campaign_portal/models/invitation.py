from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from campaign_portal.db.base import Base, BaseModel
from campaign_portal.models.enums import InvitationStatus


class Invitation(Base, BaseModel):
    __tablename__ = "invitations"

    agent_id = Column(String(36), ForeignKey("agents.id"), nullable=False, index=True)
    slot_id = Column(String(36), ForeignKey("slots.id"), nullable=False, index=True)
    capacity_type = Column(String(32), nullable=False)
    unique_token = Column(String(64), unique=True, nullable=False)
    status = Column(String(16), default=InvitationStatus.PENDING.value, nullable=False, index=True)

    # Invitee identity, null until registration. NRIC and phone are unique
    # across every invitation ever created; NULLs do not collide.
    invitee_name = Column(String(200), nullable=True)
    invitee_nric = Column(String(32), unique=True, nullable=True)
    invitee_phone = Column(String(32), unique=True, nullable=True)
    invitee_email = Column(String(255), nullable=True)
    invitee_occupation = Column(String(100), nullable=True)
    registered_at = Column(DateTime(timezone=True), nullable=True)

    agent = relationship("Agent")
    slot = relationship("Slot")
    attendance = relationship("Attendance", back_populates="invitation", uselist=False)

    def __repr__(self):
        return f"<Invitation {self.unique_token} ({self.status})>"
