from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from campaign_portal.db.base import Base, BaseModel


class Attendance(Base, BaseModel):
    __tablename__ = "attendance"

    # unique: at most one attendance row per invitation
    invitation_id = Column(String(36), ForeignKey("invitations.id"), unique=True, nullable=False)
    pin_code_id = Column(String(36), ForeignKey("pin_codes.id", ondelete="SET NULL"), nullable=True, index=True)
    checkin_time = Column(DateTime(timezone=True), nullable=False)
    checkout_time = Column(DateTime(timezone=True), nullable=True)
    is_full_attendance = Column(Boolean, default=False, nullable=False)

    invitation = relationship("Invitation", back_populates="attendance")
    pin_code = relationship("PinCode")

    def __repr__(self):
        return f"<Attendance {self.invitation_id} full={self.is_full_attendance}>"
