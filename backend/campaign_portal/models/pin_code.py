from sqlalchemy import Boolean, Column, ForeignKey, String, UniqueConstraint

from campaign_portal.db.base import Base, BaseModel


class PinCode(Base, BaseModel):
    __tablename__ = "pin_codes"
    __table_args__ = (
        UniqueConstraint("slot_id", "code", name="uq_pin_codes_slot_code"),
    )

    slot_id = Column(String(36), ForeignKey("slots.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String(6), nullable=False)
    linked_nric = Column(String(32), nullable=True)
    is_used = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<PinCode {self.code} used={self.is_used}>"
