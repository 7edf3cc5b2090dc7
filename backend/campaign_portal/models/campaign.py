from sqlalchemy import Boolean, Column, Date, ForeignKey, Integer, String, Time
from sqlalchemy.orm import relationship

from campaign_portal.db.base import Base, BaseModel
from campaign_portal.models.enums import CampaignStatus


class Campaign(Base, BaseModel):
    __tablename__ = "campaigns"

    name = Column(String(200), nullable=False)
    venue = Column(String(255), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    invitation_type = Column(String(32), nullable=False)
    status = Column(String(16), default=CampaignStatus.DRAFT.value, nullable=False)

    slots = relationship(
        "Slot",
        back_populates="campaign",
        cascade="all, delete-orphan",
        order_by="Slot.day_of_week",
    )

    def __repr__(self):
        return f"<Campaign {self.name} ({self.status})>"


class Slot(Base, BaseModel):
    __tablename__ = "slots"

    campaign_id = Column(String(36), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)  # 0-6, Sunday first
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    checkin_window_minutes = Column(Integer, default=30, nullable=False)
    checkout_window_minutes = Column(Integer, default=30, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    campaign = relationship("Campaign", back_populates="slots")

    def __repr__(self):
        return f"<Slot {self.day_of_week} {self.start_time}-{self.end_time}>"
