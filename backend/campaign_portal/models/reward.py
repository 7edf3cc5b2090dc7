from sqlalchemy import Column, ForeignKey, Numeric, String

from campaign_portal.db.base import Base, BaseModel
from campaign_portal.models.enums import RewardStatus


class Reward(Base, BaseModel):
    """Materialised by an external accrual process; read-only here."""

    __tablename__ = "rewards"

    agent_id = Column(String(36), ForeignKey("agents.id"), nullable=False, index=True)
    attendance_id = Column(String(36), ForeignKey("attendance.id"), nullable=False, unique=True)
    amount = Column(Numeric(10, 2), nullable=False)
    capacity_type = Column(String(32), nullable=False)
    status = Column(String(16), default=RewardStatus.PENDING.value, nullable=False)
