from sqlalchemy import Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from campaign_portal.db.base import Base, BaseModel
from campaign_portal.models.enums import AgentStatus


class Tier(Base, BaseModel):
    __tablename__ = "tiers"

    name = Column(String(100), nullable=False)
    role_type = Column(String(32), nullable=False)
    reward_amount = Column(Numeric(10, 2), nullable=False)
    invitation_limit_per_slot = Column(Integer, nullable=False)

    def __repr__(self):
        return f"<Tier {self.name} ({self.role_type})>"


class Agent(Base, BaseModel):
    __tablename__ = "agents"

    # Identity issued by the external auth provider
    user_id = Column(String(64), unique=True, nullable=False)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=True)
    nric = Column(String(32), nullable=True)
    agent_code = Column(String(32), unique=True, nullable=False)
    unit_name = Column(String(100), nullable=True)
    tier_id = Column(String(36), ForeignKey("tiers.id"), nullable=False, index=True)
    status = Column(String(16), default=AgentStatus.ACTIVE.value, nullable=False)

    tier = relationship("Tier")

    def __repr__(self):
        return f"<Agent {self.agent_code} ({self.email})>"
