from enum import Enum


class InvitationType(str, Enum):
    BUSINESS_OPPORTUNITY = "business_opportunity"
    JOB_OPPORTUNITY = "job_opportunity"


class CampaignStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class InvitationStatus(str, Enum):
    PENDING = "pending"
    REGISTERED = "registered"
    ATTENDED = "attended"
    COMPLETED = "completed"
    EXPIRED = "expired"


class CapacityType(str, Enum):
    AGENT = "agent"
    BUSINESS_PARTNER = "business_partner"


class RoleType(str, Enum):
    AGENT = "agent"
    BUSINESS_PARTNER = "business_partner"


class AgentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class RewardStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PAID = "paid"
