from datetime import date, datetime, time
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field, field_validator, model_validator

from campaign_portal.core.config import settings
from campaign_portal.models.enums import (
    AgentStatus,
    CampaignStatus,
    CapacityType,
    InvitationType,
    RoleType,
)


def normalize_nric(value: str) -> str:
    return value.strip().upper()


# ==============================================================================
# Campaigns & slots
# ==============================================================================

class CampaignCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    venue: str = Field(min_length=1, max_length=255)
    start_date: date
    end_date: date
    invitation_type: InvitationType

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class CampaignUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    venue: Optional[str] = Field(default=None, min_length=1, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    invitation_type: Optional[InvitationType] = None

    model_config = ConfigDict(use_enum_values=True)


class CampaignStatusUpdate(BaseModel):
    status: CampaignStatus


class CampaignResult(BaseModel):
    id: str
    name: str
    venue: str
    start_date: date
    end_date: date
    invitation_type: str
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SlotCreate(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time
    checkin_window_minutes: int = Field(default=30, ge=0)
    checkout_window_minutes: int = Field(default=30, ge=0)
    is_active: bool = True

    @model_validator(mode="after")
    def check_times(self):
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class SlotUpdate(BaseModel):
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    checkin_window_minutes: Optional[int] = Field(default=None, ge=0)
    checkout_window_minutes: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class SlotResult(BaseModel):
    id: str
    campaign_id: str
    day_of_week: int
    start_time: time
    end_time: time
    checkin_window_minutes: int
    checkout_window_minutes: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class CampaignSummary(BaseModel):
    name: str
    venue: str
    invitation_type: str

    model_config = ConfigDict(from_attributes=True)


class SlotWithCampaign(SlotResult):
    campaign: CampaignSummary


class CampaignWithSlots(CampaignResult):
    slots: List[SlotResult] = []


# ==============================================================================
# Tiers & agents
# ==============================================================================

class TierCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    role_type: RoleType
    reward_amount: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    invitation_limit_per_slot: int = Field(gt=0)


class TierUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    reward_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    invitation_limit_per_slot: Optional[int] = Field(default=None, gt=0)


class TierResult(BaseModel):
    id: str
    name: str
    role_type: str
    reward_amount: float
    invitation_limit_per_slot: int

    model_config = ConfigDict(from_attributes=True)


class AgentCreate(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    phone: Optional[str] = None
    nric: Optional[str] = None
    agent_code: str = Field(min_length=1, max_length=32)
    unit_name: Optional[str] = None
    tier_id: str


class AgentUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    nric: Optional[str] = None
    agent_code: Optional[str] = Field(default=None, min_length=1, max_length=32)
    unit_name: Optional[str] = None


class AgentTierUpdate(BaseModel):
    tier_id: str


class AgentStatusUpdate(BaseModel):
    status: AgentStatus


class AgentResult(BaseModel):
    id: str
    user_id: str
    name: str
    email: str
    agent_code: str
    unit_name: Optional[str] = None
    status: str
    tier: TierResult

    model_config = ConfigDict(from_attributes=True)


# ==============================================================================
# PIN pool
# ==============================================================================

class PinGenerateRequest(BaseModel):
    count: int = Field(ge=1, le=settings.MAX_PIN_BATCH)


class PinCodeResult(BaseModel):
    id: str
    slot_id: str
    code: str
    linked_nric: Optional[str] = None
    is_used: bool

    model_config = ConfigDict(from_attributes=True)


class PinInventory(BaseModel):
    slot_id: str
    total: int
    used: int
    unused: int


class DeleteResponse(BaseModel):
    deleted: int


# ==============================================================================
# Invitations
# ==============================================================================

class InvitationCreateRequest(BaseModel):
    slot_id: str
    capacity_type: CapacityType
    count: int = Field(ge=1, le=settings.MAX_INVITATION_BATCH)


class InvitationResult(BaseModel):
    id: str
    agent_id: str
    slot_id: str
    capacity_type: str
    unique_token: str
    status: str
    invitee_name: Optional[str] = None
    invitee_email: Optional[str] = None
    registered_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def registration_url(self) -> str:
        return f"{settings.REGISTRATION_BASE_URL.rstrip('/')}/register/{self.unique_token}"


class InvitationWithSlot(InvitationResult):
    slot: SlotWithCampaign


class QuotaResult(BaseModel):
    slot_id: str
    limit: int
    used: int
    remaining: int


class ExpireResponse(BaseModel):
    expired: int


# ==============================================================================
# Public: registration, check-in, check-out
# ==============================================================================

class RegistrationDetails(BaseModel):
    id: str
    status: str
    slot: SlotWithCampaign

    model_config = ConfigDict(from_attributes=True)


class RegistrationRequest(BaseModel):
    invitee_name: str = Field(min_length=2, max_length=200)
    invitee_nric: str = Field(min_length=9, max_length=32)
    invitee_phone: str = Field(min_length=8, max_length=32)
    invitee_email: EmailStr
    invitee_occupation: str = Field(min_length=2, max_length=100)

    @field_validator("invitee_nric", mode="before")
    @classmethod
    def clean_nric(cls, v):
        return normalize_nric(v) if isinstance(v, str) else v

    @field_validator("invitee_phone", mode="before")
    @classmethod
    def clean_phone(cls, v):
        return "".join(v.split()) if isinstance(v, str) else v


class RegistrationResponse(BaseModel):
    status: str
    message: str
    invitation_id: str
    registered_at: datetime


class AttendanceRequest(BaseModel):
    pin_code: str = Field(pattern=r"^\d{6}$")
    nric: str = Field(min_length=9, max_length=32)

    @field_validator("pin_code", mode="before")
    @classmethod
    def clean_pin(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("nric", mode="before")
    @classmethod
    def clean_nric(cls, v):
        return normalize_nric(v) if isinstance(v, str) else v


class AttendanceResponse(BaseModel):
    status: str
    message: str
    attendee_name: Optional[str] = None
    invitation_status: str
    checkin_time: datetime
    checkout_time: Optional[datetime] = None
    is_full_attendance: bool


# ==============================================================================
# Rewards & reports
# ==============================================================================

class RewardSummary(BaseModel):
    source: str  # "rewards" when reward rows exist, else "estimate"
    reward_amount: float
    completed_count: int
    pending: float
    confirmed: float
    paid: float
    total: float


class SlotReport(BaseModel):
    slot_id: str
    day_of_week: int
    invitations: int
    checked_in: int
    full_attendance: int


class CampaignReport(BaseModel):
    campaign_id: str
    invitations_by_status: Dict[str, int]
    checked_in: int
    full_attendance: int
    slots: List[SlotReport]
