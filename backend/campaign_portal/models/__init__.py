# Import every model so Base.metadata knows all tables
from campaign_portal.models.agent import Agent, Tier
from campaign_portal.models.attendance import Attendance
from campaign_portal.models.campaign import Campaign, Slot
from campaign_portal.models.invitation import Invitation
from campaign_portal.models.pin_code import PinCode
from campaign_portal.models.reward import Reward

__all__ = [
    "Agent",
    "Attendance",
    "Campaign",
    "Invitation",
    "PinCode",
    "Reward",
    "Slot",
    "Tier",
]
