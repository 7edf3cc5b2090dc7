from sqlalchemy import func
from sqlalchemy.orm import Session

from campaign_portal.models import Agent, Invitation, Reward
from campaign_portal.models.enums import InvitationStatus, RewardStatus


class RewardService:
    """
    Read side of reward accrual. Reward rows are written by an external
    process; until any exist for an agent, the pending amount is estimated
    from completed invitations at the agent's current tier rate.
    """

    def summary(self, db: Session, agent: Agent) -> dict:
        rate = float(agent.tier.reward_amount)
        completed = (
            db.query(func.count(Invitation.id))
            .filter(
                Invitation.agent_id == agent.id,
                Invitation.status == InvitationStatus.COMPLETED.value,
            )
            .scalar()
        )

        totals = {
            status: float(amount or 0)
            for status, amount in (
                db.query(Reward.status, func.sum(Reward.amount))
                .filter(Reward.agent_id == agent.id)
                .group_by(Reward.status)
                .all()
            )
        }

        if totals:
            source = "rewards"
            pending = totals.get(RewardStatus.PENDING.value, 0.0)
            confirmed = totals.get(RewardStatus.CONFIRMED.value, 0.0)
            paid = totals.get(RewardStatus.PAID.value, 0.0)
        else:
            source = "estimate"
            pending = completed * rate
            confirmed = 0.0
            paid = 0.0

        return {
            "source": source,
            "reward_amount": rate,
            "completed_count": completed,
            "pending": pending,
            "confirmed": confirmed,
            "paid": paid,
            "total": pending + confirmed + paid,
        }


# Singleton instance
reward_service = RewardService()
