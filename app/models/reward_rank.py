"""
Reward rank model.

Admin-configured rank with the team business thresholds that unlock a
one-off rank reward.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import MoneyType


class RewardRank(Base):
    """
    RewardRank entity.

    Attributes:
        id: Primary key
        rank: 1-based rank number, higher ranks need more business
        total_business: Minimum summed principal of the whole team
        power_leg_business: Minimum principal of the strongest level
        other_leg_business: Minimum principal of all other levels together
        reward_income: Amount credited once when the rank is reached
    """

    __tablename__ = "reward_ranks"
    __table_args__ = (
        CheckConstraint('rank >= 1', name='check_reward_rank_positive'),
        CheckConstraint(
            'reward_income >= 0', name='check_reward_rank_income_non_negative'
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    rank: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    total_business: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    power_leg_business: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    other_leg_business: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    reward_income: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<RewardRank(rank={self.rank}, reward_income={self.reward_income})>"
