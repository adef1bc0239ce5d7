"""
Level rule model.

Admin-configured commission rule for one referral level.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Integer,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import MoneyType, PercentType


class LevelRule(Base):
    """
    LevelRule entity.

    Rule N applies to team level N (level 1 = direct referrals).

    Attributes:
        id: Primary key
        level_index: 1-based referral level this rule applies to
        income_percent: Commission percent of the level business (10 = 10%)
        self_investment_condition: Minimum own principal of the root account
        total_team_business_condition: Minimum summed principal of the level
        total_team_size_condition: Minimum member count of the level
        blocked: Level switched off by the admin
    """

    __tablename__ = "level_rules"
    __table_args__ = (
        CheckConstraint(
            'level_index >= 1', name='check_level_rule_index_positive'
        ),
        CheckConstraint(
            'income_percent >= 0 AND income_percent <= 100',
            name='check_level_rule_percent_range'
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    level_index: Mapped[int] = mapped_column(
        Integer, nullable=False, unique=True
    )
    income_percent: Mapped[Decimal] = mapped_column(
        PercentType, nullable=False, default=Decimal("0")
    )
    self_investment_condition: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    total_team_business_condition: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    total_team_size_condition: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    blocked: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<LevelRule(level={self.level_index}, "
            f"percent={self.income_percent}, blocked={self.blocked})>"
        )
