"""
Referral edge model.

One immutable edge per successful signup with a referral code.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class ReferralEdge(Base):
    """Directed edge referrer -> referred."""

    __tablename__ = "referrals"
    __table_args__ = (
        UniqueConstraint('referred_id', name='uq_referrals_referred_id'),
        CheckConstraint(
            'referrer_id != referred_id', name='check_referral_not_self'
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    referrer_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # No FK on purpose: edges may outlive deleted accounts
    referred_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ReferralEdge(referrer_id={self.referrer_id}, "
            f"referred_id={self.referred_id})>"
        )
