"""
Deposit model.

Deposits are submitted and approved by an external workflow; the
engine only reads approved records.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import DepositStatus
from app.models.types import MoneyType


if TYPE_CHECKING:
    from app.models.account import Account


class Deposit(Base):
    """Deposit model - account principal."""

    __tablename__ = "deposits"
    __table_args__ = (
        CheckConstraint(
            'amount > 0', name='check_deposit_amount_positive'
        ),
        Index('idx_deposit_account_status', 'account_id', 'status'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    # pending, approved, rejected
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=DepositStatus.PENDING.value,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
        nullable=False,
    )
    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    account: Mapped["Account"] = relationship(
        "Account", back_populates="deposits", lazy="raise"
    )

    @property
    def is_approved(self) -> bool:
        """Check if deposit participates in ROI and activation math."""
        return self.status == DepositStatus.APPROVED.value

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Deposit(id={self.id}, account_id={self.account_id}, "
            f"amount={self.amount}, status={self.status})>"
        )
