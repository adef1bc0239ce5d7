"""
Account model.

Represents a platform member: balance, lifetime principal and the
activation flag that gates ROI accrual and withdrawals.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import AccountStatus
from app.models.types import MoneyType


if TYPE_CHECKING:
    from app.models.deposit import Deposit
    from app.models.payout_cursor import PayoutCursor


class Account(Base):
    """Account model - platform members."""

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint(
            'balance >= 0', name='check_account_balance_non_negative'
        ),
        CheckConstraint(
            'self_deposit >= 0', name='check_account_self_deposit_non_negative'
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    email: Mapped[str | None] = mapped_column(
        String(255), nullable=True, index=True
    )
    referral_code: Mapped[str] = mapped_column(
        String(32), nullable=False, unique=True, index=True
    )
    referred_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Balances
    balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    self_deposit: Mapped[Decimal] = mapped_column(
        MoneyType,
        default=Decimal("0"),
        nullable=False,
        comment="Lifetime approved principal stamped by the approval workflow",
    )
    total_deposits: Mapped[Decimal] = mapped_column(
        MoneyType,
        default=Decimal("0"),
        nullable=False,
        comment="Approved deposits total, recomputed on activation transitions",
    )

    # Activation
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=AccountStatus.INACTIVE.value,
        nullable=False,
    )
    activation_checked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Cached display values (source of truth is the wallet ledger)
    level_income: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    roi_income: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Rank rewards
    rank: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False, comment="Highest rank reached, 0 = none"
    )
    power_leg_business: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    other_leg_business: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        onupdate=lambda: datetime.now(UTC),
        nullable=True,
    )

    # Relationships
    deposits: Mapped[list["Deposit"]] = relationship(
        "Deposit", back_populates="account", lazy="raise"
    )
    payout_cursor: Mapped["PayoutCursor | None"] = relationship(
        "PayoutCursor", back_populates="account", lazy="raise", uselist=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Account(id={self.id}, referral_code={self.referral_code!r}, "
            f"balance={self.balance}, is_active={self.is_active})>"
        )
