"""
Wallet transaction model.

Append-only ledger of balance-affecting events.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import MoneyType


# Composite index required by ledger pagination
LEDGER_INDEX_NAME = "ix_wallet_transactions_account_posted"


class WalletTransaction(Base):
    """
    WalletTransaction entity.

    One daily_income row per account and calendar day; withdrawals and
    adjustments are written by other workflows.

    Attributes:
        id: Primary key
        account_id: Owning account
        type: Transaction type (see TransactionType)
        amount: Signed amount applied to the balance
        roi_portion: ROI share of a daily income amount
        level_portion: Level commission share of a daily income amount
        for_date: Calendar day the income was accrued for
        posted_at: Server-assigned posting time
        note: Free-text description
    """

    __tablename__ = "wallet_transactions"
    __table_args__ = (
        UniqueConstraint(
            'account_id', 'type', 'for_date',
            name='uq_wallet_transactions_account_type_date'
        ),
        Index(LEDGER_INDEX_NAME, 'account_id', 'posted_at', 'id'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    roi_portion: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    level_portion: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    for_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    posted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<WalletTransaction(id={self.id}, account_id={self.account_id}, "
            f"type={self.type}, amount={self.amount}, for_date={self.for_date})>"
        )
