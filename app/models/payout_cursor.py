"""
Payout cursor model.

Last daily posting time per account. Updated only inside the payout
transaction; the version column makes concurrent writers conflict.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base


if TYPE_CHECKING:
    from app.models.account import Account


class PayoutCursor(Base):
    """Daily payout idempotence cursor."""

    __tablename__ = "payout_cursors"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    last_payout_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    account: Mapped["Account"] = relationship(
        "Account", back_populates="payout_cursor", lazy="raise"
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<PayoutCursor(account_id={self.account_id}, "
            f"last_payout_at={self.last_payout_at}, version={self.version})>"
        )
