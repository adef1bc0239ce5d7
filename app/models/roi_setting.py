"""
ROI setting model.

Singleton row holding the admin ROI plan and its derived daily rate and cap.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import ROIPlanType
from app.models.types import PercentType, RateType


ROI_SETTING_ID = 1


class ROISetting(Base):
    """ROI configuration (single row, id=1)."""

    __tablename__ = "roi_settings"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, default=ROI_SETTING_ID
    )

    # Derived terms used by the accrual math
    daily_roi: Mapped[Decimal] = mapped_column(RateType, nullable=False)
    max_roi: Mapped[Decimal] = mapped_column(RateType, nullable=False)

    # Plan inputs as entered by the admin
    plan_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ROIPlanType.DAILY.value
    )
    percentage: Mapped[Decimal | None] = mapped_column(
        PercentType, nullable=True
    )
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)

    is_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
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
            f"<ROISetting(daily_roi={self.daily_roi}, max_roi={self.max_roi}, "
            f"plan={self.plan_type}, enabled={self.is_enabled})>"
        )
