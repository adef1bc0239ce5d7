"""Pydantic models for dashboard income figures."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class IncomeFigures(BaseModel):
    """Dashboard income figures of one account.

    Cumulative values are display values; the wallet ledger is the
    record of what was actually paid.
    """

    model_config = ConfigDict(frozen=True)

    account_id: int = Field(..., ge=1, description="Account the figures belong to")
    cumulative_roi: Decimal = Field(default=Decimal("0"), ge=0)
    today_roi: Decimal = Field(default=Decimal("0"), ge=0)
    cumulative_level_income: Decimal = Field(default=Decimal("0"), ge=0)
    today_level_income: Decimal = Field(default=Decimal("0"), ge=0)
    is_active: bool = Field(default=False, description="Activation state at refresh time")
    is_stale: bool = Field(
        default=False,
        description="Served from the last known good cache after a store failure",
    )

    @classmethod
    def zero(cls, account_id: int) -> "IncomeFigures":
        """Figures shown when nothing can be read."""
        return cls(account_id=account_id)
