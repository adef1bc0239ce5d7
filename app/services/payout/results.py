"""
Payout result types.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import StrEnum

from app.utils.formatters import quantize_money


class PayoutOutcome(StrEnum):
    """Outcome of one daily payout attempt."""

    POSTED = "posted"
    TOO_EARLY = "too_early"
    ALREADY_POSTED = "already_posted"
    NOTHING_TO_POST = "nothing_to_post"
    # Another writer posted first; counts as success
    RACE_LOST = "race_lost"
    # Permission denied or account missing
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class DailyAmounts:
    """Income accrued for one calendar day."""

    roi: Decimal = Decimal("0")
    level: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        object.__setattr__(self, "roi", quantize_money(self.roi))
        object.__setattr__(self, "level", quantize_money(self.level))

    @property
    def total(self) -> Decimal:
        """ROI plus level income."""
        return self.roi + self.level


@dataclass(frozen=True)
class PayoutResult:
    """Result of one daily payout run for one account."""

    account_id: int
    outcome: PayoutOutcome
    for_date: date | None = None
    amount: Decimal = Decimal("0")
    roi_portion: Decimal = Decimal("0")
    level_portion: Decimal = Decimal("0")
    error: str | None = None

    @property
    def posted(self) -> bool:
        """A ledger record was written by this run."""
        return self.outcome is PayoutOutcome.POSTED

    @property
    def failed(self) -> bool:
        """The run ended in an error."""
        return self.outcome is PayoutOutcome.FAILED
