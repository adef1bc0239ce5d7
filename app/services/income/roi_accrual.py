"""
ROI accrual calculator.

Daily ROI per approved deposit, capped at max_roi of the principal.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import ROUND_FLOOR, Decimal
from zoneinfo import ZoneInfo

from loguru import logger

from app.config.settings import Settings
from app.models.deposit import Deposit
from app.models.roi_setting import ROISetting
from app.utils.datetime_utils import as_utc, local_date


ONE_DAY = timedelta(days=1)

# Rates are stored with 8 decimals: 0.05 / 0.00714286 must still give 7 days.
# The last day then pays only what is left below the cap.
MAX_DAYS_TOLERANCE = Decimal("0.0001")


@dataclass(frozen=True)
class ROITerms:
    """Effective ROI terms."""

    daily_roi: Decimal
    max_roi: Decimal
    is_enabled: bool = True

    @property
    def max_days(self) -> int:
        """Accrual days until the cap (0 when the daily rate is not positive)."""
        if self.daily_roi <= 0:
            return 0
        quotient = self.max_roi / self.daily_roi + MAX_DAYS_TOLERANCE
        return int(quotient.to_integral_value(rounding=ROUND_FLOOR))

    @classmethod
    def from_setting(
        cls, setting: ROISetting | None, settings: Settings
    ) -> "ROITerms":
        """
        Build terms from the admin setting, falling back to defaults.

        Args:
            setting: Stored ROI setting or None
            settings: Application settings with default rates

        Returns:
            Effective terms
        """
        if setting is None:
            return cls(
                daily_roi=settings.default_daily_roi,
                max_roi=settings.default_max_roi,
            )
        return cls(
            daily_roi=(
                setting.daily_roi
                if setting.daily_roi is not None
                else settings.default_daily_roi
            ),
            max_roi=(
                setting.max_roi
                if setting.max_roi is not None
                else settings.default_max_roi
            ),
            is_enabled=setting.is_enabled is not False,
        )


@dataclass(frozen=True)
class DepositSnapshot:
    """Approved deposit as seen by the accrual math."""

    deposit_id: int
    amount: Decimal
    approved_at: datetime

    @classmethod
    def from_model(cls, deposit: Deposit) -> "DepositSnapshot":
        """Build snapshot; created_at stands in for a missing approved_at."""
        approved_at = deposit.approved_at or deposit.created_at
        return cls(
            deposit_id=deposit.id,
            amount=deposit.amount,
            approved_at=as_utc(approved_at),
        )


@dataclass(frozen=True)
class ROIAccrual:
    """ROI figures of one account."""

    cumulative_roi: Decimal = Decimal("0")
    today_roi: Decimal = Decimal("0")


class ROIAccrualCalculator:
    """
    ROI accrual calculator.

    A deposit earns amount * daily_roi for each day from the approval day
    (day 1) up to max_days; later days add nothing.
    """

    def __init__(self, terms: ROITerms) -> None:
        """
        Initialize ROI accrual calculator.

        Args:
            terms: Effective ROI terms
        """
        self.terms = terms

    def elapsed_days(self, deposit: DepositSnapshot, now: datetime) -> int:
        """
        Days since approval, counting the approval day as day 1.

        Args:
            deposit: Approved deposit
            now: Current moment

        Returns:
            Inclusive elapsed days (0 or less before approval)
        """
        return (as_utc(now) - deposit.approved_at) // ONE_DAY + 1

    def roi_days(self, deposit: DepositSnapshot, now: datetime) -> int:
        """Elapsed days clamped to [0, max_days]."""
        return max(0, min(self.elapsed_days(deposit, now), self.terms.max_days))

    def cap(self, deposit: DepositSnapshot) -> Decimal:
        """Lifetime ROI limit of one deposit."""
        return deposit.amount * self.terms.max_roi

    def day_accrual(self, deposit: DepositSnapshot, day_number: int) -> Decimal:
        """
        ROI earned on the N-th accrual day of a deposit.

        Args:
            deposit: Approved deposit
            day_number: 1 for the approval day

        Returns:
            amount * daily_roi, the remainder below the cap on the last
            day, zero outside [1, max_days]
        """
        if deposit.amount <= 0 or not 1 <= day_number <= self.terms.max_days:
            return Decimal("0")
        daily = deposit.amount * self.terms.daily_roi
        remaining = self.cap(deposit) - daily * (day_number - 1)
        return max(Decimal("0"), min(daily, remaining))

    def deposit_roi(self, deposit: DepositSnapshot, now: datetime) -> Decimal:
        """
        ROI credited to one deposit so far.

        Args:
            deposit: Approved deposit
            now: Current moment

        Returns:
            amount * daily_roi * roi_days, never above amount * max_roi
        """
        if deposit.amount <= 0:
            logger.warning(
                "Invalid deposit amount for ROI accrual",
                extra={
                    "deposit_id": deposit.deposit_id,
                    "amount": str(deposit.amount),
                },
            )
            return Decimal("0")
        credited = deposit.amount * self.terms.daily_roi * self.roi_days(deposit, now)
        return min(credited, self.cap(deposit))

    def calculate(
        self,
        deposits: list[DepositSnapshot],
        now: datetime,
        is_active: bool,
        cached_roi: Decimal = Decimal("0"),
    ) -> ROIAccrual:
        """
        Calculate cumulative and today's ROI.

        Args:
            deposits: Approved deposits of the account
            now: Current moment
            is_active: Account activation state
            cached_roi: Last cumulative ROI computed while active

        Returns:
            ROI figures; inactive or disabled accounts keep the cached
            cumulative value and earn nothing today
        """
        if not is_active or not self.terms.is_enabled:
            return ROIAccrual(cumulative_roi=cached_roi, today_roi=Decimal("0"))

        cumulative = Decimal("0")
        today = Decimal("0")

        for deposit in deposits:
            cumulative += self.deposit_roi(deposit, now)
            today += self.day_accrual(deposit, self.elapsed_days(deposit, now))

        return ROIAccrual(cumulative_roi=cumulative, today_roi=today)

    def accrual_for_day(
        self,
        deposits: list[DepositSnapshot],
        day: date,
        tz: ZoneInfo,
    ) -> Decimal:
        """
        ROI earned on one local calendar day.

        A deposit contributes when the day falls within its first
        max_days local days, the approval day being the first. The
        last of those days pays only the remainder below the cap.

        Args:
            deposits: Approved deposits of the account
            day: Local calendar day
            tz: Payout time zone

        Returns:
            ROI for that day
        """
        if not self.terms.is_enabled:
            return Decimal("0")

        total = Decimal("0")
        for deposit in deposits:
            days_since = (day - local_date(deposit.approved_at, tz)).days
            total += self.day_accrual(deposit, days_since + 1)
        return total
