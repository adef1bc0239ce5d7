"""
ROI plan converter.

The admin enters a percentage per plan period; accrual needs a daily
fraction and a lifetime cap fraction.
"""

from decimal import Decimal

from app.config.business_constants import DAYS_PER_MONTH, DAYS_PER_WEEK
from app.models.enums import ROIPlanType
from app.services.income.roi_accrual import ROITerms


HUNDRED = Decimal("100")


def plan_to_roi_terms(
    plan_type: str,
    percentage: Decimal,
    duration: int | None = None,
) -> ROITerms:
    """
    Convert an admin ROI plan to accrual terms.

    - daily: percentage per day for `duration` days
    - weekly: percentage per week, spread over 7 days, capped at one period
    - monthly: percentage per month, spread over 30 days, capped at one period

    Args:
        plan_type: daily / weekly / monthly
        percentage: Plan percentage (1 = 1%)
        duration: Plan length in days (required for daily plans)

    Returns:
        ROI terms

    Raises:
        ValueError: Unknown plan type or invalid inputs

    Example:
        >>> plan_to_roi_terms("daily", Decimal("1"), 30)
        ROITerms(daily_roi=Decimal('0.01'), max_roi=Decimal('0.30'), is_enabled=True)
    """
    if percentage < 0:
        raise ValueError(f"ROI percentage must not be negative: {percentage}")

    fraction = percentage / HUNDRED

    try:
        plan = ROIPlanType(plan_type)
    except ValueError as e:
        raise ValueError(f"Unknown ROI plan type: {plan_type}") from e

    if plan is ROIPlanType.DAILY:
        if duration is None or duration <= 0:
            raise ValueError("Daily ROI plans need a positive duration in days")
        return ROITerms(daily_roi=fraction, max_roi=fraction * duration)

    if plan is ROIPlanType.WEEKLY:
        return ROITerms(daily_roi=fraction / DAYS_PER_WEEK, max_roi=fraction)

    return ROITerms(daily_roi=fraction / DAYS_PER_MONTH, max_roi=fraction)
