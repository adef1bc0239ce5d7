"""Notification message texts."""

from datetime import date
from decimal import Decimal

from app.utils.formatters import format_money


def activation_message() -> str:
    """Message sent when an account becomes active."""
    return "Congratulations! Your account is now active and you can earn ROI income."


def inactivity_message(missing: Decimal) -> str:
    """
    Message sent when an account is (or becomes) inactive.

    Args:
        missing: Amount still needed to reach the activation threshold
    """
    return (
        f"Add {format_money(missing)} more to activate your account "
        f"and start earning ROI income."
    )


def daily_income_message(
    amount: Decimal, roi: Decimal, level: Decimal, for_date: date
) -> str:
    """Message sent after daily income was posted."""
    return (
        f"Daily income of {format_money(amount)} for {for_date.isoformat()} "
        f"was added to your wallet (ROI {format_money(roi)}, "
        f"level income {format_money(level)})."
    )


def rank_reward_message(
    rank: int, amount: Decimal, power_leg: Decimal, other_legs: Decimal
) -> str:
    """Message sent when a rank reward was credited."""
    return (
        f"Congratulations! You achieved Rank {rank} with a reward of "
        f"{format_money(amount)} based on your power leg "
        f"({format_money(power_leg)}) and other legs "
        f"({format_money(other_legs)}) performance."
    )
