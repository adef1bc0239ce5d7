"""
Formatters utility.

Money rounding and display helpers.
"""

from decimal import ROUND_HALF_UP, Decimal

from app.config.business_constants import MONEY_QUANTUM


def quantize_money(amount: Decimal) -> Decimal:
    """
    Round to the stored money precision (8 decimals).

    Args:
        amount: Raw amount

    Returns:
        Rounded amount
    """
    return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal) -> str:
    """
    Format money for messages as $X.XX.

    Args:
        amount: Amount

    Returns:
        Formatted string like "$1,234.50"
    """
    return f"${amount:,.2f}"
