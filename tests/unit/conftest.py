"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- Default ROI terms and calculator
- Deposit snapshots
- Team member builder
"""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from app.services.income.roi_accrual import (
    DepositSnapshot,
    ROIAccrualCalculator,
    ROITerms,
)
from app.services.team.team_aggregator import TeamMember


@pytest.fixture
def roi_terms():
    """
    Default ROI terms: 1% per day, 30% cap (30 accrual days).

    Returns:
        ROITerms: Terms for testing
    """
    return ROITerms(daily_roi=Decimal("0.01"), max_roi=Decimal("0.30"))


@pytest.fixture
def roi_calculator(roi_terms):
    """
    Create ROIAccrualCalculator with default terms.

    Args:
        roi_terms: Default ROI terms

    Returns:
        ROIAccrualCalculator: Calculator instance for testing
    """
    return ROIAccrualCalculator(roi_terms)


@pytest.fixture
def approved_at():
    """Approval moment shared by deposit fixtures."""
    return datetime(2026, 10, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
def deposit_100(approved_at):
    """
    $100 deposit approved 2026-10-01 09:00 UTC.

    Returns:
        DepositSnapshot: Approved deposit
    """
    return DepositSnapshot(
        deposit_id=1, amount=Decimal("100"), approved_at=approved_at
    )


@pytest.fixture
def member():
    """
    Build a TeamMember.

    Returns:
        Callable: member(account_id, self_deposit, active=True)
    """
    def _member(account_id: int, self_deposit: str, active: bool = True) -> TeamMember:
        return TeamMember(
            account_id=account_id,
            self_deposit=Decimal(self_deposit),
            status="active" if active else "inactive",
        )
    return _member
