"""
Daily payout package.

- payout_scheduler: posts yesterday's income once per calendar day
- batch_payout: runs the daily payout for every account
- results: outcome types
"""

from app.services.payout.batch_payout import BatchPayoutRunner, BatchPayoutSummary
from app.services.payout.payout_scheduler import DailyPayoutScheduler
from app.services.payout.results import DailyAmounts, PayoutOutcome, PayoutResult


__all__ = [
    "BatchPayoutRunner",
    "BatchPayoutSummary",
    "DailyAmounts",
    "DailyPayoutScheduler",
    "PayoutOutcome",
    "PayoutResult",
]
