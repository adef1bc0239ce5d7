"""
Income calculation package.

Pure calculators, no database writes:
- level_income: per-level eligibility and commission
- roi_accrual: capped daily ROI per approved deposit
- roi_plan: admin ROI plan to daily rate / cap conversion
"""

from app.services.income.level_income import (
    LevelIncomeCalculator,
    LevelIncomeLine,
    LevelIncomeResult,
    LevelRuleTerms,
)
from app.services.income.roi_accrual import (
    DepositSnapshot,
    ROIAccrual,
    ROIAccrualCalculator,
    ROITerms,
)
from app.services.income.roi_plan import plan_to_roi_terms


__all__ = [
    # Level income
    "LevelIncomeCalculator",
    "LevelIncomeLine",
    "LevelIncomeResult",
    "LevelRuleTerms",
    # ROI
    "DepositSnapshot",
    "ROIAccrual",
    "ROIAccrualCalculator",
    "ROITerms",
    "plan_to_roi_terms",
]
