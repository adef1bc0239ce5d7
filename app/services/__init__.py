"""
Services.

Business logic layer of the income accrual and payout engine.
"""

# Base Service Infrastructure
from app.services.base_service import BaseService, log_operation
from app.services.context import IncomeContext

# Calculators
from app.services.income import (
    LevelIncomeCalculator,
    ROIAccrualCalculator,
    ROITerms,
    plan_to_roi_terms,
)
from app.services.team import TeamAggregator, TeamMember

# Stateful services
from app.services.activation import ActivationService, decide_activation
from app.services.config_watcher import (
    ConfigChangeListener,
    Debouncer,
    publish_config_change,
)
from app.services.dashboard_cache import DashboardCache
from app.services.income_config_service import IncomeConfigService
from app.services.ledger import LedgerBrowser, WalletLedger
from app.services.notification import NotificationService
from app.services.payout import (
    BatchPayoutRunner,
    DailyPayoutScheduler,
    PayoutOutcome,
    PayoutResult,
)
from app.services.reward import RankRewardService
from app.services.summary import (
    BatchRefreshRunner,
    IncomeFigures,
    IncomeSummaryService,
)


__all__ = [
    # Base
    "BaseService",
    "IncomeContext",
    "log_operation",
    # Calculators
    "LevelIncomeCalculator",
    "ROIAccrualCalculator",
    "ROITerms",
    "TeamAggregator",
    "TeamMember",
    "plan_to_roi_terms",
    # Services
    "ActivationService",
    "BatchPayoutRunner",
    "BatchRefreshRunner",
    "ConfigChangeListener",
    "DailyPayoutScheduler",
    "DashboardCache",
    "Debouncer",
    "IncomeConfigService",
    "IncomeFigures",
    "IncomeSummaryService",
    "LedgerBrowser",
    "NotificationService",
    "PayoutOutcome",
    "PayoutResult",
    "RankRewardService",
    "WalletLedger",
    "decide_activation",
    "publish_config_change",
]
