"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.account import Account
from app.models.base import Base
from app.models.deposit import Deposit
from app.models.enums import (
    AccountStatus,
    DepositStatus,
    NotificationKind,
    ROIPlanType,
    TransactionType,
)
from app.models.level_rule import LevelRule
from app.models.notification import Notification
from app.models.payout_cursor import PayoutCursor
from app.models.referral import ReferralEdge
from app.models.reward_rank import RewardRank
from app.models.roi_setting import ROI_SETTING_ID, ROISetting
from app.models.wallet_transaction import LEDGER_INDEX_NAME, WalletTransaction

__all__ = [
    # Base
    "Base",
    # Enums
    "AccountStatus",
    "DepositStatus",
    "NotificationKind",
    "ROIPlanType",
    "TransactionType",
    # Core Models
    "Account",
    "Deposit",
    "ReferralEdge",
    # Admin configuration
    "LevelRule",
    "RewardRank",
    "ROISetting",
    "ROI_SETTING_ID",
    # Ledger
    "WalletTransaction",
    "LEDGER_INDEX_NAME",
    "PayoutCursor",
    # Output events
    "Notification",
]
