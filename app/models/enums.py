"""
Model enums.

String enums stored in status/type columns.
"""

from enum import StrEnum


class AccountStatus(StrEnum):
    """Human-readable account activation status."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class DepositStatus(StrEnum):
    """Deposit lifecycle status (owned by the approval workflow)."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TransactionType(StrEnum):
    """Wallet ledger transaction types."""

    DAILY_INCOME = "daily_income"
    WITHDRAWAL = "withdrawal"
    ADJUSTMENT = "adjustment"
    RANK_REWARD = "rank_reward"


class NotificationKind(StrEnum):
    """Notification event kinds emitted by the engine."""

    ACTIVATION = "activation"
    INACTIVITY_WARNING = "inactivity_warning"
    DAILY_INCOME = "daily_income"
    RANK_REWARD = "rank_reward"
    ADVISORY = "advisory"


class ROIPlanType(StrEnum):
    """Admin ROI plan period."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
