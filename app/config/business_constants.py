"""
Business logic constants for the income engine.

Central location for business rules used across the application.
Settings import these as defaults, so this module must not import settings.
"""

from decimal import Decimal


# Account activation: minimum balance OR lifetime approved deposits
ACTIVATION_THRESHOLD = Decimal("20")

# Referral tree walk limit (levels below the root)
MAX_TEAM_DEPTH = 30

# Rank rewards count the business of this many team levels
REWARD_TEAM_LEVELS = 7
# Ranks created by the default reward ladder
DEFAULT_REWARD_RANKS = 7

# ROI defaults used when no admin ROI setting exists
DEFAULT_DAILY_ROI = Decimal("0.01")  # 1% per day
DEFAULT_MAX_ROI = Decimal("0.30")  # 30% lifetime cap per deposit

# ROI plan conversion (admin enters a percentage per plan period)
DAYS_PER_WEEK = 7
DAYS_PER_MONTH = 30

# Daily payout: income for "yesterday" is posted no earlier than this hour
PAYOUT_CUTOFF_HOUR = 10
PAYOUT_TIMEZONE = "UTC"

# Batch jobs hold their Redis lock at most this long (seconds)
BATCH_LOCK_TIMEOUT = 3600

# Wallet ledger pagination
LEDGER_PAGE_SIZE = 50

# Admin configuration edits are coalesced before re-computation
CONFIG_DEBOUNCE_MS = 400

# Money precision (matches DECIMAL(18, 8) columns)
MONEY_QUANTUM = Decimal("0.00000001")
