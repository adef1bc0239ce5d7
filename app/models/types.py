"""
Standard type definitions for database models.

Provides consistent types for monetary and rate fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for amounts, balances, income
# Precision: 18 digits total, 8 after decimal point
# Range: up to 9,999,999,999.99999999
MoneyType = DECIMAL(18, 8)

# Rate fraction type for ROI settings
# Precision: 12 digits total, 8 after decimal point
# Suitable for: daily ROI fractions (e.g., 0.01, 0.00142857)
RateType = DECIMAL(12, 8)

# Percentage type for level commissions
# Precision: 7 digits total, 4 after decimal point
# Suitable for: income percentages (e.g., 10.0000 = 10%)
PercentType = DECIMAL(7, 4)
