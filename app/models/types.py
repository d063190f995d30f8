"""
Standard type definitions for database models.

Provides consistent types for monetary and percentage fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for amounts, balances, rewards
# Precision: 18 digits total, 8 after decimal point
# Range: up to 9,999,999,999.99999999
MoneyType = DECIMAL(18, 8)

# Daily ROI percent of a staking entry (e.g. 0.8000 = 0.8% per day)
RatePercentType = DECIMAL(10, 4)

# Earnings cap multiplier (e.g. 2.30 = 230% of principal)
CapMultiplierType = DECIMAL(6, 2)
