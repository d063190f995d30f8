"""
Business logic constants.

Central location for business rules and constants used across services,
jobs and the procedure API.
"""

from decimal import Decimal


# Staking
MIN_STAKE_AMOUNT = Decimal("10")
STAKE_CURRENCY = "USDT"
UNSTAKE_COOLDOWN_DAYS = 3

# Referral commissions
DIRECT_BONUS_RATE = Decimal("0.05")  # 5% of the invitee's stake
MAX_TEAM_LEVELS = 10
# Share of an earner's daily ROI paid to sponsors 1..6 levels up
TEAM_LEVEL_PERCENTS: tuple[Decimal, ...] = (
    Decimal("0.10"),
    Decimal("0.05"),
    Decimal("0.03"),
    Decimal("0.02"),
    Decimal("0.01"),
    Decimal("0.01"),
)

# Vouchers
VOUCHER_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
VOUCHER_CODE_PREFIX = "V"
VOUCHER_CODE_GROUP_LENGTH = 4
VOUCHER_CODE_ATTEMPTS_PER_CODE = 10
VOUCHER_DEFAULT_ROI_VALIDITY_DAYS = 14
VOUCHER_POSITION_NAME = "Voucher Position"
VOUCHER_BADGE_COLORS = ("orange", "blue", "green", "purple")
VOUCHER_DEFAULT_BADGE_COLOR = "orange"
VOUCHER_MAX_BULK_QUANTITY = 100

# Team queries
TEAM_PAGE_DEFAULT_LIMIT = 50
TEAM_PAGE_MAX_LIMIT = 100
TEAM_SPHERE_DEFAULT_MAX = 60

# Wallet
TRANSACTION_HISTORY_LIMIT = 100
MIN_WITHDRAWAL_AMOUNT = Decimal("10")
WITHDRAWAL_FEE_THRESHOLD = Decimal("30")  # Fee applies strictly below this
WITHDRAWAL_FEE_RATE = Decimal("0.06")

# Invite leaderboard
LEADERBOARD_TIMEZONE_OFFSET_HOURS = 5  # PKT
LEADERBOARD_RESET_WEEKDAY = 6  # Sunday (Monday == 0)
LEADERBOARD_RESET_HOUR = 18
LEADERBOARD_DEFAULT_MIN_STAKE = Decimal("100")
LEADERBOARD_DEFAULT_MIN_PACKAGE_ID = 1

# Reporting
REPORT_TIMEZONE_OFFSET_HOURS = 5
REPORT_GROWTH_CLAMP = Decimal("0.20")  # ±20% weekly
