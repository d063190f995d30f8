"""
Enums shared by models and services.

Values are stored in String columns and compared through `.value`.
"""

from enum import Enum


class UserRole(str, Enum):
    """User role."""

    USER = "user"
    ADMIN = "admin"


class StakingStatus(str, Enum):
    """Staking entry lifecycle: active -> unstaking -> completed."""

    ACTIVE = "active"
    UNSTAKING = "unstaking"
    COMPLETED = "completed"


class VoucherStatus(str, Enum):
    """Voucher status."""

    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"


class VoucherType(str, Enum):
    """Voucher type."""

    PACKAGE = "package"
    WITHDRAW = "withdraw"
    FUTURES = "futures"
    BONUS = "bonus"
    TRADING_FEE = "trading_fee"


class TransactionType(str, Enum):
    """Transaction record type."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    WITHDRAWAL_FEE = "withdrawal_fee"
    REFUND = "refund"
    REWARD = "reward"
    DAILY_REWARD = "dailyReward"
    STAKE = "stake"
    UNSTAKE = "unstake"


class TransactionStatus(str, Enum):
    """Transaction record status."""

    INITIATED = "initiated"
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


IN_FLIGHT_TRANSACTION_STATUSES = (
    TransactionStatus.INITIATED.value,
    TransactionStatus.PENDING.value,
)
