"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.base import Base
from app.models.enums import (
    StakingStatus,
    TransactionStatus,
    TransactionType,
    UserRole,
    VoucherStatus,
    VoucherType,
)
from app.models.invited_member import InvitedMember
from app.models.promotion_registration import PromotionRegistration
from app.models.staking_entry import StakingEntry
from app.models.team_earning_record import TeamEarningRecord
from app.models.transaction_record import TransactionRecord
from app.models.user import User
from app.models.user_balance import UserBalance
from app.models.voucher import Voucher


__all__ = [
    "Base",
    "InvitedMember",
    "PromotionRegistration",
    "StakingEntry",
    "StakingStatus",
    "TeamEarningRecord",
    "TransactionRecord",
    "TransactionStatus",
    "TransactionType",
    "User",
    "UserBalance",
    "UserRole",
    "Voucher",
    "VoucherStatus",
    "VoucherType",
]
