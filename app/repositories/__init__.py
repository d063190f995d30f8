"""
Repositories.

Data access layer; repositories flush but never commit.
"""

from app.repositories.invited_member_repository import InvitedMemberRepository
from app.repositories.promotion_registration_repository import (
    PromotionRegistrationRepository,
)
from app.repositories.staking_entry_repository import StakingEntryRepository
from app.repositories.team_earning_record_repository import (
    TeamEarningRecordRepository,
)
from app.repositories.transaction_record_repository import (
    TransactionRecordRepository,
)
from app.repositories.user_balance_repository import UserBalanceRepository
from app.repositories.user_repository import UserRepository
from app.repositories.voucher_repository import VoucherRepository


__all__ = [
    "InvitedMemberRepository",
    "PromotionRegistrationRepository",
    "StakingEntryRepository",
    "TeamEarningRecordRepository",
    "TransactionRecordRepository",
    "UserBalanceRepository",
    "UserRepository",
    "VoucherRepository",
]
