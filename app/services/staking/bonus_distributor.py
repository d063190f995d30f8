"""
Direct sponsor bonus.

When an invitee subscribes to a package, the sponsor receives a share of the
principal applied against the sponsor's own entry caps.
"""

from dataclasses import dataclass
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import DIRECT_BONUS_RATE, STAKE_CURRENCY
from app.models.enums import TransactionStatus, TransactionType
from app.repositories.staking_entry_repository import StakingEntryRepository
from app.repositories.transaction_record_repository import TransactionRecordRepository
from app.repositories.user_balance_repository import UserBalanceRepository
from app.repositories.voucher_repository import VoucherRepository
from app.services.staking.calculator import (
    allocate_across_entries,
    select_bonus_eligible_entries,
)
from app.services.staking.earnings_applier import apply_allocation
from app.utils.datetime_utils import utc_now


@dataclass
class BonusDistribution:
    """Result of a sponsor bonus distribution."""

    sponsor_id: int
    bonus: Decimal
    credited: Decimal
    missed: Decimal
    completed_entry_ids: list[int]


def calculate_direct_bonus(amount: Decimal) -> Decimal:
    """Direct bonus for a stake amount."""
    return Decimal(amount) * DIRECT_BONUS_RATE


class SponsorBonusDistributor:
    """
    Distributes the direct bonus over a sponsor's eligible entries.

    Runs inside the caller's transaction; never commits.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize distributor."""
        self.session = session
        self.staking_repo = StakingEntryRepository(session)
        self.voucher_repo = VoucherRepository(session)
        self.balance_repo = UserBalanceRepository(session)
        self.transaction_repo = TransactionRecordRepository(session)

    async def distribute(
        self,
        sponsor_id: int,
        stake_amount: Decimal,
        source_label: str,
        package_name: str,
    ) -> BonusDistribution:
        """
        Credit the direct bonus for one stake.

        Args:
            sponsor_id: Sponsor receiving the bonus
            stake_amount: Invitee's principal
            source_label: Invitee display name for the audit record
            package_name: Package the invitee bought

        Returns:
            Credited and missed amounts (credited + missed == bonus)
        """
        bonus = calculate_direct_bonus(stake_amount)
        now = utc_now()

        # Lock order: balance row, then entries
        balance = await self.balance_repo.get_or_create(sponsor_id, for_update=True)
        entries = await self.staking_repo.get_active_by_user(sponsor_id, for_update=True)
        voucher_stake_ids = await self.voucher_repo.get_applied_stake_ids([sponsor_id])
        eligible = select_bonus_eligible_entries(entries, voucher_stake_ids)
        plan = allocate_across_entries(eligible, bonus)

        completed = apply_allocation(eligible, plan, balance, now)

        balance.balance += plan.applied
        balance.max_earn += plan.applied
        balance.missed_earnings += plan.missed

        if plan.applied > 0:
            await self.transaction_repo.create(
                user_id=sponsor_id,
                type=TransactionType.REWARD.value,
                status=TransactionStatus.COMPLETED.value,
                amount=plan.applied,
                currency=STAKE_CURRENCY,
                description=f"Direct bonus from {source_label} ({package_name})",
            )

        await self.session.flush()

        logger.info(
            f"Direct bonus for sponsor {sponsor_id}: "
            f"credited={plan.applied} missed={plan.missed} of {bonus}"
        )
        return BonusDistribution(
            sponsor_id=sponsor_id,
            bonus=bonus,
            credited=plan.applied,
            missed=plan.missed,
            completed_entry_ids=[entry.id for entry in completed],
        )
