"""
Staking service.

Subscribe to packages, list positions and run the unstake lifecycle
(active -> unstaking -> completed). Every state change runs in one
transaction together with the wallet update.
"""

import math
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import (
    MIN_STAKE_AMOUNT,
    STAKE_CURRENCY,
    UNSTAKE_COOLDOWN_DAYS,
)
from app.config.staking_packages import (
    StakingPackage,
    available_amounts,
    calculate_max_earning,
    find_package_for_amount,
    get_visible_packages,
)
from app.models.enums import StakingStatus, TransactionStatus, TransactionType
from app.models.staking_entry import StakingEntry
from app.repositories.invited_member_repository import InvitedMemberRepository
from app.repositories.staking_entry_repository import StakingEntryRepository
from app.repositories.transaction_record_repository import TransactionRecordRepository
from app.repositories.user_balance_repository import UserBalanceRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService, transaction
from app.services.promotion.promotion_service import PromotionService
from app.services.staking.bonus_distributor import (
    BonusDistribution,
    SponsorBonusDistributor,
)
from app.services.staking.calculator import principal_return
from app.services.staking.earnings_applier import complete_entry
from app.utils.datetime_utils import as_utc, utc_now
from app.utils.exceptions import BadRequestError, NotFoundError
from app.utils.formatters import format_amount_list


@dataclass
class StakeResult:
    """Outcome of a subscription."""

    entry: StakingEntry
    sponsor_bonus: BonusDistribution | None = None


@dataclass
class UnstakeResult:
    """Outcome of a completed unstake."""

    entry: StakingEntry
    principal_return: Decimal
    total_earned: Decimal
    total_withdrawal: Decimal


class StakingService(BaseService):
    """Staking ledger operations for one caller."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize staking service."""
        super().__init__(session)
        self.staking_repo = StakingEntryRepository(session)
        self.balance_repo = UserBalanceRepository(session)
        self.transaction_repo = TransactionRecordRepository(session)
        self.invited_repo = InvitedMemberRepository(session)
        self.user_repo = UserRepository(session)

    @staticmethod
    def get_staking_packages() -> list[StakingPackage]:
        """Packages offered for subscription."""
        return get_visible_packages()

    async def get_staking_entries(self, user_id: int) -> list[StakingEntry]:
        """Active and unstaking entries of the user, newest first."""
        return await self.staking_repo.get_open_by_user(user_id)

    async def create_stake(self, user_id: int, amount: Decimal) -> StakeResult:
        """
        Subscribe the user to the package matching the amount.

        Promotion rewards are evaluated after the stake is committed; a
        failure there does not undo the stake.

        Args:
            user_id: Caller
            amount: Principal, must equal a package amount exactly

        Returns:
            Created entry and sponsor bonus outcome

        Raises:
            BadRequestError: Unknown amount, missing wallet or insufficient balance
        """
        result = await self._create_stake(user_id, Decimal(amount))
        entry_id = result.entry.id

        try:
            await PromotionService(self.session).on_stake_created(result.entry)
        except Exception as e:
            self.logger.opt(exception=True).error(
                f"Promotion rewards failed for stake {entry_id}: {e}"
            )
            # The rollback expired loaded rows; reload the committed stake.
            await self.session.refresh(result.entry)

        return result

    @transaction
    async def _create_stake(self, user_id: int, amount: Decimal) -> StakeResult:
        if amount < MIN_STAKE_AMOUNT:
            raise BadRequestError(f"Minimum stake amount is {MIN_STAKE_AMOUNT} USDT")

        package = find_package_for_amount(amount)
        if package is None:
            raise BadRequestError(
                "Invalid amount. Available package amounts: "
                f"{format_amount_list(available_amounts())}"
            )

        balance = await self.balance_repo.get_by_user(user_id)
        if balance is None:
            raise BadRequestError("User balance not found")
        if balance.balance < amount:
            raise BadRequestError(f"Insufficient balance. Available: {balance.balance} USDT")

        # Re-check under a row lock; the first read may be stale.
        balance = await self.balance_repo.get_by_user(user_id, for_update=True)
        if balance is None or balance.balance < amount:
            available = balance.balance if balance else Decimal("0")
            raise BadRequestError(f"Insufficient balance. Available: {available} USDT")

        now = utc_now()
        entry = await self.staking_repo.create(
            user_id=user_id,
            package_id=package.id,
            package_name=package.name,
            amount=amount,
            currency=STAKE_CURRENCY,
            daily_roi=package.roi,
            cap=package.cap,
            max_earning=calculate_max_earning(amount, package.cap),
            total_earned=Decimal("0"),
            status=StakingStatus.ACTIVE.value,
            start_date=now,
            created_at=now,
        )

        balance.balance -= amount
        balance.on_staking += amount

        await self.transaction_repo.create(
            user_id=user_id,
            type=TransactionType.STAKE.value,
            status=TransactionStatus.COMPLETED.value,
            amount=amount,
            currency=STAKE_CURRENCY,
            description=f"Staked in {package.name}",
        )

        sponsor_bonus = None
        sponsor_id = await self.invited_repo.get_sponsor_id(user_id)
        if sponsor_id is not None and sponsor_id != user_id:
            user = await self.user_repo.get_by_id(user_id)
            label = (user.name or user.email) if user else f"user {user_id}"
            sponsor_bonus = await SponsorBonusDistributor(self.session).distribute(
                sponsor_id=sponsor_id,
                stake_amount=amount,
                source_label=label,
                package_name=package.name,
            )

        await self.session.flush()

        self.logger.info(
            f"Stake created: user={user_id} package={package.name} amount={amount}"
        )
        return StakeResult(entry=entry, sponsor_bonus=sponsor_bonus)

    @transaction
    async def request_unstake(self, user_id: int, stake_id: int) -> StakingEntry:
        """
        Start the cooldown for an active entry.

        Raises:
            NotFoundError: Entry missing, not owned or not active
        """
        entry = await self.staking_repo.get_owned(
            stake_id, user_id, StakingStatus.ACTIVE, for_update=True
        )
        if entry is None:
            raise NotFoundError("Stake not found or already unstaking/completed")

        now = utc_now()
        entry.status = StakingStatus.UNSTAKING.value
        entry.unstake_requested_date = now
        entry.cooldown_end_date = now + timedelta(days=UNSTAKE_COOLDOWN_DAYS)
        await self.session.flush()

        self.logger.info(f"Unstake requested: user={user_id} stake={stake_id}")
        return entry

    @transaction
    async def complete_unstake(self, user_id: int, stake_id: int) -> UnstakeResult:
        """
        Finish an unstake once the cooldown has elapsed.

        The principal minus earnings already received is returned to the
        wallet; the full principal leaves on_staking.

        Raises:
            NotFoundError: Entry missing, not owned or not unstaking
            BadRequestError: Cooldown missing or still running
        """
        balance = await self.balance_repo.get_or_create(user_id, for_update=True)
        entry = await self.staking_repo.get_owned(
            stake_id, user_id, StakingStatus.UNSTAKING, for_update=True
        )
        if entry is None:
            raise NotFoundError("Stake not found or not in unstaking status")

        cooldown_end = as_utc(entry.cooldown_end_date)
        if cooldown_end is None:
            raise BadRequestError("Cooldown date not set")

        now = utc_now()
        if now < cooldown_end:
            hours = math.ceil((cooldown_end - now).total_seconds() / 3600)
            raise BadRequestError(
                f"Cooldown period has not ended yet. {hours} hours remaining."
            )

        returned = principal_return(entry.amount, entry.total_earned)

        complete_entry(entry, balance, now)
        balance.balance += returned

        await self.transaction_repo.create(
            user_id=user_id,
            type=TransactionType.UNSTAKE.value,
            status=TransactionStatus.COMPLETED.value,
            amount=returned,
            currency=STAKE_CURRENCY,
            description=f"Unstaked from {entry.package_name}",
        )
        await self.session.flush()

        total_earned = Decimal(entry.total_earned)
        self.logger.info(
            f"Unstake completed: user={user_id} stake={stake_id} "
            f"principal_return={returned}"
        )
        return UnstakeResult(
            entry=entry,
            principal_return=returned,
            total_earned=total_earned,
            total_withdrawal=returned + total_earned,
        )
