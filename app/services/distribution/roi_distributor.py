"""
Daily ROI distribution.

Pays one day of ROI on every active staking entry. Each user is processed
in its own transaction so one failure does not block the rest.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.staking_packages import calculate_daily_earning
from app.models.enums import TransactionStatus, TransactionType
from app.models.staking_entry import StakingEntry
from app.models.user_balance import UserBalance
from app.repositories.staking_entry_repository import StakingEntryRepository
from app.repositories.transaction_record_repository import TransactionRecordRepository
from app.repositories.user_balance_repository import UserBalanceRepository
from app.repositories.voucher_repository import VoucherRepository
from app.services.base_service import BaseService, transaction
from app.services.staking.calculator import ZERO, daily_payout, remaining_cap
from app.services.staking.earnings_applier import complete_entry
from app.utils.datetime_utils import as_utc, utc_now
from app.utils.formatters import quantize_money


@dataclass
class EntryPayout:
    """ROI paid on one entry."""

    entry_id: int
    package_name: str
    payout: Decimal
    reached_cap: bool


@dataclass
class UserDistribution:
    """ROI outcome for one user."""

    user_id: int
    total_rewarded: Decimal = ZERO
    missed: Decimal = ZERO
    released: Decimal = ZERO
    entries: list[EntryPayout] = field(default_factory=list)


@dataclass
class DistributionSummary:
    """Totals of a daily ROI run."""

    total_users: int = 0
    total_entries: int = 0
    total_rewarded: Decimal = ZERO
    total_missed: Decimal = ZERO
    failed_users: list[int] = field(default_factory=list)
    results: list[UserDistribution] = field(default_factory=list)


class RoiDistributor(BaseService):
    """Daily ROI payout over active staking entries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ROI distributor."""
        super().__init__(session)
        self.staking_repo = StakingEntryRepository(session)
        self.balance_repo = UserBalanceRepository(session)
        self.voucher_repo = VoucherRepository(session)
        self.transaction_repo = TransactionRecordRepository(session)

    async def distribute(self, user_id: int | None = None) -> DistributionSummary:
        """
        Run the daily ROI distribution.

        Users whose wallet still shows yesterday's daily earning but who no
        longer hold an active entry are reset too, so team commissions are
        never paid twice on stale earnings.

        Args:
            user_id: Restrict the run to one user

        Returns:
            Distribution summary
        """
        if user_id is not None:
            user_ids = [user_id]
        else:
            active = await self.staking_repo.get_user_ids_with_active_entries()
            stale = [row.user_id for row in await self.balance_repo.list_with_daily_earning()]
            user_ids = sorted(set(active) | set(stale))

        summary = DistributionSummary()
        self.logger.info(f"Daily ROI distribution started: users={len(user_ids)}")

        for uid in user_ids:
            try:
                result = await self.distribute_for_user(uid)
            except Exception as e:
                summary.failed_users.append(uid)
                self.logger.error(f"Daily ROI failed for user {uid}: {e}")
                continue

            if result.entries or result.released > 0:
                summary.total_users += 1
                summary.total_entries += len(result.entries)
                summary.total_rewarded += result.total_rewarded
                summary.total_missed += result.missed
                summary.results.append(result)

        self.logger.info(
            "Daily ROI distribution complete",
            users=summary.total_users,
            entries=summary.total_entries,
            rewarded=str(summary.total_rewarded),
            missed=str(summary.total_missed),
            failed=len(summary.failed_users),
        )
        return summary

    @transaction
    async def distribute_for_user(self, user_id: int) -> UserDistribution:
        """Pay one day of ROI to a single user's active entries."""
        balance = await self.balance_repo.get_by_user(user_id, for_update=True)
        if balance is None:
            raise ValueError(f"User balance not found for {user_id}")

        balance.daily_earning = ZERO
        balance.latest_earning = ZERO

        entries = await self.staking_repo.get_active_by_user(user_id, for_update=True)
        vouchers = await self.voucher_repo.get_by_applied_stake_ids([e.id for e in entries])

        result = UserDistribution(user_id=user_id)
        now = utc_now()

        for entry in entries:
            voucher = vouchers.get(entry.id)
            roi_end = as_utc(voucher.roi_end_date) if voucher is not None else None
            if roi_end is not None and roi_end <= now:
                result.released += entry.amount
                complete_entry(entry, balance, roi_end)
                continue

            if entry.max_earning > 0 and remaining_cap(entry) <= 0:
                result.released += entry.amount
                complete_entry(entry, balance, now)
                continue

            payout = self._pay_entry(entry, balance, result, now)
            if payout is not None:
                await self.transaction_repo.create(
                    user_id=user_id,
                    type=TransactionType.DAILY_REWARD.value,
                    status=TransactionStatus.COMPLETED.value,
                    amount=payout.payout,
                    currency=entry.currency,
                    description=f"Daily ROI for {entry.package_name}",
                )

        if result.total_rewarded > 0:
            balance.balance += result.total_rewarded
            balance.daily_earning += result.total_rewarded
            balance.latest_earning = result.total_rewarded
        if result.missed > 0:
            balance.missed_earnings += result.missed

        await self.session.flush()
        return result

    @staticmethod
    def _pay_entry(
        entry: StakingEntry,
        balance: UserBalance,
        result: UserDistribution,
        now: datetime,
    ) -> EntryPayout | None:
        raw = quantize_money(calculate_daily_earning(entry.amount, entry.daily_roi))
        paid, missed = daily_payout(raw, entry)
        result.missed += missed
        if paid <= 0:
            return None

        entry.total_earned = Decimal(entry.total_earned) + paid
        reached_cap = entry.max_earning > 0 and entry.total_earned >= entry.max_earning
        if reached_cap:
            result.released += entry.amount
            complete_entry(entry, balance, now)

        payout = EntryPayout(
            entry_id=entry.id,
            package_name=entry.package_name,
            payout=paid,
            reached_cap=reached_cap,
        )
        result.total_rewarded += paid
        result.entries.append(payout)
        return payout
