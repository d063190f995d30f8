"""Integration tests for the daily ROI, team earnings and voucher expiry runs."""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.models import (
    StakingEntry,
    StakingStatus,
    TeamEarningRecord,
    TransactionRecord,
    UserBalance,
    Voucher,
    VoucherStatus,
)
from app.services.distribution import (
    RoiDistributor,
    TeamEarningsDistributor,
    expire_overdue_vouchers,
)
from app.utils.datetime_utils import utc_now
from app.utils.distributed_lock import DistributedLock
from jobs.tasks.daily_roi import LOCK_KEY as ROI_LOCK_KEY
from jobs.tasks.daily_roi import run_daily_roi
from jobs.tasks.team_earnings import run_team_earnings
from jobs.tasks.voucher_expiry import run_voucher_expiry


async def voucher_position(factory, user, value="30", roi_end_in=timedelta(days=7)):
    """Uncapped voucher-backed entry with its used voucher."""
    entry = await factory.stake(user, package_id=0, amount=value, max_earning=0)
    await factory.voucher(
        user=user,
        value=value,
        status=VoucherStatus.USED,
        applied_to_stake_id=entry.id,
        roi_end_date=utc_now() + roi_end_in,
        used_at=utc_now(),
    )
    return entry


class TestDailyRoi:
    """Daily ROI payout."""

    @pytest.mark.asyncio
    async def test_pays_one_day_of_roi(self, session, factory):
        """Active entries should earn amount * roi / 100."""
        user = await factory.user()
        entry = await factory.stake(user, package_id=1)

        summary = await RoiDistributor(session).distribute()

        assert summary.total_users == 1
        assert summary.total_entries == 1
        assert summary.total_rewarded == Decimal("1.00")
        assert summary.failed_users == []

        wallet = await factory.balance(user)
        assert wallet.balance == Decimal("1")
        assert wallet.daily_earning == Decimal("1")
        assert wallet.latest_earning == Decimal("1")

        stored = await factory.reload(StakingEntry, entry.id)
        assert stored.total_earned == Decimal("1")

        records = (
            await factory.session.execute(
                select(TransactionRecord).where(TransactionRecord.user_id == user.id)
            )
        ).scalars().all()
        assert [(r.type, r.amount) for r in records] == [("dailyReward", Decimal("1"))]

    @pytest.mark.asyncio
    async def test_payout_clipped_at_cap_completes_entry(self, session, factory):
        """The last payout should stop at the cap and close the entry."""
        user = await factory.user()
        entry = await factory.stake(user, package_id=1, total_earned="179.5")

        summary = await RoiDistributor(session).distribute()

        assert summary.total_rewarded == Decimal("0.5")
        assert summary.total_missed == Decimal("0.5")

        stored = await factory.reload(StakingEntry, entry.id)
        assert stored.total_earned == Decimal("180")
        assert stored.status == StakingStatus.COMPLETED.value

        wallet = await factory.balance(user)
        assert wallet.on_staking == Decimal("0")
        assert wallet.missed_earnings == Decimal("0.5")

    @pytest.mark.asyncio
    async def test_unstaking_entries_earn_nothing(self, session, factory):
        """Entries in cooldown are frozen."""
        user = await factory.user()
        await factory.stake(user, status=StakingStatus.UNSTAKING)

        summary = await RoiDistributor(session).distribute()

        assert summary.total_entries == 0
        wallet = await factory.balance(user)
        assert wallet.balance == Decimal("0")

    @pytest.mark.asyncio
    async def test_uncapped_voucher_position_paid_in_full(self, session, factory):
        """Flushed voucher positions earn without a cap until their ROI window ends."""
        user = await factory.user()
        entry = await voucher_position(factory, user)

        summary = await RoiDistributor(session).distribute()

        assert summary.total_rewarded == Decimal("0.24")
        stored = await factory.reload(StakingEntry, entry.id)
        assert stored.status == StakingStatus.ACTIVE.value

    @pytest.mark.asyncio
    async def test_voucher_position_past_roi_window_closed(self, session, factory):
        """Positions past roi_end_date should complete without a payout."""
        user = await factory.user()
        entry = await voucher_position(factory, user, roi_end_in=timedelta(hours=-1))

        summary = await RoiDistributor(session).distribute()

        assert summary.total_rewarded == Decimal("0")
        stored = await factory.reload(StakingEntry, entry.id)
        assert stored.status == StakingStatus.COMPLETED.value

        wallet = await factory.balance(user)
        assert wallet.balance == Decimal("0")
        assert wallet.on_staking == Decimal("0")

    @pytest.mark.asyncio
    async def test_stale_daily_earning_reset(self, session, factory):
        """Yesterday's daily earning should be cleared for users without entries."""
        user = await factory.user()
        wallet = await factory.balance(user)
        await factory.update(UserBalance, wallet.id, daily_earning=Decimal("5"))

        await RoiDistributor(session).distribute()

        wallet = await factory.balance(user)
        assert wallet.daily_earning == Decimal("0")

    @pytest.mark.asyncio
    async def test_single_user_run(self, session, factory):
        """A user-scoped run should leave other users untouched."""
        target = await factory.user()
        other = await factory.user()
        await factory.stake(target)
        await factory.stake(other)

        await RoiDistributor(session).distribute(user_id=target.id)

        assert (await factory.balance(target)).balance == Decimal("1")
        assert (await factory.balance(other)).balance == Decimal("0")


class TestTeamEarnings:
    """Team commissions on the downline's daily ROI."""

    @pytest.mark.asyncio
    async def test_levels_paid_and_logged(self, session, factory):
        """Level 1 and 2 sponsors should get 10% and 5%; uncapped sponsors miss."""
        grand = await factory.user()
        sponsor = await factory.user(sponsor=grand)
        earner = await factory.user(sponsor=sponsor)
        await factory.stake(sponsor, package_id=1)
        wallet = await factory.balance(earner)
        await factory.update(UserBalance, wallet.id, daily_earning=Decimal("10"))

        summary = await TeamEarningsDistributor(session).distribute()

        assert summary.total_rewarded == Decimal("1")
        assert summary.total_missed == Decimal("0.5")
        assert summary.records_logged == 1

        sponsor_wallet = await factory.balance(sponsor)
        assert sponsor_wallet.balance == Decimal("1")
        assert sponsor_wallet.team_earning == Decimal("1")

        grand_wallet = await factory.balance(grand)
        assert grand_wallet.balance == Decimal("0")
        assert grand_wallet.missed_earnings == Decimal("0.5")

        records = (
            await factory.session.execute(select(TeamEarningRecord))
        ).scalars().all()
        assert [(r.user_id, r.source_user_id, r.level, r.amount) for r in records] == [
            (sponsor.id, earner.id, 1, Decimal("1"))
        ]

    @pytest.mark.asyncio
    async def test_no_earners_is_noop(self, session, factory):
        """Without daily earnings nothing is distributed."""
        await factory.user()

        summary = await TeamEarningsDistributor(session).distribute()

        assert summary.rewarded_users == 0
        assert summary.total_rewarded == Decimal("0")


class TestVoucherExpiry:
    """Expiry sweep."""

    @pytest.mark.asyncio
    async def test_only_overdue_active_vouchers_expire(self, session, factory):
        """Active vouchers past expiry flip; others stay as they are."""
        overdue = await factory.voucher(expires_in=timedelta(hours=-2))
        fresh = await factory.voucher()
        used = await factory.voucher(status=VoucherStatus.USED, expires_in=timedelta(hours=-2))
        forever = await factory.voucher(expires_in=None)

        expired = await expire_overdue_vouchers(session)

        assert expired == 1
        statuses = {
            v.id: (await factory.reload(Voucher, v.id)).status
            for v in (overdue, fresh, used, forever)
        }
        assert statuses == {
            overdue.id: "expired",
            fresh.id: "active",
            used.id: "used",
            forever.id: "active",
        }


class TestJobRunners:
    """Job entry points with an in-process lock."""

    @pytest.mark.asyncio
    async def test_run_daily_roi_then_team_earnings(self, session_maker, factory):
        """The ROI job feeds the team earnings job."""
        sponsor = await factory.user()
        earner = await factory.user(sponsor=sponsor)
        await factory.stake(sponsor, package_id=1)
        await factory.stake(earner, package_id=5)

        roi = await run_daily_roi(session_factory=session_maker, lock=DistributedLock())
        team = await run_team_earnings(session_factory=session_maker, lock=DistributedLock())

        assert roi["success"] is True
        assert roi["users"] == 2
        assert roi["rewarded"] == pytest.approx(29.0)
        assert team["success"] is True
        assert team["rewarded"] == pytest.approx(2.8)
        assert team["records_logged"] == 1

        wallet = await factory.balance(sponsor)
        assert wallet.balance == Decimal("3.8")

    @pytest.mark.asyncio
    async def test_run_daily_roi_skips_when_locked(self, session_maker, factory):
        """A run that cannot take the lock should be skipped."""
        lock = DistributedLock()

        async with lock.lock(ROI_LOCK_KEY):
            result = await run_daily_roi(session_factory=session_maker, lock=lock)

        assert result == {"success": False, "skipped": True}

    @pytest.mark.asyncio
    async def test_run_voucher_expiry(self, session_maker, factory):
        """The expiry job reports how many vouchers it expired."""
        await factory.voucher(expires_in=timedelta(days=-1))

        result = await run_voucher_expiry(session_factory=session_maker)

        assert result == {"success": True, "expired": 1}
