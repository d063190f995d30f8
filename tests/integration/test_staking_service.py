"""Integration tests for staking and the direct sponsor bonus."""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.models import StakingEntry, StakingStatus, TransactionRecord
from app.services.staking.bonus_distributor import SponsorBonusDistributor
from app.services.staking.staking_service import StakingService
from app.utils.datetime_utils import utc_now
from app.utils.exceptions import BadRequestError, NotFoundError


async def records_of(session, user_id: int, record_type: str) -> list[TransactionRecord]:
    result = await session.execute(
        select(TransactionRecord)
        .where(TransactionRecord.user_id == user_id, TransactionRecord.type == record_type)
        .order_by(TransactionRecord.id)
    )
    return list(result.scalars().all())


class TestCreateStake:
    """Subscribing to packages."""

    @pytest.mark.asyncio
    async def test_create_stake_moves_balance_to_staking(self, session, factory):
        """Stake should debit balance, raise on_staking and log a record."""
        user = await factory.user(balance=150)

        result = await StakingService(session).create_stake(user.id, Decimal("100"))

        entry = result.entry
        assert entry.package_id == 1
        assert entry.package_name == "Bronze Node"
        assert entry.max_earning == Decimal("180")
        assert entry.status == StakingStatus.ACTIVE.value
        assert result.sponsor_bonus is None

        wallet = await factory.balance(user)
        assert wallet.balance == Decimal("50")
        assert wallet.on_staking == Decimal("100")

        stakes = await records_of(factory.session, user.id, "stake")
        assert len(stakes) == 1
        assert stakes[0].description == "Staked in Bronze Node"

    @pytest.mark.asyncio
    async def test_shared_amount_resolves_to_visible_tier(self, session, factory):
        """250 should subscribe to Gold, not the hidden Silver tier."""
        user = await factory.user(balance=250)

        result = await StakingService(session).create_stake(user.id, Decimal("250"))

        assert result.entry.package_id == 3
        assert result.entry.max_earning == Decimal("500")

    @pytest.mark.asyncio
    async def test_amount_below_minimum_rejected(self, session, factory):
        """Amounts under the minimum should be rejected."""
        user = await factory.user(balance=100)

        with pytest.raises(BadRequestError, match="Minimum stake amount is 10 USDT"):
            await StakingService(session).create_stake(user.id, Decimal("5"))

    @pytest.mark.asyncio
    async def test_amount_without_package_rejected(self, session, factory):
        """Amounts that match no package should list valid amounts."""
        user = await factory.user(balance=1000)

        with pytest.raises(BadRequestError, match="Invalid amount. Available package amounts"):
            await StakingService(session).create_stake(user.id, Decimal("150"))

        wallet = await factory.balance(user)
        assert wallet.balance == Decimal("1000")

    @pytest.mark.asyncio
    async def test_insufficient_balance_rejected(self, session, factory):
        """Stake larger than the balance should be rejected without changes."""
        user = await factory.user(balance=50)

        with pytest.raises(BadRequestError, match="Insufficient balance"):
            await StakingService(session).create_stake(user.id, Decimal("100"))

        wallet = await factory.balance(user)
        assert wallet.balance == Decimal("50")
        assert wallet.on_staking == Decimal("0")

    @pytest.mark.asyncio
    async def test_get_staking_entries_lists_open_only(self, session, factory):
        """Completed entries should not be listed."""
        user = await factory.user()
        active = await factory.stake(user, package_id=1)
        await factory.stake(user, package_id=0, status=StakingStatus.COMPLETED)

        entries = await StakingService(session).get_staking_entries(user.id)

        assert [e.id for e in entries] == [active.id]


class TestSponsorBonus:
    """Direct bonus paid to the sponsor on a new stake."""

    @pytest.mark.asyncio
    async def test_bonus_fits_under_sponsor_cap(self, session, factory):
        """A 100 bonus on a fresh cap-180 entry should be fully credited."""
        sponsor = await factory.user()
        sponsor_entry = await factory.stake(sponsor, package_id=1)
        invitee = await factory.user(balance=2000, sponsor=sponsor)

        result = await StakingService(session).create_stake(invitee.id, Decimal("2000"))

        bonus = result.sponsor_bonus
        assert bonus.bonus == Decimal("100")
        assert bonus.credited == Decimal("100")
        assert bonus.missed == Decimal("0")
        assert bonus.completed_entry_ids == []

        wallet = await factory.balance(sponsor)
        assert wallet.balance == Decimal("100")
        assert wallet.max_earn == Decimal("100")

        entry = await factory.reload(StakingEntry, sponsor_entry.id)
        assert entry.total_earned == Decimal("100")
        assert entry.status == StakingStatus.ACTIVE.value

        rewards = await records_of(factory.session, sponsor.id, "reward")
        assert len(rewards) == 1
        assert rewards[0].description.startswith("Direct bonus from ")

    @pytest.mark.asyncio
    async def test_bonus_overflow_is_missed_and_entry_completes(self, session, factory):
        """Bonus beyond the remaining cap should be missed; the full entry completes."""
        sponsor = await factory.user()
        sponsor_entry = await factory.stake(sponsor, package_id=1, total_earned=150)
        invitee = await factory.user(balance=2000, sponsor=sponsor)

        result = await StakingService(session).create_stake(invitee.id, Decimal("2000"))

        bonus = result.sponsor_bonus
        assert bonus.credited == Decimal("30")
        assert bonus.missed == Decimal("70")
        assert bonus.credited + bonus.missed == bonus.bonus
        assert bonus.completed_entry_ids == [sponsor_entry.id]

        entry = await factory.reload(StakingEntry, sponsor_entry.id)
        assert entry.status == StakingStatus.COMPLETED.value
        assert entry.end_date is not None

        wallet = await factory.balance(sponsor)
        assert wallet.balance == Decimal("30")
        assert wallet.missed_earnings == Decimal("70")
        assert wallet.on_staking == Decimal("0")

    @pytest.mark.asyncio
    async def test_sponsor_without_entries_misses_whole_bonus(self, session, factory):
        """A sponsor with no active entry should miss the entire bonus."""
        sponsor = await factory.user()
        invitee = await factory.user(balance=100, sponsor=sponsor)

        result = await StakingService(session).create_stake(invitee.id, Decimal("100"))

        assert result.sponsor_bonus.credited == Decimal("0")
        assert result.sponsor_bonus.missed == Decimal("5")

        wallet = await factory.balance(sponsor)
        assert wallet.balance == Decimal("0")
        assert wallet.missed_earnings == Decimal("5")
        assert await records_of(factory.session, sponsor.id, "reward") == []


class TestUnstake:
    """Unstake lifecycle: active -> unstaking -> completed."""

    @pytest.mark.asyncio
    async def test_request_unstake_starts_cooldown(self, session, factory):
        """Request should move the entry to unstaking with a 3 day cooldown."""
        user = await factory.user()
        entry = await factory.stake(user)

        updated = await StakingService(session).request_unstake(user.id, entry.id)

        assert updated.status == StakingStatus.UNSTAKING.value
        cooldown = updated.cooldown_end_date - updated.unstake_requested_date
        assert cooldown == timedelta(days=3)

    @pytest.mark.asyncio
    async def test_request_unstake_twice_rejected(self, session, factory):
        """A second request should not find an active entry."""
        user = await factory.user()
        entry = await factory.stake(user)
        service = StakingService(session)
        await service.request_unstake(user.id, entry.id)

        with pytest.raises(NotFoundError, match="already unstaking/completed"):
            await service.request_unstake(user.id, entry.id)

    @pytest.mark.asyncio
    async def test_request_unstake_of_foreign_entry_rejected(self, session, factory):
        """Users should not unstake someone else's entry."""
        owner = await factory.user()
        other = await factory.user()
        entry = await factory.stake(owner)

        with pytest.raises(NotFoundError):
            await StakingService(session).request_unstake(other.id, entry.id)

    @pytest.mark.asyncio
    async def test_complete_before_cooldown_rejected(self, session, factory):
        """Completing during the cooldown should report the hours left."""
        user = await factory.user()
        entry = await factory.stake(user)
        service = StakingService(session)
        await service.request_unstake(user.id, entry.id)

        with pytest.raises(BadRequestError, match="72 hours remaining"):
            await service.complete_unstake(user.id, entry.id)

    @pytest.mark.asyncio
    async def test_complete_returns_principal_minus_earnings(self, session, factory):
        """Completion should return amount - earned and release on_staking."""
        user = await factory.user()
        entry = await factory.stake(user, package_id=1, total_earned=30)
        service = StakingService(session)
        await service.request_unstake(user.id, entry.id)
        await factory.update(
            StakingEntry, entry.id, cooldown_end_date=utc_now() - timedelta(hours=1)
        )

        result = await service.complete_unstake(user.id, entry.id)

        assert result.principal_return == Decimal("70")
        assert result.total_earned == Decimal("30")
        assert result.total_withdrawal == Decimal("100")
        assert result.entry.status == StakingStatus.COMPLETED.value

        wallet = await factory.balance(user)
        assert wallet.balance == Decimal("70")
        assert wallet.on_staking == Decimal("0")

        unstakes = await records_of(factory.session, user.id, "unstake")
        assert [r.amount for r in unstakes] == [Decimal("70")]

    @pytest.mark.asyncio
    async def test_complete_active_entry_rejected(self, session, factory):
        """An entry that never entered cooldown cannot be completed."""
        user = await factory.user()
        entry = await factory.stake(user)

        with pytest.raises(NotFoundError, match="not in unstaking status"):
            await StakingService(session).complete_unstake(user.id, entry.id)


class TestLockOrder:
    """Wallet row is locked before the entries, as in the distribution runs."""

    @pytest.mark.asyncio
    async def test_bonus_locks_balance_before_entries(self, session, factory, statement_log):
        """Sponsor bonus should read the sponsor's balance before their entries."""
        sponsor = await factory.user()
        await factory.stake(sponsor, package_id=1)
        statement_log.clear()

        await SponsorBonusDistributor(session).distribute(
            sponsor.id, Decimal("100"), "invitee", "Bronze Node"
        )

        assert statement_log.first_index("FROM user_balances") < statement_log.first_index(
            "FROM staking_entries"
        )

    @pytest.mark.asyncio
    async def test_complete_unstake_locks_balance_before_entry(
        self, session, factory, statement_log
    ):
        """Completing an unstake should read the balance before the entry."""
        user = await factory.user()
        entry = await factory.stake(user)
        await factory.update(
            StakingEntry,
            entry.id,
            status=StakingStatus.UNSTAKING.value,
            cooldown_end_date=utc_now() - timedelta(hours=1),
        )
        statement_log.clear()

        result = await StakingService(session).complete_unstake(user.id, entry.id)

        assert result.principal_return == Decimal("100")
        assert statement_log.first_index("FROM user_balances") < statement_log.first_index(
            "FROM staking_entries"
        )
