"""Integration tests for the pre-launch promotion."""

from datetime import timedelta
from decimal import Decimal

import pytest

from app.models import PromotionRegistration
from app.services.promotion.promotion_service import PromotionService
from app.services.staking.staking_service import StakingService
from app.utils.datetime_utils import utc_now
from app.utils.exceptions import BadRequestError


class TestRegistration:
    """Enrolment and status."""

    @pytest.mark.asyncio
    async def test_register_is_idempotent(self, session, factory):
        """Registering twice returns the first registration."""
        user = await factory.user()
        service = PromotionService(session)

        first, created = await service.register_for_promotion(user.id)
        again, created_again = await service.register_for_promotion(user.id)

        assert created is True
        assert created_again is False
        assert again.id == first.id

    @pytest.mark.asyncio
    async def test_unknown_promotion_type_rejected(self, session, factory):
        """Only the pre-launch promotion exists."""
        user = await factory.user()

        with pytest.raises(BadRequestError, match="Unknown promotion type"):
            await PromotionService(session).register_for_promotion(user.id, "summer")

    @pytest.mark.asyncio
    async def test_status_of_unregistered_user(self, session, factory):
        """Unregistered users see an empty status."""
        user = await factory.user()

        status = await PromotionService(session).check_promotion_status(user.id)

        assert status.is_registered is False
        assert status.package_rewards == []

    @pytest.mark.asyncio
    async def test_status_window(self, session, factory):
        """A fresh registration has the full 14 day window."""
        user = await factory.user()
        service = PromotionService(session)
        await service.register_for_promotion(user.id)

        status = await service.check_promotion_status(user.id)

        assert status.is_registered is True
        assert status.is_active is True
        assert status.days_remaining == 14
        assert status.ends_at - status.registered_at == timedelta(days=14)

    def test_reward_table(self):
        """The reward table lists every package and milestone."""
        table = PromotionService.get_promotion_rewards()

        assert table["duration_days"] == 14
        assert len(table["package_rewards"]) == 9
        assert [m["key"] for m in table["team_milestones"]] == [
            "team_3",
            "trial_5",
            "team_10",
            "team_10_silver",
        ]


class TestPackageRewards:
    """Vouchers for buying packages during the window."""

    @pytest.mark.asyncio
    async def test_stake_grants_package_reward_once(self, session, factory):
        """The first Bronze purchase grants a voucher; repeats do not."""
        user = await factory.user(balance=200)
        await PromotionService(session).register_for_promotion(user.id)
        staking = StakingService(session)

        await staking.create_stake(user.id, Decimal("100"))
        await staking.create_stake(user.id, Decimal("100"))

        status = await PromotionService(session).check_promotion_status(user.id)
        assert len(status.package_rewards) == 1
        voucher = status.package_rewards[0]
        assert voucher.value == Decimal("15")
        assert voucher.package_id == 1
        assert voucher.affects_max_cap is True
        assert voucher.is_promotional is True
        assert voucher.roi_validity_days == 30
        assert status.total_rewards == Decimal("15")

    @pytest.mark.asyncio
    async def test_no_reward_after_window(self, session, factory):
        """Purchases after the window closes earn nothing."""
        user = await factory.user(balance=100)
        factory.session.add(
            PromotionRegistration(
                user_id=user.id,
                promotion_type="prelaunch",
                registered_at=utc_now() - timedelta(days=15),
            )
        )
        await factory.session.commit()

        await StakingService(session).create_stake(user.id, Decimal("100"))

        status = await PromotionService(session).check_promotion_status(user.id)
        assert status.is_active is False
        assert status.days_remaining == 0
        assert status.package_rewards == []

    @pytest.mark.asyncio
    async def test_unregistered_buyer_gets_nothing(self, session, factory):
        """Only registered users are rewarded."""
        user = await factory.user(balance=100)

        result = await StakingService(session).create_stake(user.id, Decimal("100"))
        granted = await PromotionService(session).on_stake_created(result.entry)

        assert granted == []


class TestTeamMilestones:
    """Vouchers for the sponsor when invitees activate."""

    @pytest.mark.asyncio
    async def test_trial_activations_reach_two_milestones(self, session, factory):
        """Five Trial invitees reach both team_3 and trial_5."""
        sponsor = await factory.user()
        await PromotionService(session).register_for_promotion(sponsor.id)
        staking = StakingService(session)

        for _ in range(5):
            invitee = await factory.user(balance=10, sponsor=sponsor)
            await staking.create_stake(invitee.id, Decimal("10"))

        status = await PromotionService(session).check_promotion_status(sponsor.id)
        assert status.team_stats.activated_count == 5
        assert status.team_stats.trial_count == 5
        assert [v.value for v in status.package_rewards] == [Decimal("15")]
        assert [v.value for v in status.team_rewards] == [Decimal("5")]
        assert status.total_rewards == Decimal("20")
        assert status.package_rewards[0].description.endswith("(Stakable)")

    @pytest.mark.asyncio
    async def test_milestone_not_reached(self, session, factory):
        """Two activations are not enough for any milestone."""
        sponsor = await factory.user()
        await PromotionService(session).register_for_promotion(sponsor.id)
        staking = StakingService(session)

        for _ in range(2):
            invitee = await factory.user(balance=100, sponsor=sponsor)
            await staking.create_stake(invitee.id, Decimal("100"))

        status = await PromotionService(session).check_promotion_status(sponsor.id)
        assert status.team_stats.activated_count == 2
        assert status.team_rewards == []
        assert status.package_rewards == []

    @pytest.mark.asyncio
    async def test_activations_before_registration_ignored(self, session, factory):
        """Stakes made before the sponsor registered do not count."""
        sponsor = await factory.user()
        invitee = await factory.user(sponsor=sponsor)
        await factory.stake(invitee, created_at=utc_now() - timedelta(days=1))
        service = PromotionService(session)
        registration, _ = await service.register_for_promotion(sponsor.id)

        stats = await service.get_team_activation_stats(sponsor.id, registration.registered_at)

        assert stats.total_invites == 1
        assert stats.activated_count == 0
