"""Tests for promotion windows and milestone rules."""

from datetime import UTC, datetime, timedelta

from app.config.promotion_rewards import (
    PACKAGE_PURCHASE_REWARDS,
    TEAM_MILESTONES,
    milestone_voucher_description,
)
from app.services.promotion.promotion_service import (
    PromotionService,
    TeamActivationStats,
    is_promotion_active,
    milestone_reached,
    promotion_ends_at,
)


MILESTONES = {m.key: m for m in TEAM_MILESTONES}
REGISTERED = datetime(2026, 3, 1, tzinfo=UTC)


class TestPromotionWindow:
    """Test the 14 day promotion window."""

    def test_ends_after_fourteen_days(self):
        assert promotion_ends_at(REGISTERED) == REGISTERED + timedelta(days=14)

    def test_active_inside_window(self):
        assert is_promotion_active(REGISTERED, REGISTERED + timedelta(days=13)) is True
        assert is_promotion_active(REGISTERED, REGISTERED + timedelta(days=14)) is False

    def test_naive_registration_time_is_utc(self):
        naive = REGISTERED.replace(tzinfo=None)
        assert is_promotion_active(naive, REGISTERED + timedelta(hours=1)) is True


class TestMilestones:
    """Test team milestone thresholds."""

    def test_three_activations(self):
        assert milestone_reached(MILESTONES["team_3"], TeamActivationStats(activated_count=3))
        assert not milestone_reached(MILESTONES["team_3"], TeamActivationStats(activated_count=2))

    def test_trial_milestone_counts_only_trials(self):
        stats = TeamActivationStats(activated_count=9, trial_count=4)
        assert not milestone_reached(MILESTONES["trial_5"], stats)
        stats.trial_count = 5
        assert milestone_reached(MILESTONES["trial_5"], stats)

    def test_silver_plus_milestone(self):
        stats = TeamActivationStats(activated_count=10, silver_plus_count=4)
        assert milestone_reached(MILESTONES["team_10"], stats)
        assert not milestone_reached(MILESTONES["team_10_silver"], stats)
        stats.silver_plus_count = 5
        assert milestone_reached(MILESTONES["team_10_silver"], stats)

    def test_stakable_rewards_have_distinct_descriptions(self):
        milestone = MILESTONES["team_10"]
        descriptions = {milestone_voucher_description(milestone, r) for r in milestone.rewards}
        assert len(descriptions) == 2


class TestRewardTable:
    """Test the public reward table."""

    def test_reward_table_lists_every_package(self):
        table = PromotionService.get_promotion_rewards()
        assert len(table["package_rewards"]) == len(PACKAGE_PURCHASE_REWARDS)
        trial = table["package_rewards"][0]
        assert trial["package_name"] == "Trial Node"
        assert trial["roi_days"] == 14
        assert trial["affects_max_cap"] is False
        assert [m["key"] for m in table["team_milestones"]] == [m.key for m in TEAM_MILESTONES]
