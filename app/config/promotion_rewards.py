"""
Pre-launch promotion reward table.

Package purchase rewards are granted to the buyer; team milestones are
granted to the sponsor.
"""

from decimal import Decimal
from typing import NamedTuple


PROMOTION_TYPE_PRELAUNCH = "prelaunch"
PROMOTION_DURATION_DAYS = 14
PROMOTION_VOUCHER_EXPIRY_DAYS = 14
PROMOTION_DESCRIPTION_PREFIX = "Pre-Launch Promotion"
PROMOTION_BADGE = "PROMO"


class PackageReward(NamedTuple):
    """Voucher granted for buying a package during the promotion."""

    value: Decimal
    roi_days: int
    affects_max_cap: bool


class MilestoneReward(NamedTuple):
    """One voucher of a team milestone."""

    voucher_type: str  # "package" or "withdraw"
    value: Decimal
    roi_days: int | None = None
    affects_max_cap: bool = False


class TeamMilestone(NamedTuple):
    """Team activation milestone."""

    key: str
    title: str
    required_activations: int
    rewards: tuple[MilestoneReward, ...]
    trial_only: bool = False  # Count only Trial Node activations
    min_package_id: int | None = None  # Require this many on packages >= id
    min_package_count: int = 0


PACKAGE_PURCHASE_REWARDS: dict[int, PackageReward] = {
    0: PackageReward(Decimal("10"), 14, False),
    1: PackageReward(Decimal("15"), 30, True),
    2: PackageReward(Decimal("30"), 30, True),
    3: PackageReward(Decimal("50"), 30, True),
    4: PackageReward(Decimal("100"), 30, True),
    5: PackageReward(Decimal("150"), 30, True),
    6: PackageReward(Decimal("200"), 30, True),
    7: PackageReward(Decimal("250"), 30, True),
    8: PackageReward(Decimal("300"), 30, True),
}

TEAM_MILESTONES: tuple[TeamMilestone, ...] = (
    TeamMilestone(
        key="team_3",
        title="3 Team Activations",
        required_activations=3,
        rewards=(MilestoneReward("package", Decimal("15"), 30, False),),
    ),
    TeamMilestone(
        key="trial_5",
        title="5 Trial Activations",
        required_activations=5,
        trial_only=True,
        rewards=(MilestoneReward("withdraw", Decimal("5")),),
    ),
    TeamMilestone(
        key="team_10",
        title="10 Team Activations",
        required_activations=10,
        rewards=(
            MilestoneReward("withdraw", Decimal("25")),
            MilestoneReward("package", Decimal("20"), 30, True),
        ),
    ),
    TeamMilestone(
        key="team_10_silver",
        title="10 Team Activations with 5 Silver+",
        required_activations=10,
        min_package_id=2,
        min_package_count=5,
        rewards=(
            MilestoneReward("withdraw", Decimal("50")),
            MilestoneReward("package", Decimal("30"), 30, True),
        ),
    ),
)


def milestone_description(milestone: TeamMilestone) -> str:
    """Description stamped on milestone vouchers; used to detect duplicates."""
    return f"{PROMOTION_DESCRIPTION_PREFIX}: {milestone.title}"


def package_reward_description(package_name: str) -> str:
    """Description stamped on package purchase reward vouchers."""
    return f"{PROMOTION_DESCRIPTION_PREFIX}: {package_name} purchase reward"


def milestone_voucher_description(milestone: TeamMilestone, reward: MilestoneReward) -> str:
    """Description of one milestone voucher; stakable vouchers carry a suffix."""
    base = milestone_description(milestone)
    if reward.voucher_type == "package":
        return f"{base} (Stakable)"
    return base
