"""
Pre-launch promotion.

Users who register get a voucher for each package type they buy within the
promotion window, and milestone vouchers when enough of their direct
invitees activate packages.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.promotion_rewards import (
    PACKAGE_PURCHASE_REWARDS,
    PROMOTION_BADGE,
    PROMOTION_DESCRIPTION_PREFIX,
    PROMOTION_DURATION_DAYS,
    PROMOTION_TYPE_PRELAUNCH,
    PROMOTION_VOUCHER_EXPIRY_DAYS,
    TEAM_MILESTONES,
    TeamMilestone,
    milestone_voucher_description,
    package_reward_description,
)
from app.config.staking_packages import get_package
from app.models.enums import VoucherType
from app.models.promotion_registration import PromotionRegistration
from app.models.staking_entry import StakingEntry
from app.models.voucher import Voucher
from app.repositories.invited_member_repository import InvitedMemberRepository
from app.repositories.promotion_registration_repository import (
    PromotionRegistrationRepository,
)
from app.repositories.staking_entry_repository import StakingEntryRepository
from app.repositories.voucher_repository import VoucherRepository
from app.services.base_service import BaseService, transaction
from app.services.voucher.issuer import VoucherDraft, create_vouchers_in_bulk
from app.utils.datetime_utils import as_utc, utc_now
from app.utils.exceptions import BadRequestError


@dataclass
class TeamActivationStats:
    """Direct invitees who activated a package since registration."""

    total_invites: int = 0
    activated_count: int = 0
    trial_count: int = 0
    silver_plus_count: int = 0


@dataclass
class PromotionStatus:
    """Caller's promotion state."""

    is_registered: bool
    registered_at: datetime | None = None
    ends_at: datetime | None = None
    is_active: bool = False
    days_remaining: int = 0
    package_rewards: list[Voucher] = field(default_factory=list)
    team_rewards: list[Voucher] = field(default_factory=list)
    total_rewards: Decimal = Decimal("0")
    team_stats: TeamActivationStats | None = None


def promotion_ends_at(registered_at: datetime) -> datetime:
    """End of a user's promotion window."""
    return as_utc(registered_at) + timedelta(days=PROMOTION_DURATION_DAYS)


def is_promotion_active(registered_at: datetime, now: datetime) -> bool:
    """Whether the promotion window is still open."""
    return now < promotion_ends_at(registered_at)


def milestone_reached(milestone: TeamMilestone, stats: TeamActivationStats) -> bool:
    """Whether team activation stats satisfy a milestone."""
    if milestone.trial_only:
        return stats.trial_count >= milestone.required_activations
    if stats.activated_count < milestone.required_activations:
        return False
    if milestone.min_package_id is not None:
        return stats.silver_plus_count >= milestone.min_package_count
    return True


class PromotionService(BaseService):
    """Promotion registration, status and reward grants."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize promotion service."""
        super().__init__(session)
        self.registration_repo = PromotionRegistrationRepository(session)
        self.voucher_repo = VoucherRepository(session)
        self.staking_repo = StakingEntryRepository(session)
        self.invited_repo = InvitedMemberRepository(session)

    @transaction
    async def register_for_promotion(
        self, user_id: int, promotion_type: str = PROMOTION_TYPE_PRELAUNCH
    ) -> tuple[PromotionRegistration, bool]:
        """
        Enrol the user. Idempotent.

        Returns:
            (registration, created)
        """
        if promotion_type != PROMOTION_TYPE_PRELAUNCH:
            raise BadRequestError(f"Unknown promotion type: {promotion_type}")

        existing = await self.registration_repo.get_by_user(user_id)
        if existing is not None:
            return existing, False

        registration = await self.registration_repo.create(
            user_id=user_id,
            promotion_type=promotion_type,
            registered_at=utc_now(),
        )
        self.logger.info(f"User {user_id} registered for {promotion_type} promotion")
        return registration, True

    async def check_promotion_status(self, user_id: int) -> PromotionStatus:
        """Promotion window, granted vouchers and team stats of the caller."""
        registration = await self.registration_repo.get_by_user(user_id)
        if registration is None:
            return PromotionStatus(is_registered=False)

        now = utc_now()
        registered_at = as_utc(registration.registered_at)
        ends_at = promotion_ends_at(registered_at)
        active = now < ends_at
        remaining = math.ceil((ends_at - now).total_seconds() / 86400) if active else 0

        vouchers = await self.voucher_repo.list_by_description_prefix(
            user_id, PROMOTION_DESCRIPTION_PREFIX
        )
        return PromotionStatus(
            is_registered=True,
            registered_at=registered_at,
            ends_at=ends_at,
            is_active=active,
            days_remaining=remaining,
            package_rewards=[v for v in vouchers if v.type == VoucherType.PACKAGE.value],
            team_rewards=[v for v in vouchers if v.type == VoucherType.WITHDRAW.value],
            total_rewards=sum((Decimal(v.value) for v in vouchers), Decimal("0")),
            team_stats=await self.get_team_activation_stats(user_id, registered_at),
        )

    @staticmethod
    def get_promotion_rewards() -> dict:
        """Reward table shown to users."""
        return {
            "duration_days": PROMOTION_DURATION_DAYS,
            "voucher_expiry_days": PROMOTION_VOUCHER_EXPIRY_DAYS,
            "package_rewards": [
                {
                    "package_id": package_id,
                    "package_name": get_package(package_id).name,
                    "value": reward.value,
                    "roi_days": reward.roi_days,
                    "affects_max_cap": reward.affects_max_cap,
                }
                for package_id, reward in PACKAGE_PURCHASE_REWARDS.items()
            ],
            "team_milestones": [
                {
                    "key": milestone.key,
                    "title": milestone.title,
                    "required_activations": milestone.required_activations,
                    "rewards": [
                        {
                            "type": reward.voucher_type,
                            "value": reward.value,
                            "roi_days": reward.roi_days,
                            "affects_max_cap": reward.affects_max_cap,
                        }
                        for reward in milestone.rewards
                    ],
                }
                for milestone in TEAM_MILESTONES
            ],
        }

    async def get_team_activation_stats(
        self, sponsor_id: int, since: datetime
    ) -> TeamActivationStats:
        """Count unique direct invitees with active stakes created since a moment."""
        invitee_ids = await self.invited_repo.get_invitee_ids([sponsor_id])
        stakes = await self.staking_repo.get_active_created_since(invitee_ids, since)

        activated = {s.user_id for s in stakes}
        trial = {s.user_id for s in stakes if s.package_id == 0}
        silver_plus = {s.user_id for s in stakes if s.package_id >= 2}
        return TeamActivationStats(
            total_invites=len(invitee_ids),
            activated_count=len(activated),
            trial_count=len(trial),
            silver_plus_count=len(silver_plus),
        )

    @transaction
    async def on_stake_created(self, entry: StakingEntry) -> list[Voucher]:
        """
        Grant rewards triggered by a new stake.

        The buyer may earn a package purchase reward; the buyer's sponsor may
        reach a team milestone.

        Returns:
            Vouchers granted
        """
        granted: list[Voucher] = []
        now = utc_now()

        registration = await self.registration_repo.get_by_user(entry.user_id)
        if registration and is_promotion_active(registration.registered_at, now):
            voucher = await self._grant_package_reward(entry.user_id, entry.package_id, now)
            if voucher is not None:
                granted.append(voucher)

        sponsor_id = await self.invited_repo.get_sponsor_id(entry.user_id)
        if sponsor_id is not None:
            sponsor_registration = await self.registration_repo.get_by_user(sponsor_id)
            if sponsor_registration and is_promotion_active(
                sponsor_registration.registered_at, now
            ):
                granted.extend(
                    await self._grant_team_milestones(
                        sponsor_id, as_utc(sponsor_registration.registered_at), now
                    )
                )

        return granted

    async def _grant_package_reward(
        self, user_id: int, package_id: int, now: datetime
    ) -> Voucher | None:
        reward = PACKAGE_PURCHASE_REWARDS.get(package_id)
        package = get_package(package_id)
        if reward is None or package is None:
            return None

        description = package_reward_description(package.name)
        if await self.voucher_repo.exists_with_description(user_id, description):
            return None

        draft = VoucherDraft(
            value=reward.value,
            title=f"${reward.value} {package.name} Purchase Reward",
            type=VoucherType.PACKAGE.value,
            badge=PROMOTION_BADGE,
            badge_color="purple" if package_id == 2 else "blue",
            description=description,
            package_id=package.id,
            package_name=package.name,
            roi_validity_days=reward.roi_days,
            affects_max_cap=reward.affects_max_cap,
            is_promotional=True,
            expires_at=now + timedelta(days=PROMOTION_VOUCHER_EXPIRY_DAYS),
            user_id=user_id,
        )
        vouchers = await create_vouchers_in_bulk(self.voucher_repo, draft, 1)
        self.logger.info(f"Package reward granted to user {user_id}: {package.name}")
        return vouchers[0]

    async def _grant_team_milestones(
        self, sponsor_id: int, registered_at: datetime, now: datetime
    ) -> list[Voucher]:
        stats = await self.get_team_activation_stats(sponsor_id, registered_at)
        existing = {
            v.description
            for v in await self.voucher_repo.list_by_description_prefix(
                sponsor_id, PROMOTION_DESCRIPTION_PREFIX
            )
        }

        granted: list[Voucher] = []
        for milestone in TEAM_MILESTONES:
            if not milestone_reached(milestone, stats):
                continue
            descriptions = [
                milestone_voucher_description(milestone, reward)
                for reward in milestone.rewards
            ]
            if existing.intersection(descriptions):
                continue

            for reward, description in zip(milestone.rewards, descriptions):
                draft = VoucherDraft(
                    value=reward.value,
                    title=f"${reward.value} {milestone.title} Reward",
                    type=reward.voucher_type,
                    badge=PROMOTION_BADGE,
                    badge_color="green" if reward.voucher_type == "withdraw" else "purple",
                    description=description,
                    roi_validity_days=reward.roi_days,
                    affects_max_cap=reward.affects_max_cap,
                    is_promotional=True,
                    expires_at=now + timedelta(days=PROMOTION_VOUCHER_EXPIRY_DAYS),
                    user_id=sponsor_id,
                )
                granted.extend(await create_vouchers_in_bulk(self.voucher_repo, draft, 1))
                existing.add(description)

            self.logger.info(f"Team milestone {milestone.key} granted to sponsor {sponsor_id}")

        return granted
