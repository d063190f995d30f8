"""
Team earnings distribution.

Every user credited by today's ROI run passes a share of it to the
sponsors above them. Shares are accumulated per sponsor, then applied
against the sponsor's capped entries in one transaction per sponsor.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import TEAM_LEVEL_PERCENTS
from app.repositories.invited_member_repository import InvitedMemberRepository
from app.repositories.staking_entry_repository import StakingEntryRepository
from app.repositories.team_earning_record_repository import TeamEarningRecordRepository
from app.repositories.user_balance_repository import UserBalanceRepository
from app.services.base_service import BaseService, transaction
from app.services.staking.calculator import ZERO, allocate_across_entries
from app.services.staking.earnings_applier import apply_allocation
from app.services.team.chain import get_upline
from app.utils.datetime_utils import utc_now
from app.utils.formatters import quantize_money


@dataclass
class Contribution:
    """One downline member's share for a sponsor."""

    source_user_id: int
    level: int
    amount: Decimal


@dataclass
class SponsorReward:
    """Everything owed to one sponsor in this run."""

    total: Decimal = ZERO
    contributions: list[Contribution] = field(default_factory=list)


@dataclass
class SponsorOutcome:
    """Applied result for one sponsor."""

    credited: Decimal = ZERO
    missed: Decimal = ZERO
    entries_updated: int = 0
    records_logged: int = 0


@dataclass
class TeamDistributionSummary:
    """Totals of a team earnings run."""

    rewarded_users: int = 0
    total_rewarded: Decimal = ZERO
    total_missed: Decimal = ZERO
    total_entries_updated: int = 0
    records_logged: int = 0
    failed_users: list[int] = field(default_factory=list)


def accumulate_rewards(
    earnings: dict[int, Decimal],
    sponsor_of: dict[int, int],
    percents: tuple[Decimal, ...] = TEAM_LEVEL_PERCENTS,
) -> dict[int, SponsorReward]:
    """
    Compute each sponsor's share of the downline's daily earnings.

    Args:
        earnings: Earner user ID -> daily earning
        sponsor_of: Invitee -> sponsor mapping
        percents: Share per level, level 1 first

    Returns:
        Sponsor user ID -> accumulated reward
    """
    rewards: dict[int, SponsorReward] = {}

    for earner_id, earning in earnings.items():
        upline = get_upline(sponsor_of, earner_id, len(percents))
        for level, sponsor_id in enumerate(upline, start=1):
            amount = quantize_money(earning * percents[level - 1])
            if amount <= 0:
                continue
            reward = rewards.setdefault(sponsor_id, SponsorReward())
            reward.total += amount
            reward.contributions.append(
                Contribution(source_user_id=earner_id, level=level, amount=amount)
            )

    return rewards


def split_credited(
    contributions: list[Contribution], credited: Decimal
) -> list[Contribution]:
    """Attribute a credited amount to contributions in order."""
    out: list[Contribution] = []
    remaining = credited
    for contribution in contributions:
        if remaining <= 0:
            break
        applied = min(contribution.amount, remaining)
        if applied <= 0:
            continue
        out.append(
            Contribution(
                source_user_id=contribution.source_user_id,
                level=contribution.level,
                amount=applied,
            )
        )
        remaining -= applied
    return out


class TeamEarningsDistributor(BaseService):
    """Team commission payout over the referral tree."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize team earnings distributor."""
        super().__init__(session)
        self.balance_repo = UserBalanceRepository(session)
        self.invited_repo = InvitedMemberRepository(session)
        self.staking_repo = StakingEntryRepository(session)
        self.record_repo = TeamEarningRecordRepository(session)

    async def distribute(self) -> TeamDistributionSummary:
        """Run the team earnings distribution."""
        summary = TeamDistributionSummary()

        earners = await self.balance_repo.list_with_daily_earning()
        if not earners:
            self.logger.info("Team earnings: no earners today")
            return summary

        earnings = {row.user_id: Decimal(row.daily_earning) for row in earners}
        sponsor_of = await self.invited_repo.get_sponsor_map()
        rewards = accumulate_rewards(earnings, sponsor_of)

        for sponsor_id in sorted(rewards):
            reward = rewards[sponsor_id]
            if reward.total <= 0:
                continue
            try:
                outcome = await self.apply_reward(sponsor_id, reward)
            except Exception as e:
                summary.failed_users.append(sponsor_id)
                self.logger.error(f"Team earnings failed for sponsor {sponsor_id}: {e}")
                continue

            if outcome.credited > 0 or outcome.missed > 0:
                summary.rewarded_users += 1
                summary.total_rewarded += outcome.credited
                summary.total_missed += outcome.missed
                summary.total_entries_updated += outcome.entries_updated
                summary.records_logged += outcome.records_logged

        self.logger.info(
            "Team earnings distribution complete",
            rewarded_users=summary.rewarded_users,
            rewarded=str(summary.total_rewarded),
            missed=str(summary.total_missed),
            records=summary.records_logged,
            failed=len(summary.failed_users),
        )
        return summary

    @transaction
    async def apply_reward(self, sponsor_id: int, reward: SponsorReward) -> SponsorOutcome:
        """
        Apply one sponsor's accumulated reward against their capped entries.

        A sponsor without a wallet row misses the whole amount.
        """
        outcome = SponsorOutcome()

        balance = await self.balance_repo.get_by_user(sponsor_id, for_update=True)
        if balance is None:
            outcome.missed = reward.total
            return outcome

        entries = [
            entry
            for entry in await self.staking_repo.get_active_by_user(sponsor_id, for_update=True)
            if entry.max_earning > 0
        ]
        plan = allocate_across_entries(entries, reward.total)
        apply_allocation(entries, plan, balance, utc_now())

        outcome.credited = plan.applied
        outcome.missed = plan.missed
        outcome.entries_updated = len(plan.allocations)

        if plan.applied > 0:
            balance.balance += plan.applied
            balance.team_earning += plan.applied
        if plan.missed > 0:
            balance.missed_earnings += plan.missed

        records = [
            {
                "user_id": sponsor_id,
                "source_user_id": c.source_user_id,
                "level": c.level,
                "amount": c.amount,
            }
            for c in split_credited(reward.contributions, plan.applied)
        ]
        if records:
            await self.record_repo.bulk_create(records)
        outcome.records_logged = len(records)

        await self.session.flush()
        return outcome
