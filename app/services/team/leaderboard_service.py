"""
Weekly invite leaderboard.

Sponsors are ranked by the number of distinct invitees who made a
qualifying stake in the current week. The week resets every Sunday at
18:00 PKT (UTC+5).
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import (
    LEADERBOARD_DEFAULT_MIN_PACKAGE_ID,
    LEADERBOARD_DEFAULT_MIN_STAKE,
    LEADERBOARD_RESET_HOUR,
    LEADERBOARD_RESET_WEEKDAY,
    LEADERBOARD_TIMEZONE_OFFSET_HOURS,
)
from app.repositories.invited_member_repository import InvitedMemberRepository
from app.repositories.staking_entry_repository import StakingEntryRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService
from app.utils.datetime_utils import as_utc, utc_now
from app.utils.exceptions import BadRequestError


@dataclass
class SponsorScore:
    """Activated invites of one sponsor."""

    user_id: int
    activated_invites: int
    first_activation_at: datetime


@dataclass
class LeaderboardRow:
    """Ranked sponsor with profile data."""

    rank: int
    user_id: int
    name: str | None
    username: str | None
    image: str | None
    invite_code: str | None
    activated_invites: int


@dataclass
class Leaderboard:
    """Top sponsors and the caller's own standing."""

    period_start: datetime
    period_end: datetime
    top: list[LeaderboardRow]
    my_rank: int | None
    my_activated_invites: int


def weekly_window_start(now: datetime) -> datetime:
    """
    Most recent Sunday 18:00 PKT at or before now, in UTC.

    Args:
        now: Aware current time

    Returns:
        Window start in UTC
    """
    offset = timedelta(hours=LEADERBOARD_TIMEZONE_OFFSET_HOURS)
    local = as_utc(now) + offset
    days_back = (local.weekday() - LEADERBOARD_RESET_WEEKDAY) % 7
    candidate = (local - timedelta(days=days_back)).replace(
        hour=LEADERBOARD_RESET_HOUR, minute=0, second=0, microsecond=0
    )
    if local < candidate:
        candidate -= timedelta(days=7)
    return candidate - offset


def rank_sponsor_scores(
    activations: dict[tuple[int, int], datetime],
) -> list[SponsorScore]:
    """
    Aggregate first activations per (sponsor, invitee) into ranked scores.

    Ordered by activated invites desc, then earliest first activation,
    then user ID.
    """
    scores: dict[int, SponsorScore] = {}
    for (sponsor_id, _invitee_id), activated_at in activations.items():
        score = scores.get(sponsor_id)
        if score is None:
            scores[sponsor_id] = SponsorScore(sponsor_id, 1, activated_at)
            continue
        score.activated_invites += 1
        score.first_activation_at = min(score.first_activation_at, activated_at)

    return sorted(
        scores.values(),
        key=lambda s: (-s.activated_invites, s.first_activation_at, s.user_id),
    )


class LeaderboardService(BaseService):
    """Invite leaderboard queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize leaderboard service."""
        super().__init__(session)
        self.staking_repo = StakingEntryRepository(session)
        self.invited_repo = InvitedMemberRepository(session)
        self.user_repo = UserRepository(session)

    async def get_invite_leaderboard(
        self,
        user_id: int,
        limit: int = 50,
        min_stake: Decimal = LEADERBOARD_DEFAULT_MIN_STAKE,
        min_package_id: int = LEADERBOARD_DEFAULT_MIN_PACKAGE_ID,
    ) -> Leaderboard:
        """
        Top sponsors of the current week plus the caller's rank.

        Raises:
            BadRequestError: Limit or thresholds out of range
        """
        if not 5 <= limit <= 100:
            raise BadRequestError("Limit must be between 5 and 100")
        if min_stake < 0 or min_package_id < 0:
            raise BadRequestError("Thresholds must not be negative")

        now = utc_now()
        start = weekly_window_start(now)

        stakes = await self.staking_repo.get_created_since(start, min_package_id, min_stake)
        sponsor_of = await self.invited_repo.get_sponsor_map()

        activations: dict[tuple[int, int], datetime] = {}
        for stake in stakes:
            sponsor_id = sponsor_of.get(stake.user_id)
            if sponsor_id is None:
                continue
            key = (sponsor_id, stake.user_id)
            created_at = as_utc(stake.created_at)
            if key not in activations or created_at < activations[key]:
                activations[key] = created_at

        ranked = rank_sponsor_scores(activations)
        top_scores = ranked[:limit]
        users = await self.user_repo.get_many([s.user_id for s in top_scores])

        top = []
        for position, score in enumerate(top_scores, start=1):
            user = users.get(score.user_id)
            top.append(
                LeaderboardRow(
                    rank=position,
                    user_id=score.user_id,
                    name=user.name if user else None,
                    username=user.username if user else None,
                    image=user.image if user else None,
                    invite_code=user.invite_code if user else None,
                    activated_invites=score.activated_invites,
                )
            )

        my_rank = None
        my_invites = 0
        for position, score in enumerate(ranked, start=1):
            if score.user_id == user_id:
                my_rank = position
                my_invites = score.activated_invites
                break

        return Leaderboard(
            period_start=start,
            period_end=now,
            top=top,
            my_rank=my_rank,
            my_activated_invites=my_invites,
        )
