"""
Team (referral tree) queries.

Levels are found breadth-first over the invite edges. A visited set keeps a
malformed, cyclic edge set from re-entering a node, so every user appears on
at most one level.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import (
    MAX_TEAM_LEVELS,
    TEAM_PAGE_DEFAULT_LIMIT,
    TEAM_PAGE_MAX_LIMIT,
    TEAM_SPHERE_DEFAULT_MAX,
)
from app.repositories.invited_member_repository import InvitedMemberRepository
from app.repositories.user_balance_repository import UserBalanceRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService
from app.utils.exceptions import BadRequestError


@dataclass
class TeamMember:
    """One downline member as shown in team views."""

    id: int
    user_id: int
    first_name: str | None
    last_name: str | None
    email: str | None
    name: str | None
    username: str | None
    image: str | None
    joined_at: datetime
    balance: Decimal = Decimal("0")
    daily_earning: Decimal = Decimal("0")
    team_earning: Decimal = Decimal("0")


@dataclass
class TeamMembersPage:
    """Page of members on one level."""

    members: list[TeamMember] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = TEAM_PAGE_DEFAULT_LIMIT
    total_pages: int = 0


@dataclass
class SphereImage:
    """Avatar of a downline member."""

    id: int
    src: str
    alt: str


class TeamService(BaseService):
    """Referral tree queries for one sponsor."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize team service."""
        super().__init__(session)
        self.invited_repo = InvitedMemberRepository(session)
        self.user_repo = UserRepository(session)
        self.balance_repo = UserBalanceRepository(session)

    async def collect_levels(self, root_id: int, max_levels: int) -> list[list[int]]:
        """
        Breadth-first walk of the downline.

        Args:
            root_id: Sponsor at the top of the tree
            max_levels: Depth limit

        Returns:
            User IDs per level (index 0 is level 1), each level sorted
        """
        visited = {root_id}
        frontier = [root_id]
        levels: list[list[int]] = []

        for _ in range(max_levels):
            invitees = await self.invited_repo.get_invitee_ids(frontier)
            next_level = sorted({uid for uid in invitees if uid not in visited})
            if not next_level:
                break
            visited.update(next_level)
            levels.append(next_level)
            frontier = next_level

        return levels

    async def get_team_members(
        self,
        user_id: int,
        level: int = 1,
        page: int = 1,
        limit: int = TEAM_PAGE_DEFAULT_LIMIT,
    ) -> TeamMembersPage:
        """
        Members on one level of the caller's downline, newest first.

        Raises:
            BadRequestError: Level, page or limit out of range
        """
        if not 1 <= level <= MAX_TEAM_LEVELS:
            raise BadRequestError(f"Level must be between 1 and {MAX_TEAM_LEVELS}")
        if page < 1:
            raise BadRequestError("Page must be at least 1")
        if not 1 <= limit <= TEAM_PAGE_MAX_LIMIT:
            raise BadRequestError(f"Limit must be between 1 and {TEAM_PAGE_MAX_LIMIT}")

        levels = await self.collect_levels(user_id, level)
        level_ids = levels[level - 1] if len(levels) >= level else []
        total = len(level_ids)

        edges = await self.invited_repo.get_page_for_users(
            level_ids, offset=(page - 1) * limit, limit=limit
        )
        member_ids = [edge.user_id for edge in edges]
        users = await self.user_repo.get_many(member_ids)
        balances = await self.balance_repo.get_for_users(member_ids)

        members = []
        for edge in edges:
            user = users.get(edge.user_id)
            wallet = balances.get(edge.user_id)
            members.append(
                TeamMember(
                    id=edge.id,
                    user_id=edge.user_id,
                    first_name=edge.first_name,
                    last_name=edge.last_name,
                    email=edge.email or (user.email if user else None),
                    name=user.name if user else None,
                    username=user.username if user else None,
                    image=user.image if user else None,
                    joined_at=edge.created_at,
                    balance=wallet.balance if wallet else Decimal("0"),
                    daily_earning=wallet.daily_earning if wallet else Decimal("0"),
                    team_earning=wallet.team_earning if wallet else Decimal("0"),
                )
            )

        return TeamMembersPage(
            members=members,
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
        )

    async def get_team_stats(self, user_id: int) -> dict[int, int]:
        """Member counts for levels 1..10 (zero-filled)."""
        levels = await self.collect_levels(user_id, MAX_TEAM_LEVELS)
        return {
            level: len(levels[level - 1]) if len(levels) >= level else 0
            for level in range(1, MAX_TEAM_LEVELS + 1)
        }

    async def get_team_sphere_images(
        self,
        user_id: int,
        max_images: int = TEAM_SPHERE_DEFAULT_MAX,
        max_levels: int = MAX_TEAM_LEVELS,
    ) -> list[SphereImage]:
        """Up to max_images downline avatars in breadth-first order."""
        max_levels = max(1, min(max_levels, MAX_TEAM_LEVELS))
        levels = await self.collect_levels(user_id, max_levels)

        images: list[SphereImage] = []
        for level_ids in levels:
            users = await self.user_repo.get_many(level_ids)
            for uid in level_ids:
                user = users.get(uid)
                if user is None or not user.image:
                    continue
                images.append(
                    SphereImage(
                        id=user.id,
                        src=user.image,
                        alt=user.name or user.username or "Team member",
                    )
                )
                if len(images) >= max_images:
                    return images
        return images
