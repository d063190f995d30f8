"""
InvitedMember repository.

Data access layer for the referral edges.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.invited_member import InvitedMember
from app.repositories.base import BaseRepository


class InvitedMemberRepository(BaseRepository[InvitedMember]):
    """Referral edge repository with tree queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(InvitedMember, session)

    async def get_sponsor_id(self, user_id: int) -> int | None:
        """
        Get the direct sponsor of a user.

        Args:
            user_id: Invitee ID

        Returns:
            Sponsor ID or None
        """
        result = await self.session.execute(
            select(InvitedMember.sponsor_id).where(InvitedMember.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_sponsor_map(self) -> dict[int, int]:
        """Whole invite forest as invitee -> sponsor."""
        result = await self.session.execute(
            select(InvitedMember.user_id, InvitedMember.sponsor_id)
        )
        return {user_id: sponsor_id for user_id, sponsor_id in result.all()}

    async def get_invitee_ids(self, sponsor_ids: list[int]) -> list[int]:
        """
        Direct invitees of any of the given sponsors.

        Args:
            sponsor_ids: Frontier of sponsor IDs

        Returns:
            Invitee user IDs
        """
        if not sponsor_ids:
            return []
        result = await self.session.execute(
            select(InvitedMember.user_id).where(
                InvitedMember.sponsor_id.in_(sponsor_ids)
            )
        )
        return list(result.scalars().all())

    async def get_page_for_users(
        self, user_ids: list[int], offset: int, limit: int
    ) -> list[InvitedMember]:
        """Edges of the given invitees, newest first, one page."""
        if not user_ids:
            return []
        result = await self.session.execute(
            select(InvitedMember)
            .where(InvitedMember.user_id.in_(user_ids))
            .order_by(InvitedMember.created_at.desc(), InvitedMember.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_direct(self, sponsor_id: int) -> int:
        """Number of direct invitees."""
        result = await self.session.execute(
            select(func.count(InvitedMember.id)).where(
                InvitedMember.sponsor_id == sponsor_id
            )
        )
        return result.scalar() or 0
