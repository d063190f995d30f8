"""
User repository.

Data access layer for User model.
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> User | None:
        """Get user by email (case-insensitive match on stored lowercase)."""
        return await self.get_by(email=email.lower())

    async def get_by_invite_code(self, invite_code: str) -> User | None:
        """Get user by invite code."""
        return await self.get_by(invite_code=invite_code)

    async def get_many(self, user_ids: list[int]) -> dict[int, User]:
        """
        Load users by ID.

        Args:
            user_ids: User IDs

        Returns:
            Mapping of user ID to user
        """
        if not user_ids:
            return {}
        result = await self.session.execute(
            select(User).where(User.id.in_(user_ids))
        )
        return {user.id: user for user in result.scalars().all()}

    async def list_ids(self, exclude: list[int] | None = None) -> list[int]:
        """All user IDs, optionally excluding some."""
        stmt = select(User.id).order_by(User.id)
        if exclude:
            stmt = stmt.where(User.id.notin_(exclude))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_signup_dates(self, exclude: list[int] | None = None) -> list[datetime]:
        """Account creation timestamps, oldest first."""
        stmt = select(User.created_at).order_by(User.created_at.asc())
        if exclude:
            stmt = stmt.where(User.id.notin_(exclude))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
