"""
StakingEntry repository.

Data access layer for StakingEntry model.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import StakingStatus
from app.models.staking_entry import StakingEntry
from app.repositories.base import BaseRepository


class StakingEntryRepository(BaseRepository[StakingEntry]):
    """Repository for staking entry operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(StakingEntry, session)

    async def get_owned(
        self,
        entry_id: int,
        user_id: int,
        status: StakingStatus,
        for_update: bool = False,
    ) -> StakingEntry | None:
        """
        Get an entry only if it belongs to the user and has the given status.

        Args:
            entry_id: Staking entry ID
            user_id: Owner ID
            status: Required status
            for_update: Lock the row

        Returns:
            Entry or None
        """
        stmt = select(StakingEntry).where(
            and_(
                StakingEntry.id == entry_id,
                StakingEntry.user_id == user_id,
                StakingEntry.status == status.value,
            )
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_open_by_user(self, user_id: int) -> list[StakingEntry]:
        """
        Get a user's active and unstaking entries, newest first.

        Args:
            user_id: User ID

        Returns:
            List of entries
        """
        stmt = (
            select(StakingEntry)
            .where(
                and_(
                    StakingEntry.user_id == user_id,
                    StakingEntry.status.in_(
                        [StakingStatus.ACTIVE.value, StakingStatus.UNSTAKING.value]
                    ),
                )
            )
            .order_by(StakingEntry.created_at.desc(), StakingEntry.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_active_by_user(
        self, user_id: int, for_update: bool = False
    ) -> list[StakingEntry]:
        """
        Get a user's active entries, oldest first.

        Args:
            user_id: User ID
            for_update: Lock the rows

        Returns:
            List of active entries
        """
        stmt = (
            select(StakingEntry)
            .where(
                and_(
                    StakingEntry.user_id == user_id,
                    StakingEntry.status == StakingStatus.ACTIVE.value,
                )
            )
            .order_by(StakingEntry.created_at.asc(), StakingEntry.id.asc())
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_user_ids_with_active_entries(self) -> list[int]:
        """Distinct owners of active entries, ascending."""
        stmt = (
            select(StakingEntry.user_id)
            .where(StakingEntry.status == StakingStatus.ACTIVE.value)
            .distinct()
            .order_by(StakingEntry.user_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def has_active_entry_excluding(
        self, user_id: int, excluded_ids: set[int]
    ) -> bool:
        """Whether the user holds an active entry outside the excluded IDs."""
        stmt = select(func.count(StakingEntry.id)).where(
            and_(
                StakingEntry.user_id == user_id,
                StakingEntry.status == StakingStatus.ACTIVE.value,
            )
        )
        if excluded_ids:
            stmt = stmt.where(StakingEntry.id.notin_(excluded_ids))
        result = await self.session.execute(stmt)
        return (result.scalar() or 0) > 0

    async def get_active_created_since(
        self,
        user_ids: list[int],
        since: datetime,
        min_package_id: int = 0,
        min_amount: Decimal = Decimal("0"),
    ) -> list[StakingEntry]:
        """
        Active entries of the given users created at or after a moment.

        Args:
            user_ids: Owner IDs
            since: Inclusive lower bound on created_at
            min_package_id: Minimum catalog ID
            min_amount: Minimum principal

        Returns:
            Entries ordered by created_at ascending
        """
        if not user_ids:
            return []
        stmt = (
            select(StakingEntry)
            .where(
                and_(
                    StakingEntry.user_id.in_(user_ids),
                    StakingEntry.status == StakingStatus.ACTIVE.value,
                    StakingEntry.created_at >= since,
                    StakingEntry.package_id >= min_package_id,
                    StakingEntry.amount >= min_amount,
                )
            )
            .order_by(StakingEntry.created_at.asc(), StakingEntry.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_created_since(
        self,
        since: datetime,
        min_package_id: int,
        min_amount: Decimal,
    ) -> list[StakingEntry]:
        """Entries of any status created at or after a moment, oldest first."""
        stmt = (
            select(StakingEntry)
            .where(
                and_(
                    StakingEntry.created_at >= since,
                    StakingEntry.package_id >= min_package_id,
                    StakingEntry.amount >= min_amount,
                )
            )
            .order_by(StakingEntry.created_at.asc(), StakingEntry.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_all(self, exclude_user_ids: list[int] | None = None) -> list[StakingEntry]:
        """Every entry, optionally excluding some owners."""
        stmt = select(StakingEntry).order_by(StakingEntry.id)
        if exclude_user_ids:
            stmt = stmt.where(StakingEntry.user_id.notin_(exclude_user_ids))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
