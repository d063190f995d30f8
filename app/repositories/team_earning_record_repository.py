"""
TeamEarningRecord repository.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.team_earning_record import TeamEarningRecord
from app.repositories.base import BaseRepository


class TeamEarningRecordRepository(BaseRepository[TeamEarningRecord]):
    """Repository for team earning records."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(TeamEarningRecord, session)

    async def get_total(self, exclude_user_ids: list[int] | None = None) -> Decimal:
        """Sum of all credited team earnings."""
        stmt = select(func.coalesce(func.sum(TeamEarningRecord.amount), 0))
        if exclude_user_ids:
            stmt = stmt.where(TeamEarningRecord.user_id.notin_(exclude_user_ids))
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))
