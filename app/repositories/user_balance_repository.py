"""
UserBalance repository.

Data access layer for UserBalance model.
"""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user_balance import UserBalance
from app.repositories.base import BaseRepository


class UserBalanceRepository(BaseRepository[UserBalance]):
    """Wallet rows keyed by user."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(UserBalance, session)

    async def get_by_user(
        self, user_id: int, for_update: bool = False
    ) -> UserBalance | None:
        """
        Get a user's wallet row.

        Args:
            user_id: User ID
            for_update: Lock the row for the rest of the transaction

        Returns:
            Wallet row or None
        """
        stmt = select(UserBalance).where(UserBalance.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(
        self, user_id: int, for_update: bool = False
    ) -> UserBalance:
        """Get a user's wallet row, creating a zeroed one if missing."""
        row = await self.get_by_user(user_id, for_update=for_update)
        if row is not None:
            return row
        return await self.create(
            user_id=user_id,
            balance=Decimal("0"),
            on_staking=Decimal("0"),
            daily_earning=Decimal("0"),
            latest_earning=Decimal("0"),
            team_earning=Decimal("0"),
            max_earn=Decimal("0"),
            missed_earnings=Decimal("0"),
        )

    async def get_for_users(self, user_ids: list[int]) -> dict[int, UserBalance]:
        """Wallet rows for several users."""
        if not user_ids:
            return {}
        result = await self.session.execute(
            select(UserBalance).where(UserBalance.user_id.in_(user_ids))
        )
        return {row.user_id: row for row in result.scalars().all()}

    async def list_with_daily_earning(self) -> list[UserBalance]:
        """Wallets credited by the latest daily ROI run."""
        result = await self.session.execute(
            select(UserBalance)
            .where(UserBalance.daily_earning > 0)
            .order_by(UserBalance.user_id)
        )
        return list(result.scalars().all())
