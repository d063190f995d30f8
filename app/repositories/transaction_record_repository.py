"""
TransactionRecord repository.

Data access layer for the wallet audit log.
"""

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import IN_FLIGHT_TRANSACTION_STATUSES, TransactionType
from app.models.transaction_record import TransactionRecord
from app.repositories.base import BaseRepository


class TransactionRecordRepository(BaseRepository[TransactionRecord]):
    """Repository for transaction records."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(TransactionRecord, session)

    async def get_latest_by_user(
        self, user_id: int, limit: int
    ) -> list[TransactionRecord]:
        """
        Get a user's most recent records.

        Args:
            user_id: User ID
            limit: Max records

        Returns:
            Records, newest first
        """
        result = await self.session.execute(
            select(TransactionRecord)
            .where(TransactionRecord.user_id == user_id)
            .order_by(TransactionRecord.created_at.desc(), TransactionRecord.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_by_request_id(
        self, request_id: str, for_update: bool = False
    ) -> TransactionRecord | None:
        """Get record by idempotency key."""
        stmt = select(TransactionRecord).where(TransactionRecord.request_id == request_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_in_flight_withdrawal(self, user_id: int) -> TransactionRecord | None:
        """A user's withdrawal that is initiated or pending, if any."""
        result = await self.session.execute(
            select(TransactionRecord)
            .where(
                and_(
                    TransactionRecord.user_id == user_id,
                    TransactionRecord.type == TransactionType.WITHDRAWAL.value,
                    TransactionRecord.status.in_(IN_FLIGHT_TRANSACTION_STATUSES),
                )
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_by_types(
        self,
        types: list[TransactionType],
        status: str | None = None,
        exclude_user_ids: list[int] | None = None,
    ) -> list[TransactionRecord]:
        """Records of the given types, oldest first."""
        stmt = select(TransactionRecord).where(
            TransactionRecord.type.in_([t.value for t in types])
        )
        if status:
            stmt = stmt.where(TransactionRecord.status == status)
        if exclude_user_ids:
            stmt = stmt.where(TransactionRecord.user_id.notin_(exclude_user_ids))
        stmt = stmt.order_by(TransactionRecord.created_at.asc(), TransactionRecord.id.asc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
