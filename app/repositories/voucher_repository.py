"""
Voucher repository.

Data access layer for Voucher model.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import VoucherStatus
from app.models.voucher import Voucher
from app.repositories.base import BaseRepository


class VoucherRepository(BaseRepository[Voucher]):
    """Repository for voucher operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(Voucher, session)

    async def get_by_code(
        self, code: str, for_update: bool = False
    ) -> Voucher | None:
        """Get voucher by code."""
        stmt = select(Voucher).where(Voucher.code == code)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_owned(
        self, voucher_id: int, user_id: int, for_update: bool = False
    ) -> Voucher | None:
        """Get voucher only if it belongs to the user."""
        stmt = select(Voucher).where(
            and_(Voucher.id == voucher_id, Voucher.user_id == user_id)
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_user(
        self, user_id: int, voucher_type: str | None = None
    ) -> list[Voucher]:
        """
        Get a user's vouchers, newest first.

        Args:
            user_id: Owner ID
            voucher_type: Optional type filter

        Returns:
            List of vouchers
        """
        stmt = select(Voucher).where(Voucher.user_id == user_id)
        if voucher_type:
            stmt = stmt.where(Voucher.type == voucher_type)
        stmt = stmt.order_by(Voucher.created_at.desc(), Voucher.id.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_unassigned(self, status: str | None = None) -> list[Voucher]:
        """Vouchers without an owner, newest first."""
        stmt = select(Voucher).where(Voucher.user_id.is_(None))
        if status:
            stmt = stmt.where(Voucher.status == status)
        stmt = stmt.order_by(Voucher.created_at.desc(), Voucher.id.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def existing_codes(self, codes: list[str]) -> set[str]:
        """Subset of the given codes already stored."""
        if not codes:
            return set()
        result = await self.session.execute(
            select(Voucher.code).where(Voucher.code.in_(codes))
        )
        return set(result.scalars().all())

    async def mark_used_if_active(self, voucher_id: int, **values: Any) -> bool:
        """
        Compare-and-set a voucher from active to used.

        Args:
            voucher_id: Voucher ID
            **values: Extra columns to set alongside the status

        Returns:
            True if this call performed the transition
        """
        stmt = (
            update(Voucher)
            .where(
                and_(
                    Voucher.id == voucher_id,
                    Voucher.status == VoucherStatus.ACTIVE.value,
                )
            )
            .values(status=VoucherStatus.USED.value, **values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def expire_overdue(self, now: datetime) -> int:
        """
        Flip active vouchers past expires_at to expired.

        Returns:
            Number of vouchers expired
        """
        stmt = (
            update(Voucher)
            .where(
                and_(
                    Voucher.status == VoucherStatus.ACTIVE.value,
                    Voucher.expires_at.is_not(None),
                    Voucher.expires_at < now,
                )
            )
            .values(status=VoucherStatus.EXPIRED.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def get_applied_stake_ids(
        self, user_ids: list[int] | None = None
    ) -> set[int]:
        """
        Stake IDs that were created by redeeming a voucher.

        Args:
            user_ids: Restrict to these owners; all owners when None

        Returns:
            Set of staking entry IDs
        """
        stmt = select(Voucher.applied_to_stake_id).where(
            and_(
                Voucher.status == VoucherStatus.USED.value,
                Voucher.applied_to_stake_id.is_not(None),
            )
        )
        if user_ids is not None:
            stmt = stmt.where(Voucher.user_id.in_(user_ids))
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def get_by_applied_stake_ids(self, stake_ids: list[int]) -> dict[int, Voucher]:
        """Used vouchers keyed by the stake they created."""
        if not stake_ids:
            return {}
        result = await self.session.execute(
            select(Voucher).where(Voucher.applied_to_stake_id.in_(stake_ids))
        )
        return {v.applied_to_stake_id: v for v in result.scalars().all()}

    async def exists_with_description(self, user_id: int, description: str) -> bool:
        """Whether the user already holds a voucher with this description."""
        return await self.exists(user_id=user_id, description=description)

    async def list_by_description_prefix(self, user_id: int, prefix: str) -> list[Voucher]:
        """User's vouchers whose description starts with a prefix, newest first."""
        result = await self.session.execute(
            select(Voucher)
            .where(
                and_(
                    Voucher.user_id == user_id,
                    Voucher.description.like(f"{prefix}%"),
                )
            )
            .order_by(Voucher.created_at.desc(), Voucher.id.desc())
        )
        return list(result.scalars().all())

    async def list_all(self, exclude_user_ids: list[int] | None = None) -> list[Voucher]:
        """Every voucher, optionally excluding some owners."""
        stmt = select(Voucher).order_by(Voucher.id)
        if exclude_user_ids:
            stmt = stmt.where(
                (Voucher.user_id.is_(None)) | (Voucher.user_id.notin_(exclude_user_ids))
            )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
