"""
Voucher expiry sweep.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.voucher_repository import VoucherRepository
from app.utils.datetime_utils import utc_now
from app.utils.db_decorators import with_auto_commit


@with_auto_commit
async def expire_overdue_vouchers(session: AsyncSession) -> int:
    """Flip active vouchers past their expiry date to expired."""
    expired = await VoucherRepository(session).expire_overdue(utc_now())
    if expired:
        logger.info(f"Expired {expired} overdue vouchers")
    return expired
