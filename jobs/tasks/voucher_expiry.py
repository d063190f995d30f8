"""Voucher expiry task: flips active vouchers past expires_at to expired."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

import dramatiq
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.services.distribution import expire_overdue_vouchers
from jobs.async_runner import create_local_session, run_async


@dramatiq.actor(max_retries=3, time_limit=120_000)
def expire_vouchers() -> None:
    result = run_async(run_voucher_expiry())
    if result["expired"]:
        logger.info("Expired overdue vouchers", **result)


async def run_voucher_expiry(
    session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]] = create_local_session,
) -> dict[str, Any]:
    async with session_factory() as session:
        expired = await expire_overdue_vouchers(session)
    return {"success": True, "expired": expired}
