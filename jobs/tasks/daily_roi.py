"""
Daily ROI task.

Pays one day of ROI on every active staking entry and closes voucher
positions whose ROI window has ended.
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

import dramatiq
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.services.distribution import RoiDistributor
from app.utils.distributed_lock import DistributedLock, LockNotAcquiredError
from app.utils.redis_utils import get_redis_client
from jobs.async_runner import create_local_session, run_async

LOCK_KEY = "daily_roi_distribution"
LOCK_TIMEOUT = 600


@dramatiq.actor(max_retries=3, time_limit=900_000)  # must be > lock timeout
def distribute_daily_roi(user_id: int | None = None) -> None:
    """
    Distribute daily ROI.

    Args:
        user_id: Restrict the run to one user (optional)
    """
    logger.info(
        f"Starting daily ROI distribution"
        f"{f' for user {user_id}' if user_id else ''}..."
    )
    result = run_async(run_daily_roi(user_id=user_id))
    logger.info("Daily ROI distribution finished", **result)


async def run_daily_roi(
    user_id: int | None = None,
    session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]] = create_local_session,
    lock: DistributedLock | None = None,
) -> dict[str, Any]:
    """Async implementation of the daily ROI run."""
    redis_client = None
    if lock is None:
        redis_client = get_redis_client()
        lock = DistributedLock(redis_client=redis_client)

    lock_key = f"{LOCK_KEY}_user_{user_id}" if user_id else LOCK_KEY
    try:
        async with lock.lock(lock_key, timeout=LOCK_TIMEOUT):
            async with session_factory() as session:
                summary = await RoiDistributor(session).distribute(user_id=user_id)
    except LockNotAcquiredError:
        logger.warning(f"Daily ROI distribution already running ({lock_key}), skipping")
        return {"success": False, "skipped": True}
    finally:
        if redis_client:
            await redis_client.aclose()

    return {
        "success": not summary.failed_users,
        "users": summary.total_users,
        "entries": summary.total_entries,
        "rewarded": float(summary.total_rewarded),
        "missed": float(summary.total_missed),
        "failed_users": summary.failed_users,
    }
