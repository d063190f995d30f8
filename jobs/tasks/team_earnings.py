"""
Team earnings task.

Pays every sponsor a share of their downline's daily ROI. Scheduled after
the daily ROI run, which it depends on.
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

import dramatiq
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.services.distribution import TeamEarningsDistributor
from app.utils.distributed_lock import DistributedLock, LockNotAcquiredError
from app.utils.redis_utils import get_redis_client
from jobs.async_runner import create_local_session, run_async

LOCK_KEY = "team_earnings_distribution"
LOCK_TIMEOUT = 600


@dramatiq.actor(max_retries=3, time_limit=900_000)
def distribute_team_earnings() -> None:
    """Distribute team earnings for today's ROI."""
    logger.info("Starting team earnings distribution...")
    result = run_async(run_team_earnings())
    logger.info("Team earnings distribution finished", **result)


async def run_team_earnings(
    session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]] = create_local_session,
    lock: DistributedLock | None = None,
) -> dict[str, Any]:
    """Async implementation of the team earnings run."""
    redis_client = None
    if lock is None:
        redis_client = get_redis_client()
        lock = DistributedLock(redis_client=redis_client)

    try:
        async with lock.lock(LOCK_KEY, timeout=LOCK_TIMEOUT):
            async with session_factory() as session:
                summary = await TeamEarningsDistributor(session).distribute()
    except LockNotAcquiredError:
        logger.warning("Team earnings distribution already running, skipping")
        return {"success": False, "skipped": True}
    finally:
        if redis_client:
            await redis_client.aclose()

    return {
        "success": not summary.failed_users,
        "rewarded_users": summary.rewarded_users,
        "rewarded": float(summary.total_rewarded),
        "missed": float(summary.total_missed),
        "records_logged": summary.records_logged,
        "failed_users": summary.failed_users,
    }
