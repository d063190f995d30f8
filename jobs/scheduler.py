"""
Scheduler process.

Enqueues the distribution actors on a cron schedule (UTC) and serves the
health endpoints. Workers run separately with ``dramatiq jobs.tasks``.

Usage:
    python -m jobs.scheduler
"""

import asyncio
import signal

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from app.config.settings import settings
from app.utils.logging_config import setup_logging
from jobs.health import set_scheduler, start_health_server, stop_health_server
from jobs.tasks import distribute_daily_roi, distribute_team_earnings, expire_vouchers

VOUCHER_EXPIRY_MINUTE = 15


def register_jobs(scheduler: AsyncIOScheduler) -> None:
    """Add the distribution jobs to a scheduler."""
    hour = settings.daily_distribution_hour

    scheduler.add_job(
        distribute_daily_roi.send,
        CronTrigger(hour=hour, minute=0, timezone="UTC"),
        id="daily_roi",
        name="Daily ROI distribution",
        replace_existing=True,
        coalesce=True,
        misfire_grace_time=3600,
    )
    scheduler.add_job(
        distribute_team_earnings.send,
        CronTrigger(hour=hour, minute=settings.team_distribution_minute, timezone="UTC"),
        id="team_earnings",
        name="Team earnings distribution",
        replace_existing=True,
        coalesce=True,
        misfire_grace_time=3600,
    )
    scheduler.add_job(
        expire_vouchers.send,
        CronTrigger(minute=VOUCHER_EXPIRY_MINUTE, timezone="UTC"),
        id="voucher_expiry",
        name="Voucher expiry",
        replace_existing=True,
        coalesce=True,
    )


async def main() -> None:
    setup_logging("scheduler")

    scheduler = AsyncIOScheduler(timezone="UTC")
    register_jobs(scheduler)
    scheduler.start()
    set_scheduler(scheduler)
    for job in scheduler.get_jobs():
        logger.info(f"Scheduled {job.name}: next run at {job.next_run_time}")

    runner, _ = await start_health_server(port=settings.health_check_port)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down scheduler...")
        scheduler.shutdown(wait=False)
        await stop_health_server(runner)


if __name__ == "__main__":
    asyncio.run(main())
