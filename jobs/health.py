"""
Health check server for the scheduler process.

Exposes /health (scheduler state and upcoming runs), /readiness and
/liveness for the container orchestrator.
"""

import asyncio

from aiohttp import web
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

_scheduler: AsyncIOScheduler | None = None


def set_scheduler(scheduler: AsyncIOScheduler | None) -> None:
    """
    Register the scheduler the endpoints report on.

    Args:
        scheduler: Running scheduler, or None to unregister
    """
    global _scheduler
    _scheduler = scheduler
    if scheduler is not None:
        logger.info("Scheduler registered for health checks")


async def health_handler(request: web.Request) -> web.Response:
    """Scheduler state with the next run of every distribution job."""
    if _scheduler is None:
        return web.json_response(
            {"status": "unhealthy", "error": "Scheduler not initialized"},
            status=503,
        )

    jobs = _scheduler.get_jobs()
    running = _scheduler.running
    return web.json_response(
        {
            "status": "healthy" if running else "stopped",
            "scheduler_running": running,
            "jobs_count": len(jobs),
            "jobs": [
                {
                    "id": job.id,
                    "name": job.name,
                    "next_run_time": (
                        job.next_run_time.isoformat()
                        if getattr(job, "next_run_time", None)
                        else None
                    ),
                }
                for job in jobs
            ],
        },
        status=200 if running else 503,
    )


async def readiness_handler(request: web.Request) -> web.Response:
    if _scheduler is None or not _scheduler.running:
        return web.json_response({"status": "not_ready", "ready": False}, status=503)
    return web.json_response({"status": "ready", "ready": True})


async def liveness_handler(request: web.Request) -> web.Response:
    return web.json_response({"status": "alive", "alive": True})


def create_health_app() -> web.Application:
    """Build the health check application."""
    app = web.Application()
    app.router.add_get("/health", health_handler)
    app.router.add_get("/readiness", readiness_handler)
    app.router.add_get("/liveness", liveness_handler)
    return app


async def start_health_server(
    host: str = "0.0.0.0",
    port: int = 8081,
) -> tuple[web.AppRunner, web.TCPSite]:
    """
    Start the health check server.

    Args:
        host: Host to bind to
        port: Port to bind to

    Returns:
        Tuple of (AppRunner, TCPSite) for cleanup
    """
    runner = web.AppRunner(create_health_app())
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"Health check server started on {host}:{port}")
    return runner, site


async def stop_health_server(runner: web.AppRunner, timeout: int = 5) -> None:
    """
    Stop the health check server.

    Args:
        runner: AppRunner returned by start_health_server
        timeout: Seconds to wait for cleanup
    """
    logger.info("Stopping health check server...")
    try:
        await asyncio.wait_for(runner.cleanup(), timeout=timeout)
    except TimeoutError:
        logger.warning(f"Health check server cleanup timed out after {timeout}s")
        return
    logger.info("Health check server stopped")
