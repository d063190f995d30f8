"""Integration tests for the scheduler wiring and its health endpoints."""

import pytest
import pytest_asyncio
from aiohttp import test_utils
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from jobs import health
from jobs.scheduler import VOUCHER_EXPIRY_MINUTE, register_jobs


@pytest_asyncio.fixture
async def health_client():
    """Client for the health app; the registered scheduler is reset afterwards."""
    async with test_utils.TestClient(test_utils.TestServer(health.create_health_app())) as client:
        yield client
    health.set_scheduler(None)


class TestRegisterJobs:
    """Cron wiring of the distribution actors."""

    def test_jobs_registered(self):
        """All three distribution jobs are scheduled."""
        scheduler = AsyncIOScheduler(timezone="UTC")

        register_jobs(scheduler)

        assert {job.id for job in scheduler.get_jobs()} == {
            "daily_roi",
            "team_earnings",
            "voucher_expiry",
        }

    @pytest.mark.asyncio
    async def test_register_twice_replaces(self):
        """Registering again on a started scheduler keeps one job per id."""
        scheduler = AsyncIOScheduler(timezone="UTC")
        register_jobs(scheduler)
        scheduler.start(paused=True)
        try:
            register_jobs(scheduler)

            assert len(scheduler.get_jobs()) == 3
        finally:
            scheduler.shutdown(wait=False)

    def test_voucher_expiry_runs_hourly(self):
        """Voucher expiry fires every hour at a fixed minute."""
        scheduler = AsyncIOScheduler(timezone="UTC")
        register_jobs(scheduler)

        trigger = scheduler.get_job("voucher_expiry").trigger
        fields = {field.name: str(field) for field in trigger.fields}

        assert fields["minute"] == str(VOUCHER_EXPIRY_MINUTE)
        assert fields["hour"] == "*"


class TestHealthEndpoints:
    """Scheduler health reporting."""

    @pytest.mark.asyncio
    async def test_health_without_scheduler(self, health_client):
        """Health is 503 until a scheduler is registered."""
        health.set_scheduler(None)

        response = await health_client.get("/health")

        assert response.status == 503
        assert (await response.json())["error"] == "Scheduler not initialized"

    @pytest.mark.asyncio
    async def test_health_with_running_scheduler(self, health_client):
        """A running scheduler reports its jobs."""
        scheduler = AsyncIOScheduler(timezone="UTC")
        register_jobs(scheduler)
        scheduler.start(paused=True)
        health.set_scheduler(scheduler)
        try:
            response = await health_client.get("/health")
            body = await response.json()

            assert response.status == 200
            assert body["status"] == "healthy"
            assert body["jobs_count"] == 3

            readiness = await health_client.get("/readiness")
            assert readiness.status == 200
        finally:
            scheduler.shutdown(wait=False)

    @pytest.mark.asyncio
    async def test_readiness_and_liveness(self, health_client):
        """Liveness is unconditional; readiness needs the scheduler."""
        health.set_scheduler(None)

        readiness = await health_client.get("/readiness")
        liveness = await health_client.get("/liveness")

        assert readiness.status == 503
        assert liveness.status == 200
        assert await liveness.json() == {"status": "alive", "alive": True}
