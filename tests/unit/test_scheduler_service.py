"""Tests for SyncScheduler."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from yieldlens.core.errors import ServiceNotFoundError
from yieldlens.services.cache.cache_service import CacheService
from yieldlens.services.platforms.manager import PlatformApiManager
from yieldlens.services.platforms.registry import create_default_registry
from yieldlens.services.scheduler.scheduler_service import CACHE_CLEANUP_JOB_ID, SyncScheduler, job_id_for
from yieldlens.services.service_config.catalog import DEFAULT_SERVICE_CONFIGS
from yieldlens.services.service_config.service_configuration_service import ServiceConfigurationService
from yieldlens.services.sync.jobs import SyncContext, SyncError


class JobRecorder:
    """Job table whose jobs count their calls and fail on demand."""

    def __init__(self):
        self.calls = []
        self.failures = {}

    def job(self, name):
        async def run(ctx):
            self.calls.append(name)
            failure = self.failures.get(name)
            if failure is not None:
                raise failure
        return run

    def table(self):
        return {d["service_name"]: self.job(d["service_name"]) for d in DEFAULT_SERVICE_CONFIGS}


class TestSyncScheduler:
    """Tests for SyncScheduler."""

    @pytest.fixture
    def service_config(self, session_factory) -> ServiceConfigurationService:
        service = ServiceConfigurationService(session_factory)
        service.initialize_configurations(DEFAULT_SERVICE_CONFIGS)
        return service

    @pytest.fixture
    def recorder(self) -> JobRecorder:
        return JobRecorder()

    @pytest_asyncio.fixture
    async def scheduler(self, service_config, session_factory, rate_limiter, clock, recorder):
        context = SyncContext(
            cache=CacheService(clock=clock),
            platform_manager=PlatformApiManager(session_factory, create_default_registry(), rate_limiter),
        )
        scheduler = SyncScheduler(
            service_config,
            context,
            jobs=recorder.table(),
            run_due_immediately=False,
        )
        yield scheduler
        scheduler.shutdown()

    @pytest.mark.asyncio
    async def test_scheduled_run(self, scheduler, service_config, recorder) -> None:
        assert await scheduler.run_service("poolDataSync") == "succeeded"

        assert recorder.calls == ["poolDataSync"]
        assert service_config.get_configuration("poolDataSync").run_count == 1

    @pytest.mark.asyncio
    async def test_last_run_is_stamped_at_start(self, scheduler, service_config) -> None:
        seen = []

        async def job(ctx):
            seen.append(datetime.now(timezone.utc))

        scheduler.jobs["poolDataSync"] = job

        await scheduler.run_service("poolDataSync")

        last_run = service_config.get_configuration("poolDataSync").last_run.replace(tzinfo=timezone.utc)
        assert last_run <= seen[0]

    @pytest.mark.asyncio
    async def test_long_previous_run_does_not_skip_next_tick(self, scheduler, service_config, recorder) -> None:
        """The previous tick fired 5 min ago and its job ran for 30 s; this tick is on time."""
        started_at = datetime.now(timezone.utc) - timedelta(minutes=5)
        service_config.record_run_result("poolDataSync", success=True, started_at=started_at)

        assert await scheduler.run_service("poolDataSync") == "succeeded"
        assert recorder.calls == ["poolDataSync"]

    @pytest.mark.asyncio
    async def test_not_due_is_skipped(self, scheduler, service_config, recorder) -> None:
        await scheduler.run_service("poolDataSync")

        assert await scheduler.run_service("poolDataSync") == "skipped"

        assert recorder.calls == ["poolDataSync"]
        assert service_config.get_configuration("poolDataSync").run_count == 1

    @pytest.mark.asyncio
    async def test_disabled_never_runs_on_schedule(self, scheduler, service_config, recorder) -> None:
        service_config.update_configuration("lidoApiSync", is_enabled=False)

        assert await scheduler.run_service("lidoApiSync") == "skipped"
        assert recorder.calls == []
        assert service_config.get_configuration("lidoApiSync").run_count == 0

    @pytest.mark.asyncio
    async def test_zero_interval_never_runs_on_schedule(self, scheduler, service_config, recorder) -> None:
        service_config.update_configuration("lidoApiSync", interval_minutes=0)

        assert await scheduler.run_service("lidoApiSync") == "skipped"
        assert recorder.calls == []

    @pytest.mark.asyncio
    async def test_manual_run_bypasses_schedule(self, scheduler, service_config, recorder) -> None:
        service_config.update_configuration("lidoApiSync", is_enabled=False, interval_minutes=0)

        assert await scheduler.run_service("lidoApiSync", manual=True) == "succeeded"

        assert recorder.calls == ["lidoApiSync"]
        config = service_config.get_configuration("lidoApiSync")
        assert config.run_count == 1
        assert config.is_enabled is False

    @pytest.mark.asyncio
    async def test_sync_error_is_recorded(self, scheduler, service_config, recorder) -> None:
        recorder.failures["tokenPriceSync"] = SyncError("Missing API credentials for Etherscan")

        assert await scheduler.run_service("tokenPriceSync") == "failed"

        config = service_config.get_configuration("tokenPriceSync")
        assert config.run_count == 1
        assert config.error_count == 1
        assert config.last_error == "Missing API credentials for Etherscan"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_recorded(self, scheduler, service_config, recorder) -> None:
        recorder.failures["morphoApiSync"] = RuntimeError("bug")

        assert await scheduler.run_service("morphoApiSync") == "failed"

        config = service_config.get_configuration("morphoApiSync")
        assert config.error_count == 1
        assert config.last_error == "bug"

    @pytest.mark.asyncio
    async def test_job_timeout_is_recorded(self, scheduler, service_config) -> None:
        async def slow(ctx):
            await asyncio.sleep(1)

        scheduler.jobs["morphoApiSync"] = slow
        scheduler.job_timeout_seconds = 0.02

        assert await scheduler.run_service("morphoApiSync", manual=True) == "failed"
        assert service_config.get_configuration("morphoApiSync").last_error == "timeout"

    @pytest.mark.asyncio
    async def test_unknown_service(self, scheduler) -> None:
        with pytest.raises(ServiceNotFoundError):
            await scheduler.run_service("nope")

    @pytest.mark.asyncio
    async def test_scheduled_tick_never_raises(self, scheduler) -> None:
        await scheduler._scheduled_tick("nope")

    @pytest.mark.asyncio
    async def test_start_arms_enabled_services(self, scheduler, service_config) -> None:
        service_config.update_configuration("lidoApiSync", is_enabled=False)
        service_config.update_configuration("tokenPriceSync", interval_minutes=0)

        scheduler.start()

        job_ids = {job["id"] for job in scheduler.get_jobs_status()}
        assert job_ids == {
            CACHE_CLEANUP_JOB_ID,
            job_id_for("poolDataSync"),
            job_id_for("morphoApiSync"),
            job_id_for("platformHealthCheck"),
        }
        assert scheduler.next_run_time("poolDataSync") is not None
        assert scheduler.next_run_time("lidoApiSync") is None

    @pytest.mark.asyncio
    async def test_reschedule(self, scheduler, service_config) -> None:
        scheduler.start()

        service_config.update_configuration("poolDataSync", is_enabled=False)
        assert scheduler.reschedule("poolDataSync") is False
        assert scheduler.next_run_time("poolDataSync") is None

        service_config.update_configuration("poolDataSync", is_enabled=True, interval_minutes=15)
        assert scheduler.reschedule("poolDataSync") is True
        job = scheduler.scheduler.get_job(job_id_for("poolDataSync"))
        assert job.trigger.interval.total_seconds() == 15 * 60

        with pytest.raises(ServiceNotFoundError):
            scheduler.reschedule("nope")

    @pytest.mark.asyncio
    async def test_cleanup_cache(self, scheduler, clock) -> None:
        scheduler.cache.set("k", 1, "src", ttl=1)
        clock.advance(2)

        assert scheduler.cleanup_cache() == 1
        assert scheduler.cache.get_stats()["cleanups"] == 1
