"""
Scheduler service for running sync jobs on their configured intervals using APScheduler.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from yieldlens.core.errors import ServiceNotFoundError
from yieldlens.services.cache.cache_service import CLEANUP_INTERVAL_SECONDS, CacheService
from yieldlens.services.service_config.service_configuration_service import ServiceConfigurationService
from yieldlens.services.sync.jobs import JOBS, Job, SyncContext, SyncError

logger = logging.getLogger(__name__)

CACHE_CLEANUP_JOB_ID = "cache_cleanup"

SKIPPED = "skipped"
SUCCEEDED = "succeeded"
FAILED = "failed"


def job_id_for(service_name: str) -> str:
    return f"sync_{service_name}"


class SyncScheduler:
    """Runs every enabled service on its interval and records each run."""

    def __init__(
        self,
        service_config: ServiceConfigurationService,
        context: SyncContext,
        jobs: Optional[Dict[str, Job]] = None,
        cleanup_interval_seconds: float = CLEANUP_INTERVAL_SECONDS,
        job_timeout_seconds: Optional[float] = None,
        run_due_immediately: bool = True,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        """Initialize the scheduler.

        Args:
            service_config: Configuration and run tracking
            context: Cache and platform manager handed to the jobs
            jobs: Job table by service name (defaults to the built-in jobs)
            cleanup_interval_seconds: Period of the cache cleanup sweep
            job_timeout_seconds: Upper bound for one job run; None for no bound
            run_due_immediately: Fire due services right after they are armed
                instead of waiting one full interval
            scheduler: APScheduler instance (tests)
        """
        self.service_config = service_config
        self.context = context
        self.jobs = dict(JOBS if jobs is None else jobs)
        self.cleanup_interval_seconds = cleanup_interval_seconds
        self.job_timeout_seconds = job_timeout_seconds
        self.run_due_immediately = run_due_immediately
        self.scheduler = scheduler or AsyncIOScheduler(timezone=timezone.utc)

    @property
    def cache(self) -> CacheService:
        return self.context.cache

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def start(self) -> None:
        """Start the scheduler and arm every enabled service."""
        if self.scheduler.running:
            logger.debug("Scheduler already running")
            return

        self.scheduler.start()
        logger.info("Scheduler started")

        self.scheduler.add_job(
            self.cleanup_cache,
            trigger=IntervalTrigger(seconds=self.cleanup_interval_seconds),
            id=CACHE_CLEANUP_JOB_ID,
            replace_existing=True,
            max_instances=1,
        )

        armed = 0
        for config in self.service_config.get_all_configurations():
            if self._arm(config):
                armed += 1
        logger.info(f"Armed {armed} sync jobs")

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")

    def reschedule(self, service_name: str) -> bool:
        """Re-arm a service's timer from its current configuration.

        Returns:
            True if the service is armed afterwards

        Raises:
            ServiceNotFoundError: Unknown service name
        """
        config = self.service_config.get_configuration(service_name)
        if config is None:
            raise ServiceNotFoundError(service_name)
        return self._arm(config)

    def _arm(self, config) -> bool:
        job_id = job_id_for(config.service_name)
        if self.scheduler.get_job(job_id) is not None:
            self.scheduler.remove_job(job_id)
            logger.debug(f"Removed sync job {job_id}")

        if not config.is_enabled or not config.interval_minutes or config.interval_minutes <= 0:
            logger.info(f"Service {config.service_name} not scheduled (enabled={config.is_enabled}, interval={config.interval_minutes}min)")
            return False
        if config.service_name not in self.jobs:
            logger.warning(f"No job registered for service {config.service_name}, not scheduling")
            return False

        kwargs: Dict[str, Any] = {}
        if self.run_due_immediately and self.service_config.is_due(config):
            kwargs["next_run_time"] = datetime.now(timezone.utc)

        self.scheduler.add_job(
            self._scheduled_tick,
            trigger=IntervalTrigger(minutes=config.interval_minutes),
            args=[config.service_name],
            id=job_id,
            replace_existing=True,
            max_instances=1,  # Prevent overlapping executions
            **kwargs,
        )
        logger.info(f"Added sync job {job_id} every {config.interval_minutes}min")
        return True

    async def _scheduled_tick(self, service_name: str) -> None:
        try:
            await self.run_service(service_name)
        except Exception as e:
            # Nothing may escape into the timer loop
            logger.error(f"Error in scheduled run of {service_name}: {e}", exc_info=True)

    async def run_service(self, service_name: str, manual: bool = False) -> str:
        """Run one service and record the outcome.

        Scheduled runs are skipped (and leave no run record) when the service
        is disabled or not yet due. Manual runs always execute.

        Returns:
            "skipped", "succeeded" or "failed"

        Raises:
            ServiceNotFoundError: Unknown service name
        """
        config = self.service_config.get_configuration(service_name)
        if config is None:
            raise ServiceNotFoundError(service_name)

        if not manual and not self.service_config.is_due(config):
            logger.debug(f"Skipping {service_name}: disabled or not due")
            return SKIPPED

        started_at = datetime.now(timezone.utc)
        error: Optional[str] = None
        job = self.jobs.get(service_name)
        if job is None:
            error = f"No job registered for service {service_name}"
            logger.error(error)
        else:
            logger.info(f"Running {service_name} ({'manual' if manual else 'scheduled'})")
            try:
                if self.job_timeout_seconds:
                    await asyncio.wait_for(job(self.context), timeout=self.job_timeout_seconds)
                else:
                    await job(self.context)
            except SyncError as e:
                error = str(e) or "Unknown error"
                logger.warning(f"{service_name} failed: {error}")
            except asyncio.TimeoutError:
                error = "timeout"
                logger.warning(f"{service_name} timed out after {self.job_timeout_seconds}s")
            except Exception as e:
                error = str(e) or e.__class__.__name__
                logger.error(f"Unexpected error in {service_name}: {e}", exc_info=True)

        self.service_config.record_run_result(service_name, error is None, error, started_at=started_at)
        return SUCCEEDED if error is None else FAILED

    def cleanup_cache(self) -> int:
        removed = self.cache.cleanup()
        logger.debug(f"Cache cleanup removed {removed} entries")
        return removed

    def get_jobs_status(self) -> List[Dict[str, Any]]:
        """Armed jobs with their next fire time."""
        return [
            {"id": job.id, "next_run_time": getattr(job, "next_run_time", None)}
            for job in self.scheduler.get_jobs()
        ]

    def next_run_time(self, service_name: str) -> Optional[datetime]:
        job = self.scheduler.get_job(job_id_for(service_name))
        # Jobs added before start() have no next_run_time yet
        return getattr(job, "next_run_time", None) if job is not None else None
