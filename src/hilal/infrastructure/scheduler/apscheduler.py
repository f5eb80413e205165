"""APScheduler wrapper for daily wall-clock jobs."""

from collections.abc import Callable, Coroutine
from typing import Any

import structlog
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

logger = structlog.get_logger()

# Type alias for job functions
JobFunc = Callable[..., Coroutine[Any, Any, Any]]

# A job that fires late (event loop busy, clock jump) still runs within this window
MISFIRE_GRACE_SECONDS = 300


class ReminderScheduler:
    """In-memory scheduler for jobs that fire once a day at a fixed time."""

    def __init__(self, timezone: str) -> None:
        """Initialize scheduler.

        Args:
            timezone: Default timezone for jobs that do not name one.

        """
        self._timezone = timezone
        self._scheduler: AsyncIOScheduler | None = None

    async def start(self) -> None:
        """Start the scheduler on the running event loop."""
        if self._scheduler is not None:
            logger.warning("Scheduler already started")
            return

        self._scheduler = AsyncIOScheduler(
            timezone=self._timezone,
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": MISFIRE_GRACE_SECONDS,
            },
        )
        self._scheduler.start()
        logger.info("Scheduler started", timezone=self._timezone)

    async def stop(self) -> None:
        """Stop the scheduler."""
        if self._scheduler is None:
            return

        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Scheduler stopped")

    def add_daily_job(
        self,
        job_id: str,
        func: JobFunc,
        hour: int,
        minute: int,
        *,
        timezone: str | None = None,
        kwargs: dict[str, Any] | None = None,
    ) -> None:
        """Add or replace a job firing every day at ``hour:minute``.

        Args:
            job_id: Unique job identifier. An existing job with this id is replaced.
            func: Async function to call.
            hour: Hour of day (0-23).
            minute: Minute (0-59).
            timezone: Timezone of the wall-clock time, the scheduler default if omitted.
            kwargs: Keyword arguments passed to ``func``.

        """
        if self._scheduler is None:
            msg = "Scheduler not started"
            raise RuntimeError(msg)

        trigger = CronTrigger(hour=hour, minute=minute, timezone=timezone or self._timezone)
        self._scheduler.add_job(
            func,
            trigger,
            id=job_id,
            kwargs=kwargs or {},
            replace_existing=True,
        )
        logger.debug("Job added", job_id=job_id, at=f"{hour:02d}:{minute:02d}", timezone=timezone or self._timezone)

    def remove_job(self, job_id: str) -> bool:
        """Remove a job. Returns whether it existed."""
        if self._scheduler is None:
            msg = "Scheduler not started"
            raise RuntimeError(msg)

        try:
            self._scheduler.remove_job(job_id)
        except JobLookupError:
            logger.debug("Job not found", job_id=job_id)
            return False
        return True

    def job_ids(self) -> list[str]:
        """Return the ids of all installed jobs."""
        if self._scheduler is None:
            return []
        return [job.id for job in self._scheduler.get_jobs()]

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._scheduler is not None
