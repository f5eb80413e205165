"""Tests for ReminderScheduler."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from apscheduler.jobstores.base import JobLookupError

from hilal.infrastructure.scheduler.apscheduler import MISFIRE_GRACE_SECONDS, ReminderScheduler


class TestReminderScheduler:
    """Tests for ReminderScheduler."""

    @pytest.fixture
    def scheduler(self) -> ReminderScheduler:
        """Return ReminderScheduler in the Algiers timezone."""
        return ReminderScheduler("Africa/Algiers")

    @pytest.fixture
    def mock_job_func(self) -> AsyncMock:
        """Return mock async job function."""
        return AsyncMock()

    def test_init(self, scheduler: ReminderScheduler) -> None:
        """Test scheduler initialization."""
        assert scheduler._scheduler is None
        assert scheduler.is_running is False
        assert scheduler.job_ids() == []

    @pytest.mark.asyncio
    async def test_start_creates_scheduler(self, scheduler: ReminderScheduler) -> None:
        """Test start creates and starts the APScheduler instance."""
        mock_async_scheduler = MagicMock()

        with patch(
            "hilal.infrastructure.scheduler.apscheduler.AsyncIOScheduler",
            return_value=mock_async_scheduler,
        ) as mock_class:
            await scheduler.start()

        assert scheduler.is_running is True
        mock_async_scheduler.start.assert_called_once()
        call_kwargs = mock_class.call_args.kwargs
        assert call_kwargs["timezone"] == "Africa/Algiers"
        assert call_kwargs["job_defaults"]["misfire_grace_time"] == MISFIRE_GRACE_SECONDS

    @pytest.mark.asyncio
    async def test_start_does_nothing_if_already_running(self, scheduler: ReminderScheduler) -> None:
        """Test start does nothing if scheduler already running."""
        existing = MagicMock()
        scheduler._scheduler = existing

        await scheduler.start()

        assert scheduler._scheduler is existing
        existing.start.assert_not_called()

    @pytest.mark.asyncio
    async def test_stop_stops_scheduler(self, scheduler: ReminderScheduler) -> None:
        """Test stop shuts the scheduler down without waiting."""
        mock_async_scheduler = MagicMock()
        scheduler._scheduler = mock_async_scheduler

        await scheduler.stop()

        mock_async_scheduler.shutdown.assert_called_once_with(wait=False)
        assert scheduler.is_running is False

    @pytest.mark.asyncio
    async def test_stop_does_nothing_if_not_running(self, scheduler: ReminderScheduler) -> None:
        """Test stop does nothing if scheduler not running."""
        await scheduler.stop()  # Should not raise

    def test_add_daily_job_requires_running_scheduler(
        self,
        scheduler: ReminderScheduler,
        mock_job_func: AsyncMock,
    ) -> None:
        """Test add_daily_job raises if scheduler not started."""
        with pytest.raises(RuntimeError, match="Scheduler not started"):
            scheduler.add_daily_job("iftar:-100", mock_job_func, 18, 30)

    def test_remove_job_requires_running_scheduler(self, scheduler: ReminderScheduler) -> None:
        """Test remove_job raises if scheduler not started."""
        with pytest.raises(RuntimeError, match="Scheduler not started"):
            scheduler.remove_job("iftar:-100")

    def test_add_daily_job_success(
        self,
        scheduler: ReminderScheduler,
        mock_job_func: AsyncMock,
    ) -> None:
        """Test add_daily_job installs a cron job replacing any previous one."""
        mock_async_scheduler = MagicMock()
        scheduler._scheduler = mock_async_scheduler

        with patch("hilal.infrastructure.scheduler.apscheduler.CronTrigger") as mock_trigger_class:
            scheduler.add_daily_job(
                "iftar:-100",
                mock_job_func,
                18,
                30,
                timezone="Europe/Paris",
                kwargs={"message_type": "iftar", "channel_id": "-100"},
            )

        mock_trigger_class.assert_called_once_with(hour=18, minute=30, timezone="Europe/Paris")
        call = mock_async_scheduler.add_job.call_args
        assert call.args[0] is mock_job_func
        assert call.kwargs["id"] == "iftar:-100"
        assert call.kwargs["replace_existing"] is True
        assert call.kwargs["kwargs"] == {"message_type": "iftar", "channel_id": "-100"}

    def test_add_daily_job_default_timezone(
        self,
        scheduler: ReminderScheduler,
        mock_job_func: AsyncMock,
    ) -> None:
        """Test jobs without a timezone use the scheduler default."""
        scheduler._scheduler = MagicMock()

        with patch("hilal.infrastructure.scheduler.apscheduler.CronTrigger") as mock_trigger_class:
            scheduler.add_daily_job("tick:midnight", mock_job_func, 0, 0)

        mock_trigger_class.assert_called_once_with(hour=0, minute=0, timezone="Africa/Algiers")

    def test_remove_job(self, scheduler: ReminderScheduler) -> None:
        """Test remove_job reports whether the job existed."""
        mock_async_scheduler = MagicMock()
        scheduler._scheduler = mock_async_scheduler

        assert scheduler.remove_job("iftar:-100") is True

        mock_async_scheduler.remove_job.side_effect = JobLookupError("iftar:-100")
        assert scheduler.remove_job("iftar:-100") is False

    def test_job_ids(self, scheduler: ReminderScheduler) -> None:
        """Test job_ids lists the installed jobs."""
        job = MagicMock()
        job.id = "suhoor:-100"
        scheduler._scheduler = MagicMock()
        scheduler._scheduler.get_jobs.return_value = [job]

        assert scheduler.job_ids() == ["suhoor:-100"]
