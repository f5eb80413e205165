"""Pytest configuration and fixtures."""

import os
from pathlib import Path
from typing import Any

import pytest

from hilal.config import Settings
from hilal.infrastructure.scheduler.apscheduler import JobFunc
from hilal.infrastructure.state.store import StateStore

# Set test environment variables before importing settings
os.environ.setdefault("HILAL_TELEGRAM_BOT_TOKEN", "test-bot-token")
os.environ.setdefault("HILAL_TIMEZONE", "Africa/Algiers")


class FakeScheduler:
    """In-memory stand-in for ReminderScheduler that records installed jobs."""

    def __init__(self) -> None:
        self.jobs: dict[str, dict[str, Any]] = {}
        self.removed: list[str] = []
        self.calls: list[tuple[str, str]] = []

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
        self.calls.append(("add", job_id))
        self.jobs[job_id] = {
            "func": func,
            "hour": hour,
            "minute": minute,
            "timezone": timezone,
            "kwargs": kwargs or {},
        }

    def remove_job(self, job_id: str) -> bool:
        self.removed.append(job_id)
        self.calls.append(("remove", job_id))
        return self.jobs.pop(job_id, None) is not None

    async def fire(self, job_id: str) -> Any:
        """Run a job's function the way the scheduler would."""
        job = self.jobs[job_id]
        return await job["func"](**job["kwargs"])


@pytest.fixture
def fake_scheduler() -> FakeScheduler:
    """Return an empty fake scheduler."""
    return FakeScheduler()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Return settings isolated from the environment and writing under tmp_path."""
    return Settings(
        _env_file=None,
        data_dir=tmp_path,
        telegram_bot_token=None,
        default_channel_id=None,
        timezone="Africa/Algiers",
    )


@pytest.fixture
def store(tmp_path: Path) -> StateStore:
    """Return a state store backed by a file in tmp_path."""
    return StateStore(tmp_path / "state.json")
