"""Health check endpoints."""

from fastapi import APIRouter
from pydantic import BaseModel

from hilal import __version__
from hilal.api.deps import get_optional_store, get_scheduler, get_telegram_bot

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


class ReadyResponse(BaseModel):
    """Readiness check response."""

    status: str
    scheduler: str
    bot: str
    season: str
    jobs: int = 0


@router.get("/health")
async def health_check() -> HealthResponse:
    """Return basic health status."""
    return HealthResponse(status="ok", version=__version__)


@router.get("/health/ready")
async def readiness_check() -> ReadyResponse:
    """Readiness check - verifies scheduler and bot are running."""
    scheduler = get_scheduler()
    jobs = 0
    if scheduler is None:
        scheduler_status = "not configured"
    elif scheduler.is_running:
        scheduler_status = "ok"
        jobs = len(scheduler.job_ids())
    else:
        scheduler_status = "stopped"

    bot = get_telegram_bot()
    if bot is None:
        bot_status = "not configured"
    elif bot.is_running:
        bot_status = "ok"
    else:
        bot_status = "stopped"

    store = get_optional_store()
    if store is None:
        season = "unknown"
    else:
        season = "active" if store.load().active else "idle"

    overall_status = "ok" if scheduler_status == "ok" else "degraded"

    return ReadyResponse(
        status=overall_status,
        scheduler=scheduler_status,
        bot=bot_status,
        season=season,
        jobs=jobs,
    )
