"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hilal import __version__
from hilal.application.services.calendar_service import CalendarService
from hilal.application.services.prayer_time_service import PrayerTimeService
from hilal.application.services.reminder_service import ReminderOrchestrator
from hilal.config import get_settings
from hilal.infrastructure.aladhan import AladhanClient
from hilal.infrastructure.scheduler.apscheduler import ReminderScheduler
from hilal.infrastructure.state import StateStore
from hilal.infrastructure.telegram.bot import ReminderBot

from .deps import (
    set_orchestrator,
    set_scheduler,
    set_store,
    set_telegram_bot,
)
from .routes import health, season

# Type alias to work around Starlette type system issue
_CORSMiddleware: Any = CORSMiddleware

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan manager."""
    app_settings = get_settings()

    logger.info(
        "Starting Hilal",
        version=__version__,
        api_host=app_settings.api_host,
        api_port=app_settings.api_port,
    )

    store = StateStore(
        app_settings.state_path,
        default_city=app_settings.default_city,
        default_country=app_settings.default_country,
    )
    set_store(store)
    logger.info("State loaded", state_file=str(store.path), active=store.load().active)

    aladhan = AladhanClient(app_settings.aladhan_api_url, timeout=app_settings.http_timeout)
    calendar = CalendarService(
        aladhan,
        app_settings.expected_season_dates,
        target_month=app_settings.target_lunar_month,
        eve_offset_days=app_settings.eve_offset_days,
        tolerance_days=app_settings.arbitration_tolerance_days,
    )
    prayer_times = PrayerTimeService(aladhan, store)

    # Initialize Telegram bot if token is configured
    bot: ReminderBot | None = None
    if app_settings.telegram_bot_token:
        bot = ReminderBot(app_settings.telegram_bot_token.get_secret_value())
        set_telegram_bot(bot)
        await bot.start()
    else:
        logger.warning("Telegram bot token not configured, delivery disabled")

    scheduler = ReminderScheduler(app_settings.timezone)
    await scheduler.start()
    set_scheduler(scheduler)

    orchestrator = ReminderOrchestrator(
        store=store,
        calendar=calendar,
        prayer_times=prayer_times,
        sender=bot,
        scheduler=scheduler,
        settings=app_settings,
    )
    set_orchestrator(orchestrator)
    if bot is not None:
        bot.set_status_func(orchestrator.status)

    await orchestrator.start()
    logger.info("Reminder orchestrator started")

    yield

    # Cleanup
    logger.info("Shutting down Hilal")

    await orchestrator.stop()
    await scheduler.stop()

    if bot is not None:
        await bot.stop()

    await aladhan.close()

    set_orchestrator(None)
    set_scheduler(None)
    set_telegram_bot(None)
    set_store(None)


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title="Hilal",
        description="Ramadan reminder bot with a Hijri-aware season countdown",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        _CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routers
    app.include_router(health.router)
    app.include_router(season.router, prefix="/api/v1")

    return app


# Application instance for uvicorn
app = create_app()
