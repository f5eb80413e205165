"""Application entrypoint."""

import logging
from collections.abc import MutableMapping
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

import structlog
import uvicorn
from structlog.typing import Processor

from hilal.config import get_settings


def local_timestamper(timezone: str) -> Processor:
    """Stamp events with the wall-clock time of the home timezone.

    Reminder and countdown times are expressed in that zone, so log lines line
    up with the schedule without converting from UTC.
    """
    zone = ZoneInfo(timezone)

    def stamp(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
        event_dict["timestamp"] = datetime.now(zone).isoformat(timespec="seconds")
        return event_dict

    return stamp


def configure_logging() -> None:
    """Configure structured logging."""
    settings = get_settings()

    renderer: Processor
    if settings.log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            local_timestamper(settings.timezone),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def main() -> None:
    """Run the Hilal API and reminder scheduler under uvicorn."""
    configure_logging()
    settings = get_settings()

    structlog.get_logger().info(
        "Starting Hilal server",
        host=settings.api_host,
        port=settings.api_port,
        timezone=settings.timezone,
        language=settings.language,
    )

    uvicorn.run(
        "hilal.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
