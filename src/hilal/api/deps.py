"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends, HTTPException, status

from hilal.application.services.reminder_service import ReminderOrchestrator
from hilal.infrastructure.scheduler.apscheduler import ReminderScheduler
from hilal.infrastructure.state.store import StateStore
from hilal.infrastructure.telegram.bot import ReminderBot


# Application state container
class _AppState:
    """Container for application-level state."""

    store: StateStore | None = None
    telegram_bot: ReminderBot | None = None
    scheduler: ReminderScheduler | None = None
    orchestrator: ReminderOrchestrator | None = None


_state = _AppState()


def get_store() -> StateStore:
    """Get the state store instance."""
    if _state.store is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="State store not initialized")
    return _state.store


def get_optional_store() -> StateStore | None:
    """Get the state store instance, or None before startup."""
    return _state.store


def set_store(store: StateStore | None) -> None:
    """Set the state store instance."""
    _state.store = store


def get_telegram_bot() -> ReminderBot | None:
    """Get the Telegram bot instance."""
    return _state.telegram_bot


def set_telegram_bot(bot: ReminderBot | None) -> None:
    """Set the Telegram bot instance."""
    _state.telegram_bot = bot


def get_scheduler() -> ReminderScheduler | None:
    """Get the scheduler instance."""
    return _state.scheduler


def set_scheduler(scheduler: ReminderScheduler | None) -> None:
    """Set the scheduler instance."""
    _state.scheduler = scheduler


def get_orchestrator() -> ReminderOrchestrator:
    """Get the reminder orchestrator instance."""
    if _state.orchestrator is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Orchestrator not initialized")
    return _state.orchestrator


def set_orchestrator(orchestrator: ReminderOrchestrator | None) -> None:
    """Set the reminder orchestrator instance."""
    _state.orchestrator = orchestrator


# Type aliases for dependency injection
StoreDep = Annotated[StateStore, Depends(get_store)]
OrchestratorDep = Annotated[ReminderOrchestrator, Depends(get_orchestrator)]
