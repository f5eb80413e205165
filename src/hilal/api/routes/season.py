"""Season control API endpoints."""

from datetime import date

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from hilal.api.deps import OrchestratorDep, StoreDep
from hilal.domain.models import CountdownResult, ScheduledJob
from hilal.infrastructure.state.models import GlobalState

router = APIRouter(prefix="/season", tags=["season"])


class ChannelResponse(BaseModel):
    """Response model for a configured channel."""

    channel_id: str
    city: str
    country: str
    timezone: str | None
    last_sent_date: dict[str, date]


class JobResponse(BaseModel):
    """Response model for an installed reminder job."""

    job_id: str
    message_type: str
    channel_id: str
    city: str
    fires_at: str
    timezone: str


class CountdownResponse(BaseModel):
    """Response model for the reconciled countdown."""

    days_remaining: int
    is_eve_of_uncertainty: bool
    source: str
    in_target_period: bool
    expected_date: date | None


class SeasonResponse(BaseModel):
    """Response model for the season status."""

    active: bool
    countdown_enabled: bool
    default_city: str
    default_country: str
    channels: list[ChannelResponse]
    jobs: list[JobResponse]
    countdown: CountdownResponse | None = None


class ActivateRequest(BaseModel):
    """Request model for activating the season."""

    channel_id: str | None = Field(None, min_length=1, max_length=100)
    announce: bool = False


class CityUpdate(BaseModel):
    """Request model for changing a location."""

    city: str = Field(..., min_length=1, max_length=100)
    country: str = Field(..., min_length=1, max_length=100)
    channel_id: str | None = Field(None, min_length=1, max_length=100)


class CountdownUpdate(BaseModel):
    """Request model for toggling the evening countdown."""

    enabled: bool


def _job_response(job: ScheduledJob) -> JobResponse:
    return JobResponse(
        job_id=job.job_id,
        message_type=job.message_type.value,
        channel_id=job.channel_id,
        city=job.city,
        fires_at=str(job.fires_at),
        timezone=job.timezone,
    )


def _countdown_response(countdown: CountdownResult) -> CountdownResponse:
    return CountdownResponse(
        days_remaining=countdown.days_remaining,
        is_eve_of_uncertainty=countdown.is_eve_of_uncertainty,
        source=countdown.source.value,
        in_target_period=countdown.in_target_period,
        expected_date=countdown.expected_date,
    )


def _season_response(
    state: GlobalState,
    jobs: list[ScheduledJob],
    countdown: CountdownResult | None = None,
) -> SeasonResponse:
    return SeasonResponse(
        active=state.active,
        countdown_enabled=state.countdown_enabled,
        default_city=state.default_city,
        default_country=state.default_country,
        channels=[
            ChannelResponse(
                channel_id=c.channel_id,
                city=c.city,
                country=c.country,
                timezone=c.timezone,
                last_sent_date={k.value: v for k, v in c.last_sent_date.items()},
            )
            for c in state.channels
        ],
        jobs=[_job_response(j) for j in jobs],
        countdown=_countdown_response(countdown) if countdown is not None else None,
    )


@router.get("")
async def get_season(
    store: StoreDep,
    orchestrator: OrchestratorDep,
) -> SeasonResponse:
    """Get the season switch, channels, installed jobs and the countdown."""
    state = store.load()
    countdown = None if state.active else await orchestrator.countdown()
    return _season_response(state, orchestrator.installed_jobs, countdown)


@router.post("/activate")
async def activate_season(
    data: ActivateRequest,
    store: StoreDep,
    orchestrator: OrchestratorDep,
) -> SeasonResponse:
    """Turn the season on and schedule today's reminders."""
    jobs = await orchestrator.activate(data.channel_id, announce=data.announce)
    return _season_response(store.load(), jobs)


@router.post("/deactivate")
async def deactivate_season(
    store: StoreDep,
    orchestrator: OrchestratorDep,
    announce: bool = False,
) -> SeasonResponse:
    """Turn the season off and cancel all reminders."""
    await orchestrator.deactivate(announce=announce)
    return _season_response(store.load(), orchestrator.installed_jobs)


@router.put("/city")
async def update_city(
    data: CityUpdate,
    orchestrator: OrchestratorDep,
) -> SeasonResponse:
    """Change a channel's city, or the default city when no channel is given."""
    state = await orchestrator.set_city(data.city, data.country, data.channel_id)
    return _season_response(state, orchestrator.installed_jobs)


@router.put("/countdown")
async def update_countdown(
    data: CountdownUpdate,
    store: StoreDep,
    orchestrator: OrchestratorDep,
) -> SeasonResponse:
    """Enable or disable the evening countdown alert."""
    orchestrator.set_countdown_enabled(data.enabled)
    return _season_response(store.load(), orchestrator.installed_jobs)


@router.delete("/channels/{channel_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_channel(
    channel_id: str,
    orchestrator: OrchestratorDep,
) -> None:
    """Stop serving a channel."""
    if not await orchestrator.remove_channel(channel_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Channel '{channel_id}' not found",
        )


@router.post("/rebuild")
async def rebuild_schedule(orchestrator: OrchestratorDep) -> list[JobResponse]:
    """Cancel and reinstall today's reminders."""
    jobs = await orchestrator.rebuild_schedule()
    return [_job_response(j) for j in jobs]


@router.post("/countdown/check")
async def check_countdown(
    store: StoreDep,
    orchestrator: OrchestratorDep,
) -> SeasonResponse:
    """Run the evening alert now. Deduplicated like the scheduled run."""
    await orchestrator.send_countdown_or_uncertainty_alert()
    state = store.load()
    countdown = None if state.active else await orchestrator.countdown()
    return _season_response(state, orchestrator.installed_jobs, countdown)
