"""Reminder orchestration - per-channel daily jobs, season transitions and the evening alert."""

import asyncio
import random
from collections import defaultdict
from datetime import date, datetime
from pathlib import Path
from typing import Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

from hilal.application.ports.calendar import FetchError
from hilal.application.ports.delivery import DeliveryError, MessageSender
from hilal.config import Settings
from hilal.domain.enums import GlobalAlert, MessageType, Notice
from hilal.domain.models import CountdownResult, PrayerTimes, ScheduledJob, TimeOfDay
from hilal.infrastructure.scheduler.apscheduler import JobFunc
from hilal.infrastructure.state.models import ChannelConfig, GlobalState
from hilal.infrastructure.state.store import StateStore
from hilal.infrastructure.telegram.formatter import (
    format_countdown,
    format_daily_schedule,
    format_notice,
    format_reminder,
    format_status,
)

from .calendar_service import CalendarService
from .prayer_time_service import PrayerTimeService

logger = structlog.get_logger()

# Always-on daily ticks
MIDNIGHT_JOB_ID = "tick:midnight"
EVENING_ALERT_JOB_ID = "tick:evening-alert"
DAILY_SCHEDULE_JOB_ID = "tick:daily-schedule"

IMAGE_SUFFIXES = frozenset({".png", ".jpg", ".jpeg", ".gif", ".webp"})


class JobScheduler(Protocol):
    """The subset of the scheduler the orchestrator drives."""

    def add_daily_job(
        self,
        job_id: str,
        func: JobFunc,
        hour: int,
        minute: int,
        *,
        timezone: str | None = None,
        kwargs: dict[str, object] | None = None,
    ) -> None: ...

    def remove_job(self, job_id: str) -> bool: ...


class ReminderOrchestrator:
    """Owns the season switch and every installed reminder job.

    States:
        Idle - the season is off and no reminder jobs are installed.
        Active - one job per (message type, channel) is installed for today.

    Every change (activation, deactivation, city change, midnight) goes through
    :meth:`rebuild_schedule`, which cancels all installed jobs before installing
    fresh ones. Each job re-checks the dedup ledger before delivering, so a
    reminder reaches a channel at most once per calendar day.
    """

    def __init__(
        self,
        store: StateStore,
        calendar: CalendarService,
        prayer_times: PrayerTimeService,
        sender: MessageSender | None,
        scheduler: JobScheduler,
        settings: Settings,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            store: Persistent state and dedup ledger.
            calendar: Countdown reconciliation.
            prayer_times: Cached prayer-time lookup.
            sender: Chat delivery, or None when delivery is not configured.
            scheduler: Wall-clock job scheduler.
            settings: Application settings.

        """
        self._store = store
        self._calendar = calendar
        self._prayer_times = prayer_times
        self._sender = sender
        self._scheduler = scheduler
        self._settings = settings
        self._installed: dict[str, ScheduledJob] = {}
        self._rebuild_lock = asyncio.Lock()
        self._delivery_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @property
    def installed_jobs(self) -> list[ScheduledJob]:
        """Reminder jobs currently installed."""
        return list(self._installed.values())

    # Lifecycle

    async def start(self) -> None:
        """Install the daily ticks and restore today's jobs if the season is on."""
        evening = TimeOfDay.parse(self._settings.evening_alert_time)
        morning = TimeOfDay.parse(self._settings.daily_schedule_time)

        self._scheduler.add_daily_job(MIDNIGHT_JOB_ID, self.rebuild_schedule, 0, 0)
        self._scheduler.add_daily_job(
            EVENING_ALERT_JOB_ID,
            self.send_countdown_or_uncertainty_alert,
            evening.hour,
            evening.minute,
        )
        self._scheduler.add_daily_job(
            DAILY_SCHEDULE_JOB_ID,
            self.send_daily_schedule,
            morning.hour,
            morning.minute,
        )
        logger.info("Daily ticks installed", evening_alert=str(evening), daily_schedule=str(morning))

        if self._store.load().active:
            logger.info("Season active at startup, rebuilding schedule")
            await self.rebuild_schedule()

    async def stop(self) -> None:
        """Cancel every job the orchestrator installed."""
        self.cancel_scheduled_jobs()
        for job_id in (MIDNIGHT_JOB_ID, EVENING_ALERT_JOB_ID, DAILY_SCHEDULE_JOB_ID):
            self._scheduler.remove_job(job_id)

    # Season transitions

    async def activate(self, channel_id: str | None = None, *, announce: bool = False) -> list[ScheduledJob]:
        """Turn the season on for every configured channel.

        Args:
            channel_id: Channel to register first, the default channel if omitted.
            announce: Send the season-started notice to every channel.

        Returns:
            The jobs installed for today.

        """
        target = channel_id or self._settings.default_channel_id
        if target:
            self._store.ensure_channel(target)
        else:
            logger.warning("Activating without a channel to register")

        state = self._store.set_active(True)
        logger.info("Season activated", channel_id=target)
        if announce:
            await self._announce(Notice.SEASON_STARTED, state.channels)
        return await self.rebuild_schedule()

    async def deactivate(self, *, announce: bool = False) -> None:
        """Turn the season off and cancel all reminder jobs."""
        state = self._store.set_active(False)
        await self.rebuild_schedule()
        logger.info("Season deactivated")
        if announce:
            await self._announce(Notice.SEASON_ENDED, state.channels)

    async def _announce(self, notice: Notice, channels: list[ChannelConfig]) -> int:
        hijri_date = await self._calendar.formatted_lunar_date(self._today())
        sent = 0
        for channel in channels:
            text = format_notice(notice, hijri_date, city=channel.city, language=self._settings.language)
            try:
                await self._send(channel.channel_id, text)
            except DeliveryError as e:
                logger.exception("Failed to announce", notice=notice, channel_id=channel.channel_id, error=str(e))
                continue
            sent += 1
        return sent

    async def set_city(self, city: str, country: str, channel_id: str | None = None) -> GlobalState:
        """Change a channel's location, or the default one when no channel is given."""
        state = self._store.update_city(city, country, channel_id)
        logger.info("City updated", city=city, country=country, channel_id=channel_id)
        if state.active:
            await self.rebuild_schedule()
        return state

    async def remove_channel(self, channel_id: str) -> bool:
        """Stop serving a channel. Returns whether it was configured."""
        removed = self._store.remove_channel(channel_id)
        if removed:
            logger.info("Channel removed", channel_id=channel_id)
            if self._store.load().active:
                await self.rebuild_schedule()
        return removed

    def set_countdown_enabled(self, enabled: bool) -> None:
        """Enable or disable the evening countdown alert."""
        self._store.set_countdown_enabled(enabled)
        logger.info("Countdown toggled", enabled=enabled)

    # Schedule

    def cancel_scheduled_jobs(self) -> int:
        """Cancel every installed reminder job. Safe to call with none installed."""
        count = len(self._installed)
        for job_id in self._installed:
            self._scheduler.remove_job(job_id)
        self._installed.clear()
        if count:
            logger.info("Reminder jobs cancelled", count=count)
        return count

    def plan_jobs(self, channel: ChannelConfig, prayer_times: PrayerTimes) -> list[ScheduledJob]:
        """Derive today's reminder times for a channel."""
        timezone = channel.timezone or prayer_times.timezone or self._settings.timezone
        fajr = TimeOfDay.parse(prayer_times.fajr)
        maghrib = TimeOfDay.parse(prayer_times.maghrib)
        isha = TimeOfDay.parse(prayer_times.isha)

        times = [
            (MessageType.IFTAR, maghrib),
            (MessageType.SUHOOR, fajr.shifted(-self._settings.suhoor_minutes_before_fajr)),
            (MessageType.EARLY_SUHOOR, fajr.shifted(-self._settings.early_suhoor_minutes_before_fajr)),
            (MessageType.TARAWEEH, isha.shifted(-self._settings.taraweeh_minutes_before_isha)),
        ]
        if self._settings.iftar_image_dir is not None:
            times.append((MessageType.IFTAR_IMAGE, maghrib.shifted(self._settings.iftar_image_delay_minutes)))

        return [
            ScheduledJob(
                message_type=message_type,
                fires_at=fires_at,
                channel_id=channel.channel_id,
                city=channel.city,
                timezone=timezone,
            )
            for message_type, fires_at in times
        ]

    async def rebuild_schedule(self) -> list[ScheduledJob]:
        """Cancel all reminder jobs and, if the season is on, install today's.

        A channel whose prayer times cannot be fetched is skipped for this
        cycle without affecting the others.

        Returns:
            The jobs installed.

        """
        async with self._rebuild_lock:
            self.cancel_scheduled_jobs()

            state = self._store.load()
            if not state.active:
                logger.info("Season not active, no reminders scheduled")
                return []

            logger.info("Scheduling reminders", channels=len(state.channels))
            for channel in state.channels:
                log = logger.bind(channel_id=channel.channel_id, city=channel.city)
                try:
                    day = self._today(channel.timezone)
                    prayer_times = await self._prayer_times.get_for_channel(channel, day)
                except FetchError as e:
                    log.warning("Prayer times unavailable, channel skipped", error=str(e))
                    continue

                try:
                    for job in self.plan_jobs(channel, prayer_times):
                        self._install(job)
                except Exception as e:
                    log.exception("Failed to schedule channel", error=str(e))

            return self.installed_jobs

    def _install(self, job: ScheduledJob) -> None:
        self._scheduler.add_daily_job(
            job.job_id,
            self.deliver_reminder,
            job.fires_at.hour,
            job.fires_at.minute,
            timezone=job.timezone,
            kwargs={"message_type": job.message_type.value, "channel_id": job.channel_id},
        )
        self._installed[job.job_id] = job
        logger.info(
            "Reminder scheduled",
            message_type=job.message_type,
            city=job.city,
            at=str(job.fires_at),
            timezone=job.timezone,
        )

    # Job bodies

    async def deliver_reminder(self, message_type: str, channel_id: str) -> bool:
        """Send one reminder to one channel unless it already went out today.

        Returns:
            Whether a message was delivered.

        """
        kind = MessageType(message_type)
        log = logger.bind(message_type=kind, channel_id=channel_id)

        async with self._delivery_locks[f"{kind}:{channel_id}"]:
            state = self._store.load()
            if not state.active:
                log.info("Season not active, reminder skipped")
                return False

            channel = state.find_channel(channel_id)
            if channel is None:
                log.warning("Channel no longer configured, reminder skipped")
                return False

            today = self._today(channel.timezone)
            if self._store.was_sent_today(kind, channel_id, today):
                log.info("Reminder already sent today", city=channel.city)
                return False

            try:
                if kind is MessageType.IFTAR_IMAGE:
                    if not await self._send_iftar_image(channel):
                        return False
                else:
                    text = await self._render_reminder(kind, channel, today)
                    await self._send(channel_id, text)
            except FetchError as e:
                log.warning("Prayer times unavailable, reminder skipped", error=str(e))
                return False
            except DeliveryError as e:
                log.exception("Failed to deliver reminder", city=channel.city, error=str(e))
                return False

            self._store.mark_sent(kind, channel_id, today)
            log.info("Reminder sent", city=channel.city)
            return True

    async def _render_reminder(self, kind: MessageType, channel: ChannelConfig, today: date) -> str:
        prayer_times = await self._prayer_times.get_for_channel(channel, today)
        prayer_time = {
            MessageType.IFTAR: prayer_times.maghrib,
            MessageType.SUHOOR: prayer_times.fajr,
            MessageType.EARLY_SUHOOR: prayer_times.fajr,
            MessageType.TARAWEEH: prayer_times.isha,
        }[kind]
        hijri_date = await self._calendar.formatted_lunar_date(today)
        return format_reminder(kind, channel.city, prayer_time, hijri_date, self._settings.language)

    def _pick_iftar_image(self) -> Path | None:
        folder = self._settings.iftar_image_dir
        if folder is None or not folder.is_dir():
            logger.warning("Iftar image folder missing", path=str(folder))
            return None
        images = [p for p in folder.iterdir() if p.suffix.lower() in IMAGE_SUFFIXES]
        if not images:
            logger.warning("No iftar images found", path=str(folder))
            return None
        return random.choice(images)  # noqa: S311

    async def _send_iftar_image(self, channel: ChannelConfig) -> bool:
        image = self._pick_iftar_image()
        if image is None:
            return False
        if self._sender is None:
            msg = "Delivery not configured"
            raise DeliveryError(msg, channel_id=channel.channel_id)
        caption = random.choice(self._settings.iftar_image_captions or [""]) or None  # noqa: S311
        await self._sender.send_photo(channel.channel_id, image, caption)
        return True

    async def send_daily_schedule(self) -> int:
        """Send every channel today's prayer times. Only while the season is on.

        Returns:
            Number of channels served.

        """
        state = self._store.load()
        if not state.active:
            return 0

        sent = 0
        for channel in state.channels:
            log = logger.bind(channel_id=channel.channel_id, city=channel.city)
            try:
                day = self._today(channel.timezone)
                prayer_times = await self._prayer_times.get_for_channel(channel, day)
                hijri_date = await self._calendar.formatted_lunar_date(day)
                text = format_daily_schedule(channel.city, prayer_times, hijri_date, day, self._settings.language)
                await self._send(channel.channel_id, text)
            except FetchError as e:
                log.warning("Prayer times unavailable, daily schedule skipped", error=str(e))
                continue
            except DeliveryError as e:
                log.exception("Failed to deliver daily schedule", error=str(e))
                continue
            sent += 1

        logger.info("Daily schedule sent", channels=sent)
        return sent

    # Evening alert

    def resolve_home_channel(self, state: GlobalState) -> str | None:
        """Find the channel that receives the evening countdown alert."""
        home_city = self._settings.home_city.lower()
        home_country = self._settings.home_country.lower()

        for channel in state.channels:
            if home_city in channel.city.lower() or home_country in channel.country.lower():
                return channel.channel_id

        if home_country in state.default_country.lower() or home_city in state.default_city.lower():
            return self._settings.default_channel_id
        return None

    async def send_countdown_or_uncertainty_alert(self, today: date | None = None) -> None:
        """Evening tick: announce the eve, the countdown, or start the season."""
        today = today or self._today()
        state = self._store.load()

        if state.active:
            logger.debug("Season active, countdown skipped")
            return
        if not state.countdown_enabled:
            logger.debug("Countdown disabled")
            return

        channel_id = self.resolve_home_channel(state)
        if channel_id is None:
            logger.info("No channel found for the countdown alert")
            return

        if await self._calendar.is_night_of_uncertainty(today):
            logger.info("Night of doubt detected", channel_id=channel_id)
            hijri_date = await self._calendar.formatted_lunar_date(today)
            text = format_notice(Notice.NIGHT_OF_DOUBT, hijri_date, language=self._settings.language)
            await self._send_alert(GlobalAlert.UNCERTAINTY, channel_id, text, today)
            return

        countdown = await self._calendar.days_until_target(today)
        logger.info("Countdown computed", days=countdown.days_remaining, source=countdown.source)

        if countdown.days_remaining == 0:
            await self.auto_activate(channel_id, today)
        elif countdown.days_remaining > 0:
            hijri_date = await self._calendar.formatted_lunar_date(today)
            text = format_countdown(countdown, hijri_date, self._settings.language)
            await self._send_alert(GlobalAlert.COUNTDOWN, channel_id, text, today)

    async def auto_activate(self, channel_id: str, today: date | None = None) -> list[ScheduledJob]:
        """Start the season when the countdown reaches zero."""
        logger.info("Countdown reached zero, activating season", channel_id=channel_id)
        self._store.ensure_channel(channel_id)
        state = self._store.set_active(True)

        hijri_date = await self._calendar.formatted_lunar_date(today)
        channel = state.find_channel(channel_id)
        text = format_notice(
            Notice.SEASON_STARTED,
            hijri_date,
            city=channel.city if channel else None,
            language=self._settings.language,
        )
        try:
            await self._send(channel_id, text)
        except DeliveryError as e:
            logger.exception("Failed to announce season start", channel_id=channel_id, error=str(e))

        return await self.rebuild_schedule()

    async def _send_alert(self, alert: GlobalAlert, channel_id: str, text: str, today: date) -> bool:
        if self._store.was_alert_sent_today(alert, today):
            logger.info("Alert already sent today", alert=alert)
            return False
        try:
            await self._send(channel_id, text)
        except DeliveryError as e:
            logger.exception("Failed to send alert", alert=alert, channel_id=channel_id, error=str(e))
            return False
        self._store.mark_alert_sent(alert, today)
        logger.info("Alert sent", alert=alert, channel_id=channel_id)
        return True

    # Status

    async def countdown(self, today: date | None = None) -> CountdownResult:
        """Current reconciled countdown in the process timezone."""
        return await self._calendar.days_until_target(today or self._today())

    async def status(self) -> str:
        """Human-readable status for the bot's /status command."""
        state = self._store.load()
        countdown = None if state.active else await self.countdown()
        return format_status(
            active=state.active,
            countdown_enabled=state.countdown_enabled,
            channels=[(c.channel_id, c.city) for c in state.channels],
            jobs_count=len(self._installed),
            countdown=countdown,
            language=self._settings.language,
        )

    # Helpers

    async def _send(self, channel_id: str, text: str) -> None:
        if self._sender is None:
            msg = "Delivery not configured"
            raise DeliveryError(msg, channel_id=channel_id)
        await self._sender.send_message(channel_id, text)

    def _today(self, timezone: str | None = None) -> date:
        """Current date in a channel's timezone, or in the process timezone."""
        try:
            zone = ZoneInfo(timezone or self._settings.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone, using process timezone", timezone=timezone)
            zone = ZoneInfo(self._settings.timezone)
        return datetime.now(zone).date()
