"""Prayer times with a same-day cache per channel."""

from datetime import date

import structlog

from hilal.application.ports.calendar import PrayerTimeSource
from hilal.domain.models import PrayerTimes
from hilal.infrastructure.state.models import ChannelConfig
from hilal.infrastructure.state.store import StateStore

logger = structlog.get_logger()


class PrayerTimeService:
    """Looks up prayer times, reusing a channel's cached copy for the same day.

    Fetch errors propagate to the caller, which decides the fallback.
    """

    def __init__(self, source: PrayerTimeSource, store: StateStore) -> None:
        """Initialize the service.

        Args:
            source: Remote prayer-time lookup.
            store: State store holding the per-channel cache.

        """
        self._source = source
        self._store = store

    async def get_prayer_times(
        self,
        city: str,
        country: str,
        day: date | None = None,
    ) -> PrayerTimes:
        """Fetch prayer times for a location without caching."""
        return await self._source.fetch_prayer_times(city, country, day or date.today())

    async def get_for_channel(
        self,
        channel: ChannelConfig,
        day: date | None = None,
    ) -> PrayerTimes:
        """Return a channel's prayer times, from its cache when it is for ``day``.

        Args:
            channel: Channel configuration (city, country, cache).
            day: Date to look up, today by default.

        Returns:
            Prayer times for the channel's city.

        """
        day = day or date.today()
        log = logger.bind(channel_id=channel.channel_id, city=channel.city)

        if channel.cached_prayer_date == day and channel.cached_prayer_times:
            try:
                cached = PrayerTimes.from_timings(channel.cached_prayer_times, timezone=channel.timezone)
            except KeyError:
                log.warning("Cached prayer times incomplete, refetching")
            else:
                log.debug("Prayer times cache hit")
                return cached

        prayer_times = await self._source.fetch_prayer_times(channel.city, channel.country, day)
        self._store.cache_prayer_times(channel.channel_id, day, prayer_times)
        log.info("Prayer times fetched", day=day.isoformat(), timezone=prayer_times.timezone)
        return prayer_times
