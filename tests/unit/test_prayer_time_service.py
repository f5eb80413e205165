"""Tests for PrayerTimeService."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from hilal.application.ports.calendar import InvalidLocationError
from hilal.application.services.prayer_time_service import PrayerTimeService
from hilal.domain.models import PrayerTimes
from hilal.infrastructure.state.models import ChannelConfig
from hilal.infrastructure.state.store import StateStore

TODAY = date(2026, 2, 20)


class TestPrayerTimeService:
    """Tests for PrayerTimeService."""

    @pytest.fixture
    def prayer_times(self) -> PrayerTimes:
        """Return sample prayer times for Algiers."""
        return PrayerTimes("05:55", "07:22", "12:58", "16:04", "18:30", "19:50", timezone="Africa/Algiers")

    @pytest.fixture
    def source(self, prayer_times: PrayerTimes) -> AsyncMock:
        """Return mock prayer-time source."""
        source = AsyncMock()
        source.fetch_prayer_times.return_value = prayer_times
        return source

    @pytest.fixture
    def service(self, source: AsyncMock, store: StateStore) -> PrayerTimeService:
        """Return PrayerTimeService over the mock source."""
        return PrayerTimeService(source, store)

    @pytest.fixture
    def channel(self, store: StateStore) -> ChannelConfig:
        """Return a configured channel without cache."""
        return store.ensure_channel("-100")

    @pytest.mark.asyncio
    async def test_cache_miss_fetches_and_stores(
        self,
        service: PrayerTimeService,
        source: AsyncMock,
        store: StateStore,
        channel: ChannelConfig,
        prayer_times: PrayerTimes,
    ) -> None:
        """Test a channel without cache fetches and caches the result."""
        result = await service.get_for_channel(channel, TODAY)

        assert result == prayer_times
        source.fetch_prayer_times.assert_called_once_with("Algiers", "Algeria", TODAY)
        cached = store.find_channel("-100")
        assert cached is not None
        assert cached.cached_prayer_date == TODAY
        assert cached.timezone == "Africa/Algiers"

    @pytest.mark.asyncio
    async def test_cache_hit_same_day(
        self,
        service: PrayerTimeService,
        source: AsyncMock,
        store: StateStore,
        channel: ChannelConfig,
        prayer_times: PrayerTimes,
    ) -> None:
        """Test a second lookup on the same day does not hit the source."""
        await service.get_for_channel(channel, TODAY)
        cached_channel = store.find_channel("-100")
        assert cached_channel is not None

        result = await service.get_for_channel(cached_channel, TODAY)

        assert result == prayer_times
        source.fetch_prayer_times.assert_called_once()

    @pytest.mark.asyncio
    async def test_cache_for_other_day_refetches(
        self,
        service: PrayerTimeService,
        source: AsyncMock,
        store: StateStore,
        channel: ChannelConfig,
    ) -> None:
        """Test yesterday's cache is not reused."""
        await service.get_for_channel(channel, date(2026, 2, 19))
        cached_channel = store.find_channel("-100")
        assert cached_channel is not None

        await service.get_for_channel(cached_channel, TODAY)

        assert source.fetch_prayer_times.call_count == 2

    @pytest.mark.asyncio
    async def test_incomplete_cache_refetches(
        self,
        service: PrayerTimeService,
        source: AsyncMock,
    ) -> None:
        """Test a cache missing a prayer is treated as a miss."""
        channel = ChannelConfig(
            channel_id="-100",
            city="Algiers",
            country="Algeria",
            cached_prayer_times={"Fajr": "05:55"},
            cached_prayer_date=TODAY,
        )

        await service.get_for_channel(channel, TODAY)

        source.fetch_prayer_times.assert_called_once()

    @pytest.mark.asyncio
    async def test_fetch_error_propagates(
        self,
        service: PrayerTimeService,
        source: AsyncMock,
        channel: ChannelConfig,
    ) -> None:
        """Test lookup failures reach the caller."""
        source.fetch_prayer_times.side_effect = InvalidLocationError("Atlantis")

        with pytest.raises(InvalidLocationError):
            await service.get_for_channel(channel, TODAY)

    @pytest.mark.asyncio
    async def test_get_prayer_times_does_not_cache(
        self,
        service: PrayerTimeService,
        source: AsyncMock,
        store: StateStore,
    ) -> None:
        """Test the plain lookup leaves the store untouched."""
        await service.get_prayer_times("Oran", "Algeria", TODAY)

        source.fetch_prayer_times.assert_called_once_with("Oran", "Algeria", TODAY)
        assert store.load().channels == []
