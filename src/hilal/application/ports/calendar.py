"""Protocols for the remote prayer-time and Hijri-date lookups."""

from datetime import date
from typing import Protocol

from hilal.domain.models import LunarDate, PrayerTimes


class PrayerTimeSource(Protocol):
    """Protocol for prayer-time lookups."""

    async def fetch_prayer_times(
        self,
        city: str,
        country: str,
        day: date,
    ) -> PrayerTimes:
        """Fetch the six prayer times for a city on a given day.

        Raises:
            NetworkError: If the service cannot be reached.
            InvalidLocationError: If the city/country pair is rejected.
            ParseError: If the response cannot be understood.

        """
        ...


class LunarCalendar(Protocol):
    """Protocol for Gregorian to Hijri date conversion."""

    async def fetch_lunar_date(self, day: date) -> LunarDate:
        """Convert a Gregorian date to the Hijri calendar.

        Raises:
            NetworkError: If the service cannot be reached.
            ParseError: If the response cannot be understood.

        """
        ...


class FetchError(Exception):
    """Base exception for remote lookup failures."""

    def __init__(
        self,
        message: str,
        error_type: str = "unknown",
        *,
        recoverable: bool = True,
    ) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
            error_type: Type of error (network, location, parse).
            recoverable: Whether a later attempt may succeed.

        """
        super().__init__(message)
        self.error_type = error_type
        self.recoverable = recoverable


class NetworkError(FetchError):
    """Network error - connection failed or the service misbehaved."""

    def __init__(self, message: str = "Network error") -> None:
        """Initialize network error."""
        super().__init__(message, error_type="network", recoverable=True)


class InvalidLocationError(FetchError):
    """The city/country pair is not known to the service."""

    def __init__(self, message: str = "Invalid location") -> None:
        """Initialize invalid location error."""
        super().__init__(message, error_type="location", recoverable=False)


class ParseError(FetchError):
    """The service answered with something unexpected."""

    def __init__(self, message: str = "Invalid API response") -> None:
        """Initialize parse error."""
        super().__init__(message, error_type="parse", recoverable=True)
