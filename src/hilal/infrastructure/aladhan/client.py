"""Aladhan API client for prayer times and Hijri dates."""

from datetime import date
from typing import Any

import httpx
import structlog

from hilal.application.ports.calendar import (
    FetchError,
    InvalidLocationError,
    NetworkError,
    ParseError,
)
from hilal.domain.models import LunarDate, PrayerTimes

logger = structlog.get_logger()

# Calculation method applied when no country rule matches: Muslim World League
DEFAULT_CALCULATION_METHOD = 3

# (lowercase country substring, Aladhan method code). Rules are checked in
# order and a later match overrides an earlier one.
CALCULATION_METHODS: tuple[tuple[str, int], ...] = (
    ("algeria", 19),  # Algerian Ministry of Religious Affairs
    ("canada", 2),  # ISNA
    ("usa", 2),  # ISNA
)


def calculation_method_for(country: str) -> int:
    """Pick the Aladhan calculation method for a country name.

    Args:
        country: Free-form country name, matched case-insensitively by substring.

    Returns:
        Aladhan method code.

    """
    method = DEFAULT_CALCULATION_METHOD
    name = country.lower()
    for substring, code in CALCULATION_METHODS:
        if substring in name:
            method = code
    return method


class AladhanClient:
    """Client for the Aladhan timings and calendar conversion endpoints.

    Implements both :class:`PrayerTimeSource` and :class:`LunarCalendar`.
    """

    def __init__(self, base_url: str = "https://api.aladhan.com/v1", timeout: float = 30.0) -> None:
        """Initialize the client.

        Args:
            base_url: Aladhan API root.
            timeout: Request timeout in seconds.

        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client.

        Returns:
            Configured httpx AsyncClient.

        """
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def fetch_prayer_times(
        self,
        city: str,
        country: str,
        day: date,
    ) -> PrayerTimes:
        """Fetch the six prayer times for a city.

        Args:
            city: City name.
            country: Country name, also used to pick the calculation method.
            day: Gregorian date.

        Returns:
            Prayer times with the city's timezone when the API reports it.

        """
        log = logger.bind(city=city, country=country, day=day.isoformat())
        url = f"{self._base_url}/timingsByCity/{day:%d-%m-%Y}"
        params = {
            "city": city,
            "country": country,
            "method": calculation_method_for(country),
        }

        log.debug("Fetching prayer times", url=url, method=params["method"])
        data = await self._get(url, params=params, context="timings", invalid_location=True)

        try:
            timings = data["timings"]
            timezone = data.get("meta", {}).get("timezone")
            return PrayerTimes.from_timings(timings, timezone=timezone)
        except (KeyError, TypeError, AttributeError) as e:
            msg = f"timings: missing field {e}"
            raise ParseError(msg) from e

    async def fetch_lunar_date(self, day: date) -> LunarDate:
        """Convert a Gregorian date to the Hijri calendar.

        Args:
            day: Gregorian date.

        Returns:
            The Hijri date with the Arabic month name.

        """
        url = f"{self._base_url}/gToH/{day:%d-%m-%Y}"
        logger.debug("Fetching Hijri date", url=url)
        data = await self._get(url, context="gToH")

        try:
            hijri = data["hijri"]
            return LunarDate(
                day=int(hijri["day"]),
                month=int(hijri["month"]["number"]),
                year=int(hijri["year"]),
                month_name=str(hijri["month"].get("ar", "")),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            msg = f"gToH: unexpected payload ({e})"
            raise ParseError(msg) from e

    async def _get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        context: str = "",
        *,
        invalid_location: bool = False,
    ) -> dict[str, Any]:
        """GET an Aladhan endpoint and return its ``data`` member."""
        client = await self.get_client()
        try:
            response = await client.get(url, params=params)
        except httpx.HTTPError as e:
            msg = f"{context}: {e}"
            raise NetworkError(msg) from e

        self.handle_response_error(response, context, invalid_location=invalid_location)

        try:
            body = response.json()
        except ValueError as e:
            msg = f"{context}: response is not JSON"
            raise ParseError(msg) from e

        if not isinstance(body, dict) or body.get("code") != 200 or not isinstance(body.get("data"), dict):
            msg = f"{context}: Invalid API response"
            raise ParseError(msg)
        return body["data"]

    @staticmethod
    def handle_response_error(
        response: httpx.Response,
        context: str = "",
        *,
        invalid_location: bool = False,
    ) -> None:
        """Handle HTTP response errors.

        Args:
            response: HTTP response to check.
            context: Additional context for error messages.
            invalid_location: Whether a 400/404 means the location was rejected.

        Raises:
            NetworkError: For rate limiting and server errors.
            InvalidLocationError: For a rejected city/country.
            FetchError: For other errors.

        """
        if response.is_success:
            return

        status = response.status_code
        prefix = f"{context}: " if context else ""

        if status == 429:
            msg = f"{prefix}Rate limit exceeded"
            raise NetworkError(msg)

        if status >= 500:
            msg = f"{prefix}Server error: {status}"
            raise NetworkError(msg)

        if invalid_location and status in {400, 404}:
            msg = f"{prefix}Location not found: {status}"
            raise InvalidLocationError(msg)

        msg = f"{prefix}Request failed: {status}"
        raise FetchError(msg, error_type="http", recoverable=False)
