"""Countdown to the season start, reconciling a fixed-date table with the Hijri calendar."""

import math
from datetime import date

import structlog

from hilal.application.ports.calendar import FetchError, LunarCalendar
from hilal.domain.enums import CountdownSource
from hilal.domain.models import CountdownResult, LunarDate

logger = structlog.get_logger()

# Day counts used to project the Hijri calendar forward
DAYS_IN_CURRENT_LUNAR_MONTH = 30
AVERAGE_LUNAR_MONTH_DAYS = 29.5

# Hijri day on which the eve of the next month can fall
EVE_LUNAR_DAY = 29

UNAVAILABLE_DATE_TEXT = "غير متوفر"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up."""
    return math.floor(value + 0.5)


class CalendarService:
    """Computes how many days remain until the target lunar month.

    Two sources are combined:

    1. A fixed table of approximate Gregorian start dates, always available.
    2. The live Hijri date, trusted only when it agrees with the table within
       ``tolerance_days``. A failed lookup falls back to the table silently.
    """

    def __init__(
        self,
        lunar_calendar: LunarCalendar,
        expected_dates: dict[int, date],
        target_month: int = 9,
        eve_offset_days: int = 1,
        tolerance_days: int = 5,
    ) -> None:
        """Initialize the service.

        Args:
            lunar_calendar: Gregorian to Hijri converter.
            expected_dates: Approximate season start per Gregorian year.
            target_month: Hijri month number the countdown targets.
            eve_offset_days: Days before the fixed date that count as the eve.
            tolerance_days: Maximum live/fixed disagreement for the live figure to win.

        """
        self._lunar_calendar = lunar_calendar
        self._expected_dates = expected_dates
        self._target_month = target_month
        self._eve_offset_days = eve_offset_days
        self._tolerance_days = tolerance_days

    def _expected_date_for(self, year: int) -> date | None:
        # A year missing from the table borrows the following year's entry
        return self._expected_dates.get(year) or self._expected_dates.get(year + 1)

    def expected_target_date(self, today: date | None = None) -> date | None:
        """Return the next configured season start on or after today."""
        today = today or date.today()
        expected = self._expected_date_for(today.year)
        if expected is not None and expected < today:
            expected = self._expected_date_for(today.year + 1)
        return expected

    def fixed_countdown(self, today: date | None = None) -> CountdownResult:
        """Countdown from the fixed-date table alone."""
        today = today or date.today()
        expected = self.expected_target_date(today)
        if expected is None:
            return CountdownResult(
                days_remaining=-1,
                is_eve_of_uncertainty=False,
                source=CountdownSource.FIXED,
            )

        days = (expected - today).days
        return CountdownResult(
            days_remaining=days,
            is_eve_of_uncertainty=days == self._eve_offset_days,
            source=CountdownSource.FIXED,
            expected_date=expected,
        )

    def live_estimate(self, lunar: LunarDate) -> int:
        """Project the days remaining from a Hijri date before the target month."""
        months_until_target = self._target_month - lunar.month
        remaining = (
            DAYS_IN_CURRENT_LUNAR_MONTH - lunar.day + (months_until_target - 1) * AVERAGE_LUNAR_MONTH_DAYS
        )
        return round_half_up(remaining)

    def is_lunar_eve(self, lunar: LunarDate) -> bool:
        """Whether a Hijri date is the 29th of the month before the target."""
        return lunar.month == self._target_month - 1 and lunar.day == EVE_LUNAR_DAY

    async def days_until_target(self, today: date | None = None) -> CountdownResult:
        """Reconcile the fixed estimate with the live Hijri date.

        Returns:
            The live figure when it is within tolerance of the fixed one,
            otherwise the fixed figure.

        """
        today = today or date.today()
        fixed = self.fixed_countdown(today)

        try:
            lunar = await self._lunar_calendar.fetch_lunar_date(today)
        except FetchError as e:
            logger.warning("Hijri lookup failed, using fixed countdown", error=str(e), days=fixed.days_remaining)
            return fixed

        if lunar.month == self._target_month:
            return CountdownResult(
                days_remaining=0,
                is_eve_of_uncertainty=False,
                source=CountdownSource.HIJRI,
                in_target_period=True,
                expected_date=fixed.expected_date,
            )

        if lunar.month > self._target_month:
            return fixed

        live_days = self.live_estimate(lunar)
        diff = abs(live_days - fixed.days_remaining)
        if diff > self._tolerance_days:
            logger.info(
                "Hijri estimate disagrees with fixed countdown, keeping fixed",
                hijri_days=live_days,
                fixed_days=fixed.days_remaining,
            )
            return fixed

        return CountdownResult(
            days_remaining=live_days,
            is_eve_of_uncertainty=self.is_lunar_eve(lunar),
            source=CountdownSource.HIJRI,
            expected_date=fixed.expected_date,
        )

    async def is_night_of_uncertainty(self, today: date | None = None) -> bool:
        """True when either the fixed table or the Hijri date says today is the eve."""
        today = today or date.today()
        if self.fixed_countdown(today).is_eve_of_uncertainty:
            return True

        try:
            lunar = await self._lunar_calendar.fetch_lunar_date(today)
        except FetchError as e:
            logger.warning("Hijri lookup failed while checking the eve", error=str(e))
            return False
        return self.is_lunar_eve(lunar)

    async def is_target_month(self, today: date | None = None) -> bool:
        """Whether today falls inside the target Hijri month."""
        try:
            lunar = await self._lunar_calendar.fetch_lunar_date(today or date.today())
        except FetchError as e:
            logger.warning("Hijri lookup failed while checking the month", error=str(e))
            return False
        return lunar.month == self._target_month

    async def formatted_lunar_date(self, today: date | None = None) -> str:
        """Today's Hijri date for message footers."""
        try:
            lunar = await self._lunar_calendar.fetch_lunar_date(today or date.today())
        except FetchError:
            return UNAVAILABLE_DATE_TEXT
        return lunar.formatted
