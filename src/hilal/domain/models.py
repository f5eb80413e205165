"""Domain models - pure Python dataclasses."""

from dataclasses import dataclass
from datetime import date

from .enums import CountdownSource, MessageType

MINUTES_PER_DAY = 24 * 60

PRAYER_NAMES = ("Fajr", "Sunrise", "Dhuhr", "Asr", "Maghrib", "Isha")


def parse_hhmm(value: str) -> tuple[int, int]:
    """Parse an ``HH:MM`` string into ``(hour, minute)``.

    Aladhan sometimes appends a zone label (``"05:12 (CET)"``), which is ignored.
    """
    hour, minute = value.strip().split(" ")[0].split(":")[:2]
    return int(hour), int(minute)


@dataclass(frozen=True, slots=True)
class TimeOfDay:
    """A wall-clock time without a date."""

    hour: int
    minute: int

    @classmethod
    def parse(cls, value: str) -> "TimeOfDay":
        """Build from an ``HH:MM`` string."""
        hour, minute = parse_hhmm(value)
        return cls(hour, minute)

    def shifted(self, minutes: int) -> "TimeOfDay":
        """Return this time moved by ``minutes``, wrapping around midnight."""
        total = (self.hour * 60 + self.minute + minutes) % MINUTES_PER_DAY
        return TimeOfDay(total // 60, total % 60)

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True, slots=True)
class PrayerTimes:
    """The six daily prayer instants for one city and day."""

    fajr: str
    sunrise: str
    dhuhr: str
    asr: str
    maghrib: str
    isha: str
    timezone: str | None = None

    @classmethod
    def from_timings(cls, timings: dict[str, str], timezone: str | None = None) -> "PrayerTimes":
        """Build from an Aladhan-style ``{"Fajr": "05:12", ...}`` mapping.

        Raises:
            KeyError: If one of the six prayers is missing.

        """
        values = [str(timings[name]).split(" ")[0] for name in PRAYER_NAMES]
        return cls(*values, timezone=timezone)

    def as_timings(self) -> dict[str, str]:
        """Return the ``{"Fajr": ..., "Isha": ...}`` mapping."""
        return dict(zip(PRAYER_NAMES, (self.fajr, self.sunrise, self.dhuhr, self.asr, self.maghrib, self.isha)))


@dataclass(frozen=True, slots=True)
class LunarDate:
    """A Hijri calendar date."""

    day: int
    month: int
    year: int
    month_name: str = ""

    @property
    def formatted(self) -> str:
        """Human-readable form used in message footers."""
        if not self.month_name:
            return f"{self.day}/{self.month}/{self.year} هـ"
        return f"{self.day} {self.month_name} {self.year} هـ"


@dataclass(frozen=True, slots=True)
class CountdownResult:
    """Days remaining until the target season starts."""

    days_remaining: int
    is_eve_of_uncertainty: bool
    source: CountdownSource
    in_target_period: bool = False
    expected_date: date | None = None

    @property
    def is_estimate(self) -> bool:
        """Whether the figure is the fixed-date estimate."""
        return self.source is CountdownSource.FIXED


@dataclass(frozen=True, slots=True)
class ScheduledJob:
    """One per-channel reminder for today. Rebuilt from scratch every day."""

    message_type: MessageType
    fires_at: TimeOfDay
    channel_id: str
    city: str
    timezone: str

    @property
    def job_id(self) -> str:
        """Scheduler identifier, unique per (message type, channel)."""
        return f"{self.message_type}:{self.channel_id}"
