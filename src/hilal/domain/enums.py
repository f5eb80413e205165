"""Domain enumerations."""

from enum import StrEnum


class MessageType(StrEnum):
    """Per-channel daily reminders tracked in the dedup ledger."""

    IFTAR = "iftar"
    SUHOOR = "suhoor"
    EARLY_SUHOOR = "earlySuhoor"
    TARAWEEH = "taraweeh"
    IFTAR_IMAGE = "iftarImage"


class CountdownSource(StrEnum):
    """Where a countdown figure came from."""

    FIXED = "fixed"
    HIJRI = "hijri"


class Notice(StrEnum):
    """Season-wide announcements that are not tied to a prayer time."""

    SEASON_STARTED = "seasonStarted"
    SEASON_ENDED = "seasonEnded"
    NIGHT_OF_DOUBT = "nightOfDoubt"


class GlobalAlert(StrEnum):
    """Process-wide alerts deduplicated once per day, independent of channels."""

    COUNTDOWN = "countdown"
    UNCERTAINTY = "uncertainty"
