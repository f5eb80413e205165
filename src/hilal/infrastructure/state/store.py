"""JSON document store for global state and the per-channel dedup ledger.

Every mutation is a read-modify-write of the whole document. This is safe for a
single process where writes are serialized by distinct trigger times, but two
concurrent writers touching the same channel entry can lose an update. Scaling
out needs a per-channel conditional write or a transactional store.
"""

import json
from datetime import date
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from hilal.domain.enums import GlobalAlert, MessageType
from hilal.domain.models import PrayerTimes

from .models import ChannelConfig, GlobalState

logger = structlog.get_logger()

# Root keys of the single-channel layout that predates the channels list
_LEGACY_ROOT_KEYS = ("channelId", "city", "country", "lastIftarSent", "lastSuhoorSent")

# Root keys renamed since the first document version
_RENAMED_ROOT_KEYS = {
    "ramadanActive": "active",
    "lastCountdownSent": "lastCountdownSentDate",
    "lastNightOfDoubtSent": "lastUncertaintyAlertSentDate",
}

# Per-channel markers that were stored as separate keys
_LEGACY_MARKER_KEYS = {
    "lastIftarSent": MessageType.IFTAR,
    "lastSuhoorSent": MessageType.SUHOOR,
    "lastTaraweehSent": MessageType.TARAWEEH,
    "lastEarlySuhoorSent": MessageType.EARLY_SUHOOR,
    "lastIftarImageSent": MessageType.IFTAR_IMAGE,
}


def migrate_document(raw: dict[str, Any], default_city: str, default_country: str) -> dict[str, Any]:
    """Bring an older document layout up to date.

    Args:
        raw: Decoded JSON document (modified in place).
        default_city: City used when a legacy document or channel lacks one.
        default_country: Country used when a legacy document or channel lacks one.

    Returns:
        The migrated document.

    """
    if raw.get("channelId") and not raw.get("channels"):
        logger.info("Migrating legacy single-channel state", channel_id=raw["channelId"])
        raw["channels"] = [
            {
                "channelId": raw["channelId"],
                "city": raw.get("city") or default_city,
                "country": raw.get("country") or default_country,
                "lastIftarSent": raw.get("lastIftarSent"),
                "lastSuhoorSent": raw.get("lastSuhoorSent"),
            }
        ]
        for key in _LEGACY_ROOT_KEYS:
            raw.pop(key, None)

    for old, new in _RENAMED_ROOT_KEYS.items():
        if old in raw:
            value = raw.pop(old)
            raw.setdefault(new, value)

    fallback_city = raw.get("defaultCity") or default_city
    fallback_country = raw.get("defaultCountry") or default_country
    for channel in raw.get("channels") or []:
        if not isinstance(channel, dict):
            continue
        # Older writers dropped an undefined country instead of storing the default
        if not channel.get("city"):
            channel["city"] = fallback_city
        if not channel.get("country"):
            channel["country"] = fallback_country
        markers = channel.setdefault("lastSentDate", {})
        for key, message_type in _LEGACY_MARKER_KEYS.items():
            value = channel.pop(key, None)
            if value:
                markers.setdefault(message_type.value, value)

    raw.setdefault("channels", [])
    return raw


def _validate_channels(entries: Any) -> list[ChannelConfig]:
    """Validate channel entries one at a time, skipping the malformed ones."""
    if not isinstance(entries, list):
        logger.warning("Ignoring malformed channels list", channels=entries)
        return []

    channels = []
    for entry in entries:
        try:
            channels.append(ChannelConfig.model_validate(entry))
        except ValidationError as e:
            logger.warning("Skipping invalid channel entry", entry=entry, error=str(e))
    return channels


class StateStore:
    """File-backed store for :class:`GlobalState`.

    Reads never fail: a missing, unreadable or corrupt document yields defaults.
    Writes never raise: failures are logged and the in-memory result is returned.
    """

    def __init__(
        self,
        path: Path,
        default_city: str = "Algiers",
        default_country: str = "Algeria",
    ) -> None:
        """Initialize the store.

        Args:
            path: Location of the JSON document.
            default_city: Fallback city for a fresh document.
            default_country: Fallback country for a fresh document.

        """
        self._path = path
        self._default_city = default_city
        self._default_country = default_country
        self._ensure_directory()

    @property
    def path(self) -> Path:
        """Location of the JSON document."""
        return self._path

    def _ensure_directory(self) -> None:
        directory = self._path.parent
        if directory.exists():
            return
        try:
            directory.mkdir(parents=True, exist_ok=True)
            logger.info("Created data directory", path=str(directory))
        except OSError as e:
            logger.exception("Failed to create data directory", path=str(directory), error=str(e))

    def defaults(self) -> GlobalState:
        """Return a fresh default state."""
        return GlobalState(default_city=self._default_city, default_country=self._default_country)

    def load(self) -> GlobalState:
        """Load the state, merged over defaults."""
        defaults = self.defaults()
        if not self._path.exists():
            return defaults

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                msg = "State document is not an object"
                raise ValueError(msg)
            raw = migrate_document(raw, self._default_city, self._default_country)
            entries = raw.pop("channels")
            merged = {**defaults.model_dump(by_alias=True, mode="json"), **raw}
            state = GlobalState.model_validate(merged)
        except (OSError, ValueError) as e:
            logger.warning("Failed to load state, using defaults", path=str(self._path), error=str(e))
            return defaults

        state.channels = _validate_channels(entries)
        return state
    def save(self, state: GlobalState) -> None:
        """Write the whole document."""
        try:
            self._path.write_text(
                state.model_dump_json(by_alias=True, indent=2),
                encoding="utf-8",
            )
        except OSError as e:
            logger.exception("Failed to save state", path=str(self._path), error=str(e))

    def update(self, **changes: Any) -> GlobalState:
        """Read-modify-write a set of top-level fields. Last writer wins.

        Args:
            **changes: Field names of :class:`GlobalState` and their new values.

        Returns:
            The updated state.

        """
        state = self.load()
        for name, value in changes.items():
            if name not in GlobalState.model_fields:
                msg = f"Unknown state field: {name}"
                raise AttributeError(msg)
            setattr(state, name, value)
        self.save(state)
        return state

    # Dedup ledger

    def was_sent_today(
        self,
        message_type: MessageType,
        channel_id: str,
        today: date | None = None,
    ) -> bool:
        """Check whether a reminder already went to a channel today."""
        channel = self.load().find_channel(channel_id)
        if channel is None:
            return False
        return channel.last_sent_date.get(message_type) == (today or date.today())

    def mark_sent(
        self,
        message_type: MessageType,
        channel_id: str,
        today: date | None = None,
    ) -> None:
        """Record that a reminder went to a channel today."""
        state = self.load()
        channel = state.find_channel(channel_id)
        if channel is None:
            logger.warning("Cannot mark unknown channel", channel_id=channel_id, message_type=message_type)
            return
        channel.last_sent_date[message_type] = today or date.today()
        self.save(state)

    def was_alert_sent_today(self, alert: GlobalAlert, today: date | None = None) -> bool:
        """Check whether a process-wide alert already went out today."""
        return self.load().last_alert_date(alert) == (today or date.today())

    def mark_alert_sent(self, alert: GlobalAlert, today: date | None = None) -> None:
        """Record that a process-wide alert went out today."""
        state = self.load()
        state.set_last_alert_date(alert, today or date.today())
        self.save(state)

    # Channel configuration

    def find_channel(self, channel_id: str) -> ChannelConfig | None:
        """Return the config for a channel, if any."""
        return self.load().find_channel(channel_id)

    def ensure_channel(self, channel_id: str) -> ChannelConfig:
        """Return the config for a channel, creating it at the default location."""
        state = self.load()
        channel = state.find_channel(channel_id)
        if channel is not None:
            return channel

        channel = ChannelConfig(
            channel_id=channel_id,
            city=state.default_city,
            country=state.default_country,
        )
        state.channels.append(channel)
        self.save(state)
        logger.info("Channel added", channel_id=channel_id, city=channel.city)
        return channel

    def set_active(self, active: bool) -> GlobalState:
        """Flip the global season switch."""
        return self.update(active=active)

    def set_countdown_enabled(self, enabled: bool) -> GlobalState:
        """Enable or disable the evening countdown alert."""
        return self.update(countdown_enabled=enabled)

    def update_city(self, city: str, country: str, channel_id: str | None = None) -> GlobalState:
        """Change a channel's location, or the default location when no channel is given."""
        state = self.load()

        if channel_id is None:
            state.default_city = city
            state.default_country = country
        else:
            channel = state.find_channel(channel_id)
            if channel is None:
                state.channels.append(ChannelConfig(channel_id=channel_id, city=city, country=country))
            else:
                channel.city = city
                channel.country = country
                channel.timezone = None
                channel.cached_prayer_times = None
                channel.cached_prayer_date = None

        self.save(state)
        return state

    def remove_channel(self, channel_id: str) -> bool:
        """Drop a channel's config. Returns whether one existed."""
        state = self.load()
        remaining = [c for c in state.channels if c.channel_id != channel_id]
        if len(remaining) == len(state.channels):
            return False
        state.channels = remaining
        self.save(state)
        return True

    def cache_prayer_times(self, channel_id: str, day: date, prayer_times: PrayerTimes) -> None:
        """Store a channel's prayer times for the given day."""
        state = self.load()
        channel = state.find_channel(channel_id)
        if channel is None:
            return
        channel.cached_prayer_times = prayer_times.as_timings()
        channel.cached_prayer_date = day
        if prayer_times.timezone:
            channel.timezone = prayer_times.timezone
        self.save(state)
