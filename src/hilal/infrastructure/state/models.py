"""Persisted state document models."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from hilal.domain.enums import GlobalAlert, MessageType


class _Document(BaseModel):
    """Base for document parts stored with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChannelConfig(_Document):
    """Configuration and dedup markers for one chat channel."""

    channel_id: str
    city: str
    country: str
    role_id: str | None = None
    timezone: str | None = None
    last_sent_date: dict[MessageType, date] = Field(default_factory=dict)
    cached_prayer_times: dict[str, str] | None = None
    cached_prayer_date: date | None = None


class GlobalState(_Document):
    """The whole persisted document."""

    active: bool = False
    countdown_enabled: bool = True
    default_city: str = "Algiers"
    default_country: str = "Algeria"
    last_countdown_sent_date: date | None = None
    last_uncertainty_alert_sent_date: date | None = None
    channels: list[ChannelConfig] = Field(default_factory=list)

    def find_channel(self, channel_id: str) -> ChannelConfig | None:
        """Return the first config for a channel, if any."""
        return next((c for c in self.channels if c.channel_id == channel_id), None)

    def last_alert_date(self, alert: GlobalAlert) -> date | None:
        """Return the last day a process-wide alert went out."""
        if alert is GlobalAlert.COUNTDOWN:
            return self.last_countdown_sent_date
        return self.last_uncertainty_alert_sent_date

    def set_last_alert_date(self, alert: GlobalAlert, day: date) -> None:
        """Record the day a process-wide alert went out."""
        if alert is GlobalAlert.COUNTDOWN:
            self.last_countdown_sent_date = day
        else:
            self.last_uncertainty_alert_sent_date = day
