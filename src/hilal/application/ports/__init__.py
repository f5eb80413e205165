"""Application ports - protocols and interfaces."""

from .calendar import (
    FetchError,
    InvalidLocationError,
    LunarCalendar,
    NetworkError,
    ParseError,
    PrayerTimeSource,
)
from .delivery import (
    ChannelNotFoundError,
    DeliveryError,
    DeliveryNetworkError,
    MessageSender,
    PermissionDeniedError,
)

__all__ = [
    "ChannelNotFoundError",
    "DeliveryError",
    "DeliveryNetworkError",
    "FetchError",
    "InvalidLocationError",
    "LunarCalendar",
    "MessageSender",
    "NetworkError",
    "ParseError",
    "PermissionDeniedError",
    "PrayerTimeSource",
]
