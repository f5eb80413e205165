"""Persistent state document."""

from .models import ChannelConfig, GlobalState
from .store import StateStore, migrate_document

__all__ = [
    "ChannelConfig",
    "GlobalState",
    "StateStore",
    "migrate_document",
]
