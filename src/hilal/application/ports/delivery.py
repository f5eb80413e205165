"""Message delivery protocol definition."""

from pathlib import Path
from typing import Protocol


class MessageSender(Protocol):
    """Protocol for chat platform delivery."""

    async def send_message(self, channel_id: str, text: str) -> None:
        """Send a text message to a channel.

        Raises:
            DeliveryError: If the message could not be delivered.

        """
        ...

    async def send_photo(self, channel_id: str, photo: Path, caption: str | None = None) -> None:
        """Send an image file to a channel.

        Raises:
            DeliveryError: If the image could not be delivered.

        """
        ...


class DeliveryError(Exception):
    """Base exception for delivery failures."""

    def __init__(self, message: str, channel_id: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
            channel_id: Channel the delivery was addressed to.

        """
        super().__init__(message)
        self.channel_id = channel_id


class ChannelNotFoundError(DeliveryError):
    """The channel does not exist or the bot cannot see it."""


class PermissionDeniedError(DeliveryError):
    """The bot is not allowed to post in the channel."""


class DeliveryNetworkError(DeliveryError):
    """The chat platform could not be reached."""
