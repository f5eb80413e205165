"""Telegram bot for reminder delivery and commands."""

from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any

import structlog
from telegram import Update
from telegram.error import BadRequest, Forbidden, NetworkError, TelegramError
from telegram.ext import Application, CommandHandler, ContextTypes

from hilal.application.ports.delivery import (
    ChannelNotFoundError,
    DeliveryError,
    DeliveryNetworkError,
    PermissionDeniedError,
)

logger = structlog.get_logger()

# Type alias for the status callback
StatusFunc = Callable[[], Coroutine[Any, Any, str]]

# Type alias for Application with all type parameters (BT, CCT, UD, CD, BD, JQ)
ApplicationType = Application[Any, Any, Any, Any, Any, Any]


def _delivery_error(error: TelegramError, channel_id: str) -> DeliveryError:
    """Map a Telegram error onto the delivery error taxonomy."""
    if isinstance(error, Forbidden):
        return PermissionDeniedError(str(error), channel_id=channel_id)
    if isinstance(error, BadRequest) and "not found" in error.message.lower():
        return ChannelNotFoundError(str(error), channel_id=channel_id)
    if isinstance(error, NetworkError) and not isinstance(error, BadRequest):
        return DeliveryNetworkError(str(error), channel_id=channel_id)
    return DeliveryError(str(error), channel_id=channel_id)


class ReminderBot:
    """Telegram bot sending reminders to any number of chats."""

    def __init__(self, token: str) -> None:
        """Initialize the bot.

        Args:
            token: Telegram bot token from @BotFather

        """
        self._token = token
        self._app: ApplicationType | None = None
        self._status_func: StatusFunc | None = None

    def set_status_func(self, func: StatusFunc) -> None:
        """Set the function to get bot status.

        Args:
            func: Async function that returns status string

        """
        self._status_func = func

    async def start(self) -> None:
        """Start the bot."""
        if self._app is not None:
            logger.warning("Bot already started")
            return

        self._app = Application.builder().token(self._token).build()

        self._app.add_handler(CommandHandler("start", self._handle_start))
        self._app.add_handler(CommandHandler("status", self._handle_status))
        self._app.add_handler(CommandHandler("help", self._handle_help))

        await self._app.initialize()
        await self._app.start()
        if self._app.updater is not None:
            await self._app.updater.start_polling()

        logger.info("Telegram bot started")

    async def stop(self) -> None:
        """Stop the bot."""
        if self._app is None:
            return

        if self._app.updater is not None:
            await self._app.updater.stop()
        await self._app.stop()
        await self._app.shutdown()
        self._app = None

        logger.info("Telegram bot stopped")

    async def send_message(self, channel_id: str, text: str) -> None:
        """Send an HTML message to a chat.

        Args:
            channel_id: Telegram chat id or @channel username.
            text: Message text

        Raises:
            DeliveryError: If the bot is not started or Telegram rejects the message.

        """
        if self._app is None:
            msg = "Bot not started"
            raise DeliveryError(msg, channel_id=channel_id)

        try:
            await self._app.bot.send_message(chat_id=channel_id, text=text, parse_mode="HTML")
        except TelegramError as e:
            raise _delivery_error(e, channel_id) from e

    async def send_photo(self, channel_id: str, photo: Path, caption: str | None = None) -> None:
        """Send an image file to a chat.

        Raises:
            DeliveryError: If the bot is not started or Telegram rejects the image.

        """
        if self._app is None:
            msg = "Bot not started"
            raise DeliveryError(msg, channel_id=channel_id)

        try:
            with photo.open("rb") as fh:
                await self._app.bot.send_photo(chat_id=channel_id, photo=fh, caption=caption)
        except OSError as e:
            msg = f"Cannot read image {photo}: {e}"
            raise DeliveryError(msg, channel_id=channel_id) from e
        except TelegramError as e:
            raise _delivery_error(e, channel_id) from e

    async def _handle_start(
        self,
        update: Update,
        context: ContextTypes.DEFAULT_TYPE,
    ) -> None:
        """Handle /start command."""
        if update.effective_chat is None:
            return

        chat_id = update.effective_chat.id
        await context.bot.send_message(
            chat_id=chat_id,
            text=(
                "🌙 <b>رمضان كريم!</b>\n\n"
                "I send iftar, suhoor and taraweeh reminders and the Ramadan countdown.\n\n"
                f"This chat ID is: <code>{chat_id}</code>\n\n"
                "Use /help to see available commands."
            ),
            parse_mode="HTML",
        )
        logger.info("Start command received", chat_id=chat_id)

    async def _handle_status(
        self,
        update: Update,
        context: ContextTypes.DEFAULT_TYPE,
    ) -> None:
        """Handle /status command - show season status."""
        if update.effective_chat is None:
            return

        if self._status_func is None:
            status_text = "📊 <b>Status</b>\n\n✅ Bot is running"
        else:
            try:
                status_text = await self._status_func()
            except Exception as e:
                logger.exception("Failed to build status", error=str(e))
                status_text = f"❌ Failed to get status: {e}"

        await context.bot.send_message(
            chat_id=update.effective_chat.id,
            text=status_text,
            parse_mode="HTML",
        )

    async def _handle_help(
        self,
        update: Update,
        context: ContextTypes.DEFAULT_TYPE,
    ) -> None:
        """Handle /help command."""
        if update.effective_chat is None:
            return

        help_text = (
            "📖 <b>Available Commands</b>\n\n"
            "/status - Show season status and scheduled reminders\n"
            "/help - Show this help message"
        )

        await context.bot.send_message(
            chat_id=update.effective_chat.id,
            text=help_text,
            parse_mode="HTML",
        )

    @property
    def is_running(self) -> bool:
        """Check if bot is running."""
        return self._app is not None
