"""Configuration management using Pydantic Settings."""

from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import cast

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_season_dates() -> dict[int, date]:
    # Approximate astronomical estimates; the real start depends on moon sighting
    return {
        2025: date(2025, 3, 1),
        2026: date(2026, 2, 18),
        2027: date(2027, 2, 8),
        2028: date(2028, 1, 28),
        2029: date(2029, 1, 16),
        2030: date(2030, 1, 6),
    }


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="HILAL_",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Data directory for the state document
    data_dir: Path = Field(
        default=Path("./data"),
        description="Directory for persistent data",
    )
    state_file: Path | None = Field(
        default=None,
        description="Path of the JSON state document. If not set, uses state.json in data_dir.",
    )

    @model_validator(mode="after")
    def set_default_state_file(self) -> "Settings":
        """Set default state file path if not provided."""
        if self.state_file is None:
            object.__setattr__(self, "state_file", self.data_dir / "state.json")
        return self

    # Telegram
    telegram_bot_token: SecretStr | None = Field(
        default=None,
        description="Telegram bot token from @BotFather",
    )
    default_channel_id: str | None = Field(
        default=None,
        description="Fallback channel for the evening alert and for activation without a channel",
    )

    # Location
    default_city: str = Field(default="Algiers", description="Fallback city")
    default_country: str = Field(default="Algeria", description="Fallback country")
    home_city: str = Field(
        default="algiers",
        description="Lowercase city substring identifying the channel that receives the evening alert",
    )
    home_country: str = Field(
        default="algeria",
        description="Lowercase country substring identifying the channel that receives the evening alert",
    )
    timezone: str = Field(
        default="Africa/Algiers",
        description="Process timezone for daily ticks and for channels without a known timezone",
    )

    # Aladhan API
    aladhan_api_url: str = Field(default="https://api.aladhan.com/v1")
    http_timeout: float = Field(default=30.0, description="HTTP timeout in seconds")

    # Calendar reconciliation
    expected_season_dates: dict[int, date] = Field(
        default_factory=_default_season_dates,
        description="Approximate season start date per Gregorian year",
    )
    target_lunar_month: int = Field(default=9, ge=1, le=12)
    eve_offset_days: int = Field(
        default=1,
        description="Days before the expected start that count as the eve of uncertainty",
    )
    arbitration_tolerance_days: int = Field(
        default=5,
        description="Maximum gap between live and fixed estimates for the live one to be trusted",
    )

    # Reminder offsets
    suhoor_minutes_before_fajr: int = Field(default=30)
    early_suhoor_minutes_before_fajr: int = Field(default=60)
    taraweeh_minutes_before_isha: int = Field(default=15)

    # Daily ticks (HH:MM, in `timezone`)
    evening_alert_time: str = Field(default="18:00", description="Time for the countdown alert")
    daily_schedule_time: str = Field(default="04:00", description="Time for the daily schedule broadcast")

    # Iftar image
    iftar_image_dir: Path | None = Field(
        default=None,
        description="Folder of images sent after iftar. Disabled when not set.",
    )
    iftar_image_delay_minutes: int = Field(default=20)
    iftar_image_captions: list[str] = Field(default_factory=lambda: ["🫃"])

    # Message language (ar or en)
    language: str = Field(default="ar")

    # API settings
    api_host: str = Field(default="127.0.0.1", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=False, description="Use JSON logging format")

    @property
    def state_path(self) -> Path:
        """Resolved path of the state document."""
        # state_file is always set after model_validator runs
        return cast("Path", self.state_file)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
