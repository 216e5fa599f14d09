"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages
from ..domain.shared.types import BYTES_PER_MB, ChannelCount, DiscordSnowflake, SampleRate


class DiscordSettings(BaseModel):
    """Discord bot configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    application_id: DiscordSnowflake | None = Field(
        default=None, validation_alias=AliasChoices("application_id", "client_id", "app_id")
    )
    guild_id: DiscordSnowflake | None = Field(
        default=None, validation_alias=AliasChoices("guild_id", "guild")
    )
    sync_on_startup: bool = True

    def missing_required(self) -> list[str]:
        """Names of required settings that are absent."""
        missing: list[str] = []
        if not self.token.get_secret_value():
            missing.append("DISCORD__TOKEN")
        if self.application_id is None:
            missing.append("DISCORD__APPLICATION_ID")
        if self.guild_id is None:
            missing.append("DISCORD__GUILD_ID")
        return missing


class AudioSettings(BaseModel):
    """Downloader, transcoder and pre-buffer configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    downloader_path: str = Field(
        default="yt-dlp", min_length=1, validation_alias=AliasChoices("downloader_path", "ytdlp")
    )
    downloader_format: str = Field(default="bestaudio", min_length=1)
    transcoder_path: str = Field(
        default="ffmpeg", min_length=1, validation_alias=AliasChoices("transcoder_path", "ffmpeg")
    )
    sample_rate: SampleRate = 48_000
    channels: ChannelCount = 2
    prebuffer_bytes: int = Field(
        default=5 * BYTES_PER_MB,
        gt=0,
        validation_alias=AliasChoices("prebuffer_bytes", "buffer_bytes"),
    )
    prebuffer_timeout_seconds: float = Field(default=30.0, gt=0.0, le=600.0)
    read_chunk_size: int = Field(default=64 * 1024, ge=1024, le=4 * BYTES_PER_MB)
    kill_timeout_seconds: float = Field(default=2.0, gt=0.0, le=30.0)
    pcm_read_timeout_seconds: float = Field(default=5.0, gt=0.0, le=60.0)
    search_cache_ttl_seconds: int = Field(default=3600, ge=0)


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, LOG_LEVEL (top-level)
    - DISCORD__TOKEN, DISCORD__APPLICATION_ID, DISCORD__GUILD_ID (nested with ``__``)
    - AUDIO__PREBUFFER_BYTES, AUDIO__TRANSCODER_PATH, etc.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    log_level: str = "INFO"

    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels))
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
