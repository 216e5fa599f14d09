"""Pydantic models for yt-dlp data and the downloader/transcoder pipeline.

These are infrastructure-specific models for parsing external yt-dlp data,
caching search results, and configuring the spawned processes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from buffered_music_bot.domain.shared.types import (
    BYTES_PER_MB,
    ChannelCount,
    NonEmptyStr,
    NonNegativeFloat,
    PositiveFloat,
    PositiveInt,
    SampleRate,
)

if TYPE_CHECKING:
    from buffered_music_bot.config.settings import AudioSettings

DEFAULT_TARGET_BUFFER_BYTES: Final[int] = 5 * BYTES_PER_MB
DEFAULT_MAX_BUFFER_BYTES: Final[int] = 32 * BYTES_PER_MB
DEFAULT_READ_CHUNK_SIZE: Final[int] = 64 * 1024
DEFAULT_RETRIES: Final[int] = 3
DEFAULT_SOCKET_TIMEOUT: Final[int] = 10


# ── Pipeline configuration ─────────────────────────────────────────────


class PipelineConfig(BaseModel):
    """Commands and limits for one downloader → transcoder pipeline.

    ``downloader_args`` / ``transcoder_args`` replace the default argument
    lists when set; the media URL is always appended to the downloader command.
    """

    model_config = ConfigDict(frozen=True)

    downloader_path: NonEmptyStr = "yt-dlp"
    downloader_format: NonEmptyStr = "bestaudio"
    downloader_args: tuple[str, ...] | None = None
    transcoder_path: NonEmptyStr = "ffmpeg"
    transcoder_args: tuple[str, ...] | None = None
    sample_rate: SampleRate = 48_000
    channels: ChannelCount = 2

    target_buffer_bytes: PositiveInt = DEFAULT_TARGET_BUFFER_BYTES
    max_buffer_bytes: PositiveInt = DEFAULT_MAX_BUFFER_BYTES
    buffer_timeout: PositiveFloat = 30.0
    read_chunk_size: PositiveInt = DEFAULT_READ_CHUNK_SIZE
    kill_timeout: PositiveFloat = 2.0
    pcm_read_timeout: PositiveFloat | None = 5.0

    @model_validator(mode="after")
    def _check_buffer_limits(self) -> PipelineConfig:
        if self.max_buffer_bytes < self.target_buffer_bytes:
            raise ValueError("max_buffer_bytes must be >= target_buffer_bytes")
        return self

    @classmethod
    def from_settings(cls, settings: AudioSettings) -> PipelineConfig:
        return cls(
            downloader_path=settings.downloader_path,
            downloader_format=settings.downloader_format,
            transcoder_path=settings.transcoder_path,
            sample_rate=settings.sample_rate,
            channels=settings.channels,
            target_buffer_bytes=settings.prebuffer_bytes,
            max_buffer_bytes=max(DEFAULT_MAX_BUFFER_BYTES, settings.prebuffer_bytes),
            buffer_timeout=settings.prebuffer_timeout_seconds,
            read_chunk_size=settings.read_chunk_size,
            kill_timeout=settings.kill_timeout_seconds,
            pcm_read_timeout=settings.pcm_read_timeout_seconds,
        )

    def with_target(self, target_buffer_bytes: int) -> PipelineConfig:
        """Return a validated copy using a different pre-buffer threshold."""
        data = self.model_dump()
        data["target_buffer_bytes"] = target_buffer_bytes
        data["max_buffer_bytes"] = max(self.max_buffer_bytes, target_buffer_bytes)
        return PipelineConfig.model_validate(data)

    def downloader_command(self, url: str) -> list[str]:
        args = self.downloader_args
        if args is None:
            args = ("-o", "-", "-f", self.downloader_format)
        return [self.downloader_path, *args, url]

    def transcoder_command(self) -> list[str]:
        args = self.transcoder_args
        if args is None:
            args = (
                "-hide_banner",
                "-loglevel", "error",
                "-i", "pipe:0",
                "-f", "s16le",
                "-ar", str(self.sample_rate),
                "-ac", str(self.channels),
                "pipe:1",
            )
        return [self.transcoder_path, *args]


# ── Pydantic models for yt-dlp data ────────────────────────────────────


class YtDlpEntry(BaseModel):
    """Trimmed yt-dlp extraction or search entry.

    Extra fields from yt-dlp are silently ignored, keeping memory usage low.
    Before-validators coerce garbage from external yt-dlp data gracefully.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    webpage_url: NonEmptyStr | None = None
    url: NonEmptyStr | None = None
    original_url: NonEmptyStr | None = None
    title: NonEmptyStr | None = None

    @field_validator("webpage_url", "url", "original_url", "title", mode="before")
    @classmethod
    def _coerce_empty_to_none(cls, v: Any) -> str | None:
        """Convert empty / whitespace-only / non-string values to None."""
        if not isinstance(v, str) or not v.strip():
            return None
        return v.strip()

    @property
    def page_url(self) -> str | None:
        """Best canonical page URL, ignoring non-http values (e.g. bare video IDs)."""
        for candidate in (self.webpage_url, self.original_url, self.url):
            if candidate and candidate.startswith(("http://", "https://")):
                return candidate
        return None


class CacheEntry(BaseModel):
    """Cached resolution result with its creation timestamp."""

    model_config = ConfigDict(frozen=True)

    title: NonEmptyStr
    url: NonEmptyStr
    cached_at: NonNegativeFloat


class YtDlpOpts(BaseModel):
    """Typed yt-dlp configuration options passed to YoutubeDL."""

    model_config = ConfigDict(frozen=True)

    quiet: bool = True
    no_warnings: bool = True
    noprogress: bool = True
    noplaylist: bool = True
    default_search: NonEmptyStr = "ytsearch"
    forceipv4: bool = True
    retries: PositiveInt = DEFAULT_RETRIES
    socket_timeout: PositiveInt = DEFAULT_SOCKET_TIMEOUT
    skip_download: bool = True
    extract_flat: NonEmptyStr | bool = Field(default="in_playlist")
