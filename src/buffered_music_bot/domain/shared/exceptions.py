"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ResolutionError(DomainError):
    """Raised when a query cannot be turned into a playable media reference."""

    def __init__(self, query: str, message: str | None = None) -> None:
        msg = message or f"Could not resolve '{query}'"
        super().__init__(msg, code="RESOLUTION_ERROR")
        self.query = query


class NoResultsError(ResolutionError):
    """Raised when a search produced no matches."""

    def __init__(self, query: str, message: str | None = None) -> None:
        super().__init__(query, message or f"No results found for '{query}'")
        self.code = "NO_RESULTS"


class PipelineStartError(DomainError):
    """Raised when the downloader/transcoder pair fails before playback can begin.

    ``process`` names the failing side, either ``"downloader"`` or ``"transcoder"``.
    """

    def __init__(self, process: str, message: str | None = None) -> None:
        msg = message or f"{process} failed to start"
        super().__init__(msg, code="PIPELINE_START_ERROR")
        self.process = process


class PipelineTimeoutError(PipelineStartError):
    """Raised when the pre-buffer threshold is not reached in time."""

    def __init__(self, process: str, timeout: float, buffered: int) -> None:
        super().__init__(
            process,
            f"Buffered {buffered} bytes from {process} before timing out after {timeout:.1f}s",
        )
        self.code = "PIPELINE_TIMEOUT"
        self.timeout = timeout
        self.buffered = buffered


class PipelineClosedError(PipelineStartError):
    """Raised when a pipeline is closed while it is still buffering."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__("pipeline", message or "Pipeline was closed while buffering")
        self.code = "PIPELINE_CLOSED"


class VoiceJoinError(DomainError):
    """Raised when the bot cannot join the requested voice channel."""

    def __init__(self, guild_id: int, channel_id: int, message: str | None = None) -> None:
        msg = message or f"Could not join voice channel {channel_id} in guild {guild_id}"
        super().__init__(msg, code="VOICE_JOIN_ERROR")
        self.guild_id = guild_id
        self.channel_id = channel_id


class PlaybackRuntimeError(DomainError):
    """Raised when the audio player reports an error after playback started."""

    def __init__(self, guild_id: int, cause: BaseException | str) -> None:
        super().__init__(f"Playback error in guild {guild_id}: {cause}", code="PLAYBACK_ERROR")
        self.guild_id = guild_id
        self.cause = cause


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state
