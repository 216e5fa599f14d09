"""Immutable value objects for the music bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class PlaybackOutcome(Enum):
    """How playback of a single song ended."""

    COMPLETED = "completed"
    ERRORED = "errored"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class PlaybackResult:
    """Tagged result of playing one song to completion.

    ``reason`` is only populated for ``ERRORED`` results.
    """

    outcome: PlaybackOutcome
    reason: str | None = None

    @classmethod
    def completed(cls) -> PlaybackResult:
        return cls(PlaybackOutcome.COMPLETED)

    @classmethod
    def skipped(cls) -> PlaybackResult:
        return cls(PlaybackOutcome.SKIPPED)

    @classmethod
    def errored(cls, reason: BaseException | str) -> PlaybackResult:
        return cls(PlaybackOutcome.ERRORED, reason=str(reason))

    @property
    def is_error(self) -> bool:
        return self.outcome is PlaybackOutcome.ERRORED

    def __str__(self) -> str:
        if self.reason:
            return f"{self.outcome.value} ({self.reason})"
        return self.outcome.value


class SessionState(Enum):
    """Lifecycle of a guild playback session."""

    NO_SESSION = "no_session"
    ACTIVE = "active"
