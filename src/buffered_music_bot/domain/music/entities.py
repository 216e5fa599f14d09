"""Core domain entities for the music bounded context."""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from buffered_music_bot.domain.music.value_objects import PlaybackResult
from buffered_music_bot.domain.shared.messages import ErrorMessages

if TYPE_CHECKING:
    from buffered_music_bot.application.interfaces.audio_stream import AudioStream


@dataclass(eq=False)
class Song:
    """A resolved play request waiting in (or at the head of) a guild queue.

    ``stream`` is attached lazily when the song becomes the head of the queue,
    or ahead of time by a caller that pre-fetched it.
    """

    title: str
    url: str
    requested_by_id: int | None = None
    requested_by_name: str | None = None
    stream: AudioStream | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValueError(ErrorMessages.EMPTY_SONG_TITLE)
        if not self.url or not self.url.strip():
            raise ValueError(ErrorMessages.EMPTY_SONG_URL)

    @property
    def has_live_stream(self) -> bool:
        return self.stream is not None and not self.stream.is_closed

    async def release_stream(self) -> None:
        """Close the attached stream (terminating its processes), then detach it.

        The stream stays attached while closing so a concurrent caller awaits
        the same shutdown instead of returning early.
        """
        stream = self.stream
        if stream is None:
            return
        await stream.close()
        if self.stream is stream:
            self.stream = None


@dataclass(eq=False)
class GuildPlaybackState:
    """Runtime playback state for one guild's voice session.

    The head of ``songs`` is the song currently playing (or buffering).
    ``driver`` is the task that plays the queue; ``outcome`` is resolved when
    the head song finishes, errors or gets skipped.
    """

    guild_id: int
    channel_id: int
    songs: deque[Song] = field(default_factory=deque)
    driver: asyncio.Task[None] | None = field(default=None, repr=False)
    outcome: asyncio.Future[PlaybackResult] | None = field(default=None, repr=False)

    @property
    def head(self) -> Song | None:
        return self.songs[0] if self.songs else None

    @property
    def upcoming(self) -> list[Song]:
        return list(self.songs)[1:]

    @property
    def is_driving(self) -> bool:
        return self.driver is not None and not self.driver.done()

    def append(self, song: Song) -> int:
        """Add a song to the tail and return its zero-based position."""
        self.songs.append(song)
        return len(self.songs) - 1

    def pop_head(self) -> Song | None:
        return self.songs.popleft() if self.songs else None

    def ensure_outcome(self) -> asyncio.Future[PlaybackResult]:
        """Return the head song's outcome future, creating it on first use."""
        if self.outcome is None:
            self.outcome = asyncio.get_running_loop().create_future()
        return self.outcome

    def resolve_outcome(self, result: PlaybackResult) -> bool:
        """Resolve the head song's outcome once; later calls are ignored."""
        if self.head is None:
            return False
        outcome = self.ensure_outcome()
        if outcome.done():
            return False
        outcome.set_result(result)
        return True

    def advance(self) -> Song | None:
        """Pop the head and reset the outcome so it belongs to the next song."""
        song = self.pop_head()
        self.outcome = None
        return song
