"""Port interface for Discord voice operations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from buffered_music_bot.application.interfaces.audio_stream import PcmReader

AfterPlayback = Callable[[BaseException | None], None]
"""Invoked on the event loop once playback ends, with the player error if any."""


class VoiceAdapter(ABC):
    """Interface for voice channel connection and raw audio delivery."""

    @abstractmethod
    async def connect(self, guild_id: int, channel_id: int) -> bool:
        """Connect to a voice channel, moving if already connected elsewhere."""
        ...

    @abstractmethod
    async def disconnect(self, guild_id: int) -> bool:
        """Disconnect from voice in a guild."""
        ...

    @abstractmethod
    async def play(self, guild_id: int, pcm: PcmReader, *, after: AfterPlayback) -> bool:
        """Start delivering already-decoded PCM audio.

        ``after`` must be called exactly once, on the event loop, when delivery
        ends. Returns False if playback could not be started at all.
        """
        ...

    @abstractmethod
    async def stop(self, guild_id: int) -> bool:
        """Stop current delivery. The pending ``after`` callback still fires."""
        ...

    @abstractmethod
    async def pause(self, guild_id: int) -> bool:
        ...

    @abstractmethod
    async def resume(self, guild_id: int) -> bool:
        ...

    @abstractmethod
    def is_connected(self, guild_id: int) -> bool:
        ...

    @abstractmethod
    def is_playing(self, guild_id: int) -> bool:
        ...

    @abstractmethod
    def is_paused(self, guild_id: int) -> bool:
        ...
