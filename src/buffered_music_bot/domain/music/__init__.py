"""
Music Bounded Context

Songs, the per-guild play queue and the outcome of playing a song.
"""

from buffered_music_bot.domain.music.entities import GuildPlaybackState, Song
from buffered_music_bot.domain.music.value_objects import (
    PlaybackOutcome,
    PlaybackResult,
    SessionState,
)

__all__ = [
    # Entities
    "Song",
    "GuildPlaybackState",
    # Value Objects
    "PlaybackOutcome",
    "PlaybackResult",
    "SessionState",
]
