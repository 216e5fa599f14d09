"""DTOs for the playback queue manager."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from ...domain.music.entities import Song
from ...domain.shared.types import NonEmptyStr, NonNegativeInt


class SongInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: NonEmptyStr
    url: NonEmptyStr
    requested_by_name: str | None = None

    @classmethod
    def from_song(cls, song: Song) -> SongInfo:
        return cls(title=song.title, url=song.url, requested_by_name=song.requested_by_name)


class EnqueueResult(BaseModel):
    """Outcome of ``enqueue``: whether a new session started and where the song landed."""

    started_session: bool
    position: NonNegativeInt
    song: SongInfo


class QueueSnapshot(BaseModel):

    now_playing: SongInfo | None = None
    upcoming: list[SongInfo] = []
    total: NonNegativeInt = 0
    is_paused: bool = False

    @property
    def is_empty(self) -> bool:
        return self.total == 0
