"""In-memory registry of active guild playback sessions."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator

from ...domain.music.entities import GuildPlaybackState
from ...domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Maps guild IDs to their ``GuildPlaybackState``.

    A guild is present iff it has an active or queued session. ``lock()``
    hands out one ``asyncio.Lock`` per guild; callers hold it while creating
    or tearing down that guild's session.
    """

    def __init__(self) -> None:
        self._sessions: dict[int, GuildPlaybackState] = {}
        self._locks: dict[int, asyncio.Lock] = {}

    def get(self, guild_id: int) -> GuildPlaybackState | None:
        return self._sessions.get(guild_id)

    def add(self, state: GuildPlaybackState) -> None:
        if state.guild_id in self._sessions:
            raise ValueError(ErrorMessages.SESSION_ALREADY_EXISTS.format(guild_id=state.guild_id))
        self._sessions[state.guild_id] = state
        logger.debug(LogTemplates.SESSION_CREATED, state.guild_id, state.channel_id)

    def remove(self, guild_id: int) -> GuildPlaybackState | None:
        state = self._sessions.pop(guild_id, None)
        if state is not None:
            logger.debug(LogTemplates.SESSION_REMOVED, guild_id)
        return state

    def lock(self, guild_id: int) -> asyncio.Lock:
        lock = self._locks.get(guild_id)
        if lock is None:
            lock = self._locks[guild_id] = asyncio.Lock()
        return lock

    @property
    def guild_ids(self) -> list[int]:
        return list(self._sessions)

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[GuildPlaybackState]:
        return iter(list(self._sessions.values()))
