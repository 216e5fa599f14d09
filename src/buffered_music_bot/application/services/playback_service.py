"""Playback Queue Manager - per-guild FIFO queues played through buffered streams."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from ...config.settings import AudioSettings
from ...domain.music.entities import GuildPlaybackState, Song
from ...domain.music.value_objects import PlaybackResult, SessionState
from ...domain.shared.exceptions import (
    PipelineClosedError,
    PipelineStartError,
    PlaybackRuntimeError,
    VoiceJoinError,
)
from ...domain.shared.messages import ErrorMessages, LogTemplates
from .queue_models import EnqueueResult, QueueSnapshot, SongInfo

if TYPE_CHECKING:
    from ..interfaces.audio_stream import AudioStream
    from ..interfaces.voice_adapter import AfterPlayback, VoiceAdapter
    from .session_registry import SessionRegistry

logger = logging.getLogger(__name__)

StreamFactory = Callable[[str, int], "AudioStream"]
"""Builds an unstarted stream for ``(url, target_buffer_bytes)``."""


class PlaybackQueueManager:
    """Owns every guild's queue and the task that plays it.

    Each guild moves through ``NO_SESSION → ACTIVE → NO_SESSION``. While
    active, a single driver task plays the head song to completion, then
    advances; completion, player errors, start failures and skips all take the
    same advance path, so the remaining songs keep their order.
    """

    def __init__(
        self,
        *,
        registry: SessionRegistry,
        voice_adapter: VoiceAdapter,
        stream_factory: StreamFactory,
        settings: AudioSettings | None = None,
    ) -> None:
        self._registry = registry
        self._voice = voice_adapter
        self._stream_factory = stream_factory
        self._settings = settings or AudioSettings()

    # ─────────────────────────────────────────────────────────────────
    # Commands
    # ─────────────────────────────────────────────────────────────────

    async def enqueue(self, guild_id: int, song: Song, channel_id: int) -> EnqueueResult:
        """Append ``song``, creating the session (and joining voice) if needed.

        Raises:
            VoiceJoinError: No session existed and the voice channel could not be
                joined. Nothing is registered and the song's stream is released.
        """
        async with self._registry.lock(guild_id):
            state = self._registry.get(guild_id)
            if state is not None:
                position = state.append(song)
                logger.info(LogTemplates.QUEUE_ENQUEUED, song.title, position, guild_id)
                return EnqueueResult(
                    started_session=False, position=position, song=SongInfo.from_song(song)
                )

            if not await self._voice.connect(guild_id, channel_id):
                await song.release_stream()
                raise VoiceJoinError(guild_id, channel_id)

            state = GuildPlaybackState(guild_id=guild_id, channel_id=channel_id)
            position = state.append(song)
            self._registry.add(state)
            self._start_driver(state)

        logger.info(LogTemplates.QUEUE_ENQUEUED, song.title, position, guild_id)
        return EnqueueResult(started_session=True, position=position, song=SongInfo.from_song(song))

    async def play_head(self, guild_id: int) -> bool:
        """Make sure the guild's queue is being played.

        Returns False (after tearing the session down) when there is nothing to
        play; a running driver makes this a no-op.
        """
        async with self._registry.lock(guild_id):
            state = self._registry.get(guild_id)
            if state is None:
                return False
            if state.is_driving:
                return True
            if state.head is None:
                self._registry.remove(guild_id)
                await self._voice.disconnect(guild_id)
                return False
            self._start_driver(state)
            return True

    async def skip(self, guild_id: int) -> Song | None:
        """Skip the head song. Returns it, or None when nothing is playing."""
        state = self._registry.get(guild_id)
        if state is None or state.head is None:
            return None

        song = state.head
        if not state.resolve_outcome(PlaybackResult.skipped()):
            return None

        logger.info(LogTemplates.PLAYBACK_SKIPPED, song.title, guild_id)
        stream = song.stream
        if stream is not None and not stream.is_ready:
            await stream.close()
        await self._voice.stop(guild_id)
        return song

    async def stop(self, guild_id: int) -> bool:
        """Drop the whole session: kill all streams, clear the queue, leave voice."""
        async with self._registry.lock(guild_id):
            state = self._registry.remove(guild_id)
            if state is None:
                return False
            discarded = len(state.songs)
            try:
                await self._dismantle(state)
            finally:
                await self._voice.disconnect(guild_id)

        logger.info(LogTemplates.PLAYBACK_STOPPED, guild_id, discarded)
        return True

    async def pause(self, guild_id: int) -> bool:
        if guild_id not in self._registry:
            return False
        paused = await self._voice.pause(guild_id)
        if paused:
            logger.info(LogTemplates.PLAYBACK_PAUSED, guild_id)
        return paused

    async def resume(self, guild_id: int) -> bool:
        if guild_id not in self._registry:
            return False
        resumed = await self._voice.resume(guild_id)
        if resumed:
            logger.info(LogTemplates.PLAYBACK_RESUMED, guild_id)
        return resumed

    async def shutdown(self) -> None:
        """Stop every active session."""
        guild_ids = self._registry.guild_ids
        if guild_ids:
            logger.info(LogTemplates.SESSION_SHUTDOWN, len(guild_ids))
        for guild_id in guild_ids:
            await self.stop(guild_id)

    # ─────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────

    def get_queue(self, guild_id: int) -> QueueSnapshot:
        state = self._registry.get(guild_id)
        if state is None:
            return QueueSnapshot()

        head = state.head
        return QueueSnapshot(
            now_playing=SongInfo.from_song(head) if head is not None else None,
            upcoming=[SongInfo.from_song(s) for s in state.upcoming],
            total=len(state.songs),
            is_paused=self._voice.is_paused(guild_id),
        )

    def session_state(self, guild_id: int) -> SessionState:
        return SessionState.ACTIVE if guild_id in self._registry else SessionState.NO_SESSION

    # ─────────────────────────────────────────────────────────────────
    # Driver
    # ─────────────────────────────────────────────────────────────────

    def _start_driver(self, state: GuildPlaybackState) -> None:
        state.driver = asyncio.create_task(
            self._drive(state), name=f"playback-driver-{state.guild_id}"
        )

    async def _drive(self, state: GuildPlaybackState) -> None:
        guild_id = state.guild_id
        try:
            while True:
                song = state.head
                if song is None:
                    if await self._teardown_if_idle(state):
                        return
                    continue

                result = await self._play_one(state, song)
                logger.info(LogTemplates.PLAYBACK_FINISHED, song.title, guild_id, result)
                await self._advance(state, song)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(LogTemplates.PLAYBACK_DRIVER_CRASHED, guild_id)
            await self._teardown(state)

    async def _play_one(self, state: GuildPlaybackState, song: Song) -> PlaybackResult:
        """Buffer and play ``song``; resolves when it completes, fails or is skipped."""
        guild_id = state.guild_id
        outcome = state.ensure_outcome()
        if outcome.done():
            return outcome.result()

        try:
            stream = await self._prepare_stream(state, song)
        except PipelineClosedError:
            return outcome.result() if outcome.done() else PlaybackResult.skipped()
        except PipelineStartError as exc:
            logger.warning(LogTemplates.PLAYBACK_START_FAILED, song.title, guild_id, exc)
            return PlaybackResult.errored(str(exc))

        if outcome.done():
            return outcome.result()

        started = await self._voice.play(
            guild_id, stream.output, after=self._after_callback(guild_id, outcome)
        )
        if not started:
            logger.warning(
                LogTemplates.PLAYBACK_START_FAILED,
                song.title,
                guild_id,
                ErrorMessages.VOICE_PLAY_REFUSED,
            )
            return PlaybackResult.errored(ErrorMessages.VOICE_PLAY_REFUSED)

        logger.info(LogTemplates.PLAYBACK_STARTED, song.title, guild_id)
        return await outcome

    async def _prepare_stream(self, state: GuildPlaybackState, song: Song) -> AudioStream:
        stream = song.stream
        if stream is None or stream.is_closed:
            stream = self._stream_factory(song.url, self._settings.prebuffer_bytes)
            song.stream = stream
        if not stream.is_ready:
            logger.info(LogTemplates.PLAYBACK_BUFFERING, song.title, state.guild_id)
            await stream.start()
        return stream

    @staticmethod
    def _after_callback(
        guild_id: int, outcome: asyncio.Future[PlaybackResult]
    ) -> AfterPlayback:
        # Bound to this song's future so a late callback cannot end the next song.
        def after(error: BaseException | None) -> None:
            if outcome.done():
                return
            if error is None:
                outcome.set_result(PlaybackResult.completed())
                return
            failure = PlaybackRuntimeError(guild_id, error)
            logger.warning(LogTemplates.PLAYBACK_ERROR, guild_id, error)
            outcome.set_result(PlaybackResult.errored(failure.message))

        return after

    async def _advance(self, state: GuildPlaybackState, song: Song) -> None:
        # Song stays at the head until its processes are gone, so stop() can await them.
        await song.release_stream()
        if state.head is song:
            state.advance()

    async def _teardown_if_idle(self, state: GuildPlaybackState) -> bool:
        guild_id = state.guild_id
        async with self._registry.lock(guild_id):
            if state.songs:
                return False
            if self._registry.get(guild_id) is state:
                self._registry.remove(guild_id)
            state.driver = None
            logger.info(LogTemplates.QUEUE_EXHAUSTED, guild_id)
            await self._voice.disconnect(guild_id)
        return True

    async def _teardown(self, state: GuildPlaybackState) -> None:
        guild_id = state.guild_id
        async with self._registry.lock(guild_id):
            if self._registry.get(guild_id) is state:
                self._registry.remove(guild_id)
            try:
                await self._dismantle(state)
            finally:
                await self._voice.disconnect(guild_id)

    async def _dismantle(self, state: GuildPlaybackState) -> None:
        """Cancel the driver and close every song's stream."""
        driver, state.driver = state.driver, None
        if driver is asyncio.current_task():
            driver = None
        if driver is not None and not driver.done():
            driver.cancel()

        songs = list(state.songs)
        state.songs.clear()
        if state.outcome is not None and not state.outcome.done():
            state.outcome.set_result(PlaybackResult.skipped())
        state.outcome = None

        await self._voice.stop(state.guild_id)
        await asyncio.gather(*(song.release_stream() for song in songs))
        if driver is not None:
            await asyncio.gather(driver, return_exceptions=True)
