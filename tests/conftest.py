import asyncio
import sys
from collections.abc import Callable

import pytest

from buffered_music_bot.application.interfaces.audio_stream import AudioStream
from buffered_music_bot.application.interfaces.voice_adapter import AfterPlayback, VoiceAdapter
from buffered_music_bot.domain.shared.exceptions import PipelineClosedError, PipelineStartError

# ============================================================================
# Fakes
# ============================================================================


class FakePcm:
    """Byte reader that is immediately at end of stream."""

    at_eof = True

    def read(self, size: int) -> bytes:
        return b""


class FakeStream(AudioStream):
    """In-memory stand-in for a downloader/transcoder pipeline.

    ``fail`` makes ``start()`` raise after closing itself; ``hold`` keeps
    ``start()`` waiting until ``release()`` or ``close()`` is called.
    """

    def __init__(
        self,
        url: str,
        target_buffer_bytes: int = 1,
        *,
        fail: PipelineStartError | None = None,
        hold: bool = False,
    ) -> None:
        self.url = url
        self.target_buffer_bytes = target_buffer_bytes
        self.fail = fail
        self.start_calls = 0
        self.close_calls = 0
        self._ready = False
        self._closed = False
        self._gate = asyncio.Event()
        self._closed_event = asyncio.Event()
        if not hold:
            self._gate.set()

    @property
    def output(self) -> FakePcm:
        return FakePcm()

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def is_closed(self) -> bool:
        return self._closed

    def release(self) -> None:
        self._gate.set()

    async def start(self) -> None:
        self.start_calls += 1
        if self._closed:
            raise PipelineClosedError()

        gate = asyncio.ensure_future(self._gate.wait())
        closed = asyncio.ensure_future(self._closed_event.wait())
        try:
            await asyncio.wait([gate, closed], return_when=asyncio.FIRST_COMPLETED)
        finally:
            gate.cancel()
            closed.cancel()

        if self._closed:
            raise PipelineClosedError()
        if self.fail is not None:
            await self.close()
            raise self.fail
        self._ready = True

    async def close(self) -> None:
        self.close_calls += 1
        self._closed = True
        self._closed_event.set()


class FakeVoiceAdapter(VoiceAdapter):
    """Records voice calls; ``finish()`` plays the role of the audio thread ending a song."""

    def __init__(self) -> None:
        self.connect_result = True
        self.play_result = True
        self.connected: set[int] = set()
        self.paused: set[int] = set()
        self.connect_calls: list[tuple[int, int]] = []
        self.disconnect_calls: list[int] = []
        self.plays: list[tuple[int, object]] = []
        self.stop_calls: list[int] = []
        self._after: dict[int, AfterPlayback] = {}

    async def connect(self, guild_id: int, channel_id: int) -> bool:
        self.connect_calls.append((guild_id, channel_id))
        if self.connect_result:
            self.connected.add(guild_id)
        return self.connect_result

    async def disconnect(self, guild_id: int) -> bool:
        self.disconnect_calls.append(guild_id)
        self.connected.discard(guild_id)
        return True

    async def play(self, guild_id: int, pcm, *, after: AfterPlayback) -> bool:
        if not self.play_result:
            return False
        self._end(guild_id, None)
        self.plays.append((guild_id, pcm))
        self._after[guild_id] = after
        return True

    def finish(self, guild_id: int, error: BaseException | None = None) -> None:
        after = self._after.pop(guild_id)
        after(error)

    def _end(self, guild_id: int, error: BaseException | None) -> bool:
        after = self._after.pop(guild_id, None)
        if after is None:
            return False
        asyncio.get_running_loop().call_soon(after, error)
        return True

    async def stop(self, guild_id: int) -> bool:
        self.stop_calls.append(guild_id)
        self.paused.discard(guild_id)
        return self._end(guild_id, None)

    async def pause(self, guild_id: int) -> bool:
        if guild_id not in self._after:
            return False
        self.paused.add(guild_id)
        return True

    async def resume(self, guild_id: int) -> bool:
        if guild_id not in self.paused:
            return False
        self.paused.discard(guild_id)
        return True

    def is_connected(self, guild_id: int) -> bool:
        return guild_id in self.connected

    def is_playing(self, guild_id: int) -> bool:
        return guild_id in self._after and guild_id not in self.paused

    def is_paused(self, guild_id: int) -> bool:
        return guild_id in self.paused


class StreamFactorySpy:
    """Stream factory that hands out ``FakeStream`` objects and remembers them."""

    def __init__(self) -> None:
        self.created: list[FakeStream] = []
        self.failing: dict[str, PipelineStartError] = {}
        self.holding: set[str] = set()

    def __call__(self, url: str, target_buffer_bytes: int) -> FakeStream:
        stream = FakeStream(
            url,
            target_buffer_bytes,
            fail=self.failing.get(url),
            hold=url in self.holding,
        )
        self.created.append(stream)
        return stream

    @property
    def urls(self) -> list[str]:
        return [s.url for s in self.created]


# ============================================================================
# Playback Fixtures
# ============================================================================


@pytest.fixture
def fake_voice():
    """Create a recording voice adapter."""
    return FakeVoiceAdapter()


@pytest.fixture
def stream_factory():
    """Create a stream factory producing fake pipelines."""
    return StreamFactorySpy()


@pytest.fixture
def registry():
    from buffered_music_bot.application.services.session_registry import SessionRegistry

    return SessionRegistry()


@pytest.fixture
def manager(registry, fake_voice, stream_factory):
    """Create a queue manager wired to fakes."""
    from buffered_music_bot.application.services.playback_service import PlaybackQueueManager
    from buffered_music_bot.config.settings import AudioSettings

    return PlaybackQueueManager(
        registry=registry,
        voice_adapter=fake_voice,
        stream_factory=stream_factory,
        settings=AudioSettings(prebuffer_bytes=4096),
    )


@pytest.fixture
def make_song():
    """Factory for songs whose URL is derived from the title."""
    from buffered_music_bot.domain.music.entities import Song

    def _make(title: str, **kwargs) -> Song:
        return Song(title=title, url=f"https://example.com/{title}", **kwargs)

    return _make


@pytest.fixture
def wait_until():
    """Poll a predicate on the event loop until it holds."""

    async def _wait(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        async with asyncio.timeout(timeout):
            while not predicate():
                await asyncio.sleep(0.01)

    return _wait


# ============================================================================
# Pipeline Fixtures
# ============================================================================


CAT_SCRIPT = "import shutil, sys; shutil.copyfileobj(sys.stdin.buffer, sys.stdout.buffer)"


@pytest.fixture
def python_pipeline_config():
    """Build a PipelineConfig whose downloader and transcoder are Python one-liners.

    The transcoder copies stdin to stdout; the downloader runs ``script`` with
    the media URL as ``sys.argv[1]``.
    """
    from buffered_music_bot.infrastructure.audio.models import PipelineConfig

    def _make(script: str, **overrides) -> PipelineConfig:
        values = {
            "downloader_path": sys.executable,
            "downloader_args": ("-c", script),
            "transcoder_path": sys.executable,
            "transcoder_args": ("-c", CAT_SCRIPT),
            "target_buffer_bytes": 64 * 1024,
            "max_buffer_bytes": 1024 * 1024,
            "buffer_timeout": 10.0,
            "read_chunk_size": 16 * 1024,
            "kill_timeout": 5.0,
            "pcm_read_timeout": 2.0,
        }
        values.update(overrides)
        return PipelineConfig(**values)

    return _make


@pytest.fixture
def make_stream():
    """Factory for standalone fake pipelines."""
    return FakeStream
