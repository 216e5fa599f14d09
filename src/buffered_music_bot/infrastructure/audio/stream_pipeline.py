"""
Buffered Stream Pipeline

Runs a downloader (yt-dlp) piped into a transcoder (ffmpeg) and collects the
transcoder's raw PCM output in a pass-through buffer. ``start()`` returns only
once a pre-buffer threshold has been reached, so playback begins with enough
audio on hand to ride out network hiccups.
"""

from __future__ import annotations

import asyncio
import logging
from asyncio.subprocess import DEVNULL, PIPE, Process
from collections.abc import Coroutine
from typing import Any

from buffered_music_bot.application.interfaces.audio_stream import AudioStream
from buffered_music_bot.domain.shared.exceptions import (
    InvalidOperationError,
    PipelineClosedError,
    PipelineStartError,
    PipelineTimeoutError,
)
from buffered_music_bot.domain.shared.messages import ErrorMessages, LogTemplates

from .models import PipelineConfig
from .pcm_buffer import PcmBuffer

logger = logging.getLogger(__name__)

STDERR_CHUNK_SIZE = 4096


class StreamPipeline(AudioStream):
    """One downloader → transcoder process pair feeding a ``PcmBuffer``.

    Lifecycle: ``start()`` spawns both processes and waits until
    ``target_buffer_bytes`` of PCM have been produced (or the transcoder ended
    with some output). ``close()`` kills whatever is still running; it is
    idempotent and safe to call while ``start()`` is waiting, in which case
    ``start()`` raises ``PipelineClosedError``.
    """

    def __init__(self, url: str, config: PipelineConfig | None = None) -> None:
        if not url or not url.strip():
            raise ValueError(ErrorMessages.EMPTY_STREAM_URL)

        self.url = url
        self._config = config or PipelineConfig()
        self._buffer = PcmBuffer(read_timeout=self._config.pcm_read_timeout)

        self.downloader: Process | None = None
        self.transcoder: Process | None = None

        self._tasks: list[asyncio.Task[Any]] = []
        self._ready = asyncio.Event()
        self._closed = asyncio.Event()
        self._space = asyncio.Event()
        self._failure: PipelineStartError | None = None
        self._started = False
        self._shutdown_task: asyncio.Future[None] | None = None
        self._bytes_downloaded = 0

    # ─────────────────────────────────────────────────────────────────
    # AudioStream interface
    # ─────────────────────────────────────────────────────────────────

    @property
    def output(self) -> PcmBuffer:
        return self._buffer

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set() and self._failure is None

    @property
    def is_closed(self) -> bool:
        return self._closed.is_set()

    @property
    def bytes_buffered(self) -> int:
        """PCM bytes produced by the transcoder so far."""
        return self._buffer.bytes_written

    @property
    def bytes_downloaded(self) -> int:
        """Bytes forwarded from the downloader into the transcoder so far."""
        return self._bytes_downloaded

    @property
    def config(self) -> PipelineConfig:
        return self._config

    async def start(self) -> None:
        """Spawn both processes and wait for the pre-buffer threshold.

        Raises:
            PipelineStartError: A process could not be spawned or exited early.
            PipelineTimeoutError: The threshold was not reached in time.
            PipelineClosedError: ``close()`` was called while buffering.
        """
        if self._started:
            raise InvalidOperationError(
                "start", "started", ErrorMessages.PIPELINE_ALREADY_STARTED
            )
        self._started = True
        if self.is_closed:
            raise PipelineClosedError()

        try:
            await self._spawn()
            await self._wait_until_buffered()
        except BaseException as exc:
            if isinstance(exc, PipelineStartError) and not isinstance(exc, PipelineClosedError):
                logger.warning(LogTemplates.PIPELINE_FAILED, self.url, exc)
            await self.close()
            raise

        logger.info(LogTemplates.PIPELINE_BUFFERED, self.bytes_buffered, self.url)

    async def close(self) -> None:
        """Kill both processes and end the output stream.

        Concurrent callers share a single shutdown, which is shielded from
        cancellation of any one caller.
        """
        self._closed.set()
        if self._shutdown_task is None:
            self._shutdown_task = asyncio.ensure_future(self._shutdown())
        await asyncio.shield(self._shutdown_task)

    async def _shutdown(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        await self._kill("downloader", self.downloader)
        await self._kill("transcoder", self.transcoder)
        self._buffer.close()
        logger.debug(LogTemplates.PIPELINE_CLOSED, self.url)

    # ─────────────────────────────────────────────────────────────────
    # Process management
    # ─────────────────────────────────────────────────────────────────

    async def _spawn(self) -> None:
        cfg = self._config
        try:
            self.downloader = await asyncio.create_subprocess_exec(
                *cfg.downloader_command(self.url), stdin=DEVNULL, stdout=PIPE, stderr=PIPE
            )
        except OSError as exc:
            raise PipelineStartError(
                "downloader",
                ErrorMessages.PROCESS_SPAWN_FAILED.format(process="downloader", error=exc),
            ) from exc

        try:
            self.transcoder = await asyncio.create_subprocess_exec(
                *cfg.transcoder_command(), stdin=PIPE, stdout=PIPE, stderr=PIPE
            )
        except OSError as exc:
            raise PipelineStartError(
                "transcoder",
                ErrorMessages.PROCESS_SPAWN_FAILED.format(process="transcoder", error=exc),
            ) from exc

        logger.debug(
            LogTemplates.PIPELINE_SPAWNED, self.downloader.pid, self.transcoder.pid, self.url
        )

        loop = asyncio.get_running_loop()
        self._buffer.set_drain_listener(
            cfg.max_buffer_bytes, lambda: _call_threadsafe(loop, self._space.set)
        )

        self._track("pump", self._pump())
        self._track("reader", self._read_output())
        self._track("downloader-stderr", self._log_stderr("downloader", self.downloader))
        self._track("transcoder-stderr", self._log_stderr("transcoder", self.transcoder))

    def _track(self, name: str, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro, name=f"pipeline-{name}")
        task.add_done_callback(lambda t: self._on_task_done(name, t))
        self._tasks.append(task)

    def _on_task_done(self, name: str, task: asyncio.Task[Any]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        logger.error(LogTemplates.PIPELINE_TASK_CRASHED, name, self.url, exc_info=exc)
        if name == "reader":
            # Nothing will write again; let the audio thread reach end of stream.
            self._buffer.close()
        self._fail(
            PipelineStartError(
                "transcoder" if name == "reader" else "downloader",
                ErrorMessages.PIPELINE_TASK_CRASHED.format(task=name, error=exc),
            )
        )

    async def _kill(self, name: str, proc: Process | None) -> None:
        if proc is None:
            return
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
        try:
            async with asyncio.timeout(self._config.kill_timeout):
                # Process.wait() also waits for the pipes to reach EOF.
                for stream in (proc.stdout, proc.stderr):
                    if stream is not None:
                        await stream.read()
                await proc.wait()
        except TimeoutError:
            logger.warning(
                LogTemplates.PIPELINE_KILL_TIMEOUT, name, proc.pid, self._config.kill_timeout
            )

    # ─────────────────────────────────────────────────────────────────
    # Data flow
    # ─────────────────────────────────────────────────────────────────

    async def _pump(self) -> None:
        """Forward downloader stdout into transcoder stdin."""
        assert self.downloader is not None and self.transcoder is not None
        source = self.downloader.stdout
        sink = self.transcoder.stdin
        assert source is not None and sink is not None

        try:
            while chunk := await source.read(self._config.read_chunk_size):
                self._bytes_downloaded += len(chunk)
                sink.write(chunk)
                await sink.drain()
        except (BrokenPipeError, ConnectionResetError):
            logger.debug(LogTemplates.PIPELINE_PUMP_BROKEN, self.url)
            return
        finally:
            if not sink.is_closing():
                sink.close()

        returncode = await self.downloader.wait()
        logger.debug(
            LogTemplates.PIPELINE_DOWNLOADER_EXIT, self.url, returncode, self._bytes_downloaded
        )
        if returncode != 0 and self._bytes_downloaded == 0:
            self._fail(
                PipelineStartError(
                    "downloader",
                    ErrorMessages.DOWNLOADER_EXITED_EARLY.format(returncode=returncode),
                )
            )

    async def _read_output(self) -> None:
        """Move transcoder stdout into the PCM buffer and track readiness."""
        assert self.transcoder is not None and self.transcoder.stdout is not None
        stdout = self.transcoder.stdout
        target = self._config.target_buffer_bytes

        while chunk := await stdout.read(self._config.read_chunk_size):
            self._buffer.write(chunk)
            if not self._ready.is_set() and self._buffer.bytes_written >= target:
                self._ready.set()
            await self._wait_for_space()

        self._buffer.close()
        logger.debug(LogTemplates.PIPELINE_OUTPUT_EOF, self.url, self._buffer.bytes_written)
        if self._buffer.bytes_written == 0:
            self._fail(await self._empty_output_error())
        else:
            # Short tracks finish below the threshold; the whole track is buffered.
            self._ready.set()

    async def _empty_output_error(self) -> PipelineStartError:
        """Blame the downloader when it exited with an error before sending anything."""
        assert self.downloader is not None
        if self._bytes_downloaded == 0:
            returncode: int | None = None
            try:
                async with asyncio.timeout(self._config.kill_timeout):
                    returncode = await self.downloader.wait()
            except TimeoutError:
                pass
            if returncode:
                return PipelineStartError(
                    "downloader",
                    ErrorMessages.DOWNLOADER_EXITED_EARLY.format(returncode=returncode),
                )
        return PipelineStartError("transcoder", ErrorMessages.TRANSCODER_NO_OUTPUT)

    async def _wait_for_space(self) -> None:
        high_water = self._config.max_buffer_bytes
        while self._buffer.pending > high_water:
            self._space.clear()
            if self._buffer.pending <= high_water:
                break
            await self._space.wait()

    async def _log_stderr(self, name: str, proc: Process) -> None:
        stream = proc.stderr
        assert stream is not None
        while chunk := await stream.read(STDERR_CHUNK_SIZE):
            for line in chunk.decode(errors="replace").splitlines():
                if line.strip():
                    logger.debug(LogTemplates.PIPELINE_STDERR, name, line.rstrip())

    def _fail(self, error: PipelineStartError) -> None:
        if self._ready.is_set():
            logger.debug(LogTemplates.PIPELINE_LATE_ERROR, error.process, self.url, error)
            return
        if self._failure is None:
            self._failure = error
        self._ready.set()

    async def _wait_until_buffered(self) -> None:
        waiters = [
            asyncio.create_task(self._ready.wait()),
            asyncio.create_task(self._closed.wait()),
        ]
        try:
            done, _ = await asyncio.wait(
                waiters,
                timeout=self._config.buffer_timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for waiter in waiters:
                waiter.cancel()

        if self._closed.is_set():
            raise PipelineClosedError()
        if self._failure is not None:
            raise self._failure
        if not done:
            raise PipelineTimeoutError(
                "transcoder", self._config.buffer_timeout, self.bytes_buffered
            )


def _call_threadsafe(loop: asyncio.AbstractEventLoop, callback: Any) -> None:
    if loop.is_closed():
        return
    try:
        loop.call_soon_threadsafe(callback)
    except RuntimeError:
        # Loop closed between the check and the call.
        pass


async def create_buffered_stream(
    url: str,
    target_buffer_bytes: int,
    config: PipelineConfig | None = None,
) -> StreamPipeline:
    """Start a pipeline for ``url`` and return it once pre-buffered.

    On failure every spawned process is terminated before the error propagates.
    """
    if target_buffer_bytes <= 0:
        raise ValueError("target_buffer_bytes must be positive")
    cfg = (config or PipelineConfig()).with_target(target_buffer_bytes)
    pipeline = StreamPipeline(url, cfg)
    await pipeline.start()
    return pipeline
