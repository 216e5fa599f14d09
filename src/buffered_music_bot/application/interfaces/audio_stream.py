"""Port interface for pre-buffered raw audio streams."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol


class PcmReader(Protocol):
    """Blocking byte source read by the voice transport's audio thread.

    ``read`` may return ``b""`` on a timeout while the producer is still
    running; ``at_eof`` tells that apart from the real end of the stream.
    """

    def read(self, size: int) -> bytes: ...

    @property
    def at_eof(self) -> bool: ...


class AudioStream(ABC):
    """A raw PCM stream that must be started (buffered) before it is played."""

    @property
    @abstractmethod
    def output(self) -> PcmReader:
        """Readable stream of s16le / 48 kHz / stereo audio."""
        ...

    @property
    @abstractmethod
    def is_ready(self) -> bool:
        """True once the pre-buffer threshold (or end of stream) was reached."""
        ...

    @property
    @abstractmethod
    def is_closed(self) -> bool:
        ...

    @abstractmethod
    async def start(self) -> None:
        """Spawn the producing processes and wait until enough audio is buffered."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Terminate the producing processes. Safe to call more than once."""
        ...
