"""Thread-safe pass-through byte buffer between the event loop and the audio thread."""

from __future__ import annotations

import threading
from collections.abc import Callable


class PcmBuffer:
    """FIFO of raw PCM bytes shared by the event loop and the audio thread.

    The buffer itself never refuses a write. The pipeline bounds it: it stops
    reading the transcoder above the high-water mark and resumes from the
    drain listener once a read brings ``pending`` back down.

    ``read`` blocks (up to ``read_timeout`` seconds) while the buffer holds
    less than requested but is still open. A timed-out read may return
    ``b""`` with ``at_eof`` still False; the stream has only ended once the
    buffer is closed and drained.
    """

    def __init__(self, *, read_timeout: float | None = 5.0) -> None:
        self._data = bytearray()
        self._cond = threading.Condition()
        self._closed = False
        self._bytes_written = 0
        self._read_timeout = read_timeout

        self._high_water: int | None = None
        self._on_drain: Callable[[], None] | None = None

    @property
    def bytes_written(self) -> int:
        """Total bytes ever written, including bytes already read."""
        return self._bytes_written

    @property
    def pending(self) -> int:
        """Bytes written but not yet read."""
        with self._cond:
            return len(self._data)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def at_eof(self) -> bool:
        with self._cond:
            return self._closed and not self._data

    def set_drain_listener(self, high_water: int, callback: Callable[[], None] | None) -> None:
        """Call ``callback`` whenever a read brings ``pending`` down to ``high_water``."""
        with self._cond:
            self._high_water = high_water
            self._on_drain = callback

    def write(self, data: bytes) -> int:
        """Append ``data``. Writes after ``close()`` are dropped and return 0."""
        if not data:
            return 0
        with self._cond:
            if self._closed:
                return 0
            self._data += data
            self._bytes_written += len(data)
            self._cond.notify_all()
        return len(data)

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes (all pending bytes when negative).

        Waits until ``size`` bytes are available or the buffer is closed; on
        timeout returns whatever is pending, possibly ``b""``.
        """
        callback: Callable[[], None] | None = None
        wanted = size if size > 0 else 1
        with self._cond:
            if len(self._data) < wanted and not self._closed:
                self._cond.wait_for(
                    lambda: len(self._data) >= wanted or self._closed,
                    timeout=self._read_timeout,
                )

            before = len(self._data)
            if size < 0 or size > before:
                size = before
            chunk = bytes(self._data[:size])
            del self._data[:size]

            high_water = self._high_water
            if high_water is not None and before > high_water >= len(self._data):
                callback = self._on_drain

        if callback is not None:
            callback()
        return chunk

    def close(self) -> None:
        """Mark end of stream; wakes any blocked reader."""
        with self._cond:
            self._closed = True
            self._on_drain = None
            self._cond.notify_all()

    def __len__(self) -> int:
        return self.pending
