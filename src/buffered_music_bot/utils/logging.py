"""Console log formatting for the bot and its audio subprocesses."""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, TextIO

from buffered_music_bot.domain.shared.messages import LogTemplates

PACKAGE_PREFIX = "buffered_music_bot."

LEVEL_COLORS: dict[int, str] = {
    logging.DEBUG: "\033[36m",  # cyan
    logging.INFO: "\033[32m",  # green
    logging.WARNING: "\033[33m",  # yellow
    logging.ERROR: "\033[31m",  # red
    logging.CRITICAL: "\033[1;31m",  # bold red
}
DIM = "\033[2m"
RESET = "\033[0m"


def _wants_color(stream: TextIO | None) -> bool:
    if os.environ.get("NO_COLOR") is not None:
        return False
    target = stream or sys.stderr
    return hasattr(target, "isatty") and target.isatty()


class ColoredFormatter(logging.Formatter):
    """Formatter for the console handler.

    - Logger names lose the ``buffered_music_bot.`` prefix.
    - Levels are colored, and forwarded downloader/transcoder stderr lines
      are dimmed so they stand apart from the bot's own messages.

    Color is off when ``NO_COLOR`` is set or ``stream`` (stderr by default)
    is not a TTY. ``use_color`` overrides the detection.
    """

    def __init__(
        self,
        *args: Any,
        stream: TextIO | None = None,
        use_color: bool | None = None,
        short_names: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._stream = stream
        self._use_color = use_color
        self._short_names = short_names

    @property
    def colored(self) -> bool:
        if self._use_color is not None:
            return self._use_color
        return _wants_color(self._stream)

    def format(self, record: logging.LogRecord) -> str:
        colored = self.colored
        if not colored and not self._short_names:
            return super().format(record)

        # Handlers share the record; decorate a copy.
        record = logging.makeLogRecord(record.__dict__)
        if self._short_names and record.name.startswith(PACKAGE_PREFIX):
            record.name = record.name.removeprefix(PACKAGE_PREFIX)
        if not colored:
            return super().format(record)

        color = LEVEL_COLORS.get(record.levelno, "")
        record.levelname = f"{color}{record.levelname}{RESET}"
        if _is_subprocess_line(record):
            record.msg = f"{DIM}{record.getMessage()}{RESET}"
            record.args = None
        return super().format(record)


def _is_subprocess_line(record: logging.LogRecord) -> bool:
    return record.msg == LogTemplates.PIPELINE_STDERR
