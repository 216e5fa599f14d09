"""discord.py audio source that plays already-decoded PCM from a byte reader."""

from __future__ import annotations

import logging

import discord
from discord.opus import Encoder as OpusEncoder

from buffered_music_bot.application.interfaces.audio_stream import PcmReader
from buffered_music_bot.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)

FRAME_SIZE = OpusEncoder.FRAME_SIZE
"""Bytes in one 20 ms frame of 48 kHz stereo s16le audio (3840)."""

SILENCE = b"\x00" * FRAME_SIZE


class PcmAudioSource(discord.AudioSource):
    """Feeds 20 ms PCM frames from ``reader`` to the voice client.

    Short frames are padded with silence. A read that times out while the
    reader is still open yields a silent frame; only the reader's real end of
    stream (closed and drained) ends playback.
    """

    def __init__(self, reader: PcmReader) -> None:
        self._reader = reader
        self._finished = False
        self._underruns = 0

    @property
    def underruns(self) -> int:
        """Silent frames emitted because the producer fell behind."""
        return self._underruns

    def read(self) -> bytes:
        if self._finished:
            return b""
        frame = self._reader.read(FRAME_SIZE)
        if not frame:
            if self._reader.at_eof:
                self._finished = True
                return b""
            self._underruns += 1
            logger.debug(LogTemplates.PCM_UNDERRUN, self._underruns)
            return SILENCE
        if len(frame) < FRAME_SIZE:
            frame += b"\x00" * (FRAME_SIZE - len(frame))
        return frame

    def is_opus(self) -> bool:
        return False

    def cleanup(self) -> None:
        self._finished = True
