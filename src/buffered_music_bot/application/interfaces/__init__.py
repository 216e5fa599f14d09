"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from buffered_music_bot.application.interfaces.audio_resolver import AudioResolver, ResolvedMedia
from buffered_music_bot.application.interfaces.audio_stream import AudioStream, PcmReader
from buffered_music_bot.application.interfaces.voice_adapter import AfterPlayback, VoiceAdapter

__all__ = [
    "AudioResolver",
    "ResolvedMedia",
    "AudioStream",
    "PcmReader",
    "VoiceAdapter",
    "AfterPlayback",
]
