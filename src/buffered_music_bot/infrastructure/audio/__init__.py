"""Audio infrastructure - yt-dlp resolver and the buffered yt-dlp/FFmpeg pipeline."""

from buffered_music_bot.infrastructure.audio.models import (
    CacheEntry,
    PipelineConfig,
    YtDlpEntry,
    YtDlpOpts,
)
from buffered_music_bot.infrastructure.audio.pcm_buffer import PcmBuffer
from buffered_music_bot.infrastructure.audio.pcm_source import PcmAudioSource
from buffered_music_bot.infrastructure.audio.stream_pipeline import (
    StreamPipeline,
    create_buffered_stream,
)
from buffered_music_bot.infrastructure.audio.ytdlp_resolver import YtDlpResolver

__all__ = [
    "CacheEntry",
    "PcmAudioSource",
    "PcmBuffer",
    "PipelineConfig",
    "StreamPipeline",
    "YtDlpEntry",
    "YtDlpOpts",
    "YtDlpResolver",
    "create_buffered_stream",
]
