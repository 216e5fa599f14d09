"""
Shared Domain Kernel

Contains constrained types and exceptions shared across the bot.
"""

from buffered_music_bot.domain.shared.exceptions import (
    DomainError,
    InvalidOperationError,
    NoResultsError,
    PipelineClosedError,
    PipelineStartError,
    PipelineTimeoutError,
    PlaybackRuntimeError,
    ResolutionError,
    VoiceJoinError,
)

__all__ = [
    "DomainError",
    "ResolutionError",
    "NoResultsError",
    "PipelineStartError",
    "PipelineTimeoutError",
    "PipelineClosedError",
    "VoiceJoinError",
    "PlaybackRuntimeError",
    "InvalidOperationError",
]
