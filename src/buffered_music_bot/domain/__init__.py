# ruff: noqa: N999
"""
Domain Layer

Contains pure business logic organized by bounded contexts:
- shared/: Cross-cutting types, exceptions and message templates
- music/: Song, per-guild queue state and playback outcomes
"""

from buffered_music_bot.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
