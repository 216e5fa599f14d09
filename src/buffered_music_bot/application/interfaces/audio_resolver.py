"""Port interface for resolving play requests into media references."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict

from buffered_music_bot.domain.shared.types import HttpUrlStr, NonEmptyStr


class ResolvedMedia(BaseModel):
    """Title and canonical URL for a media item."""

    model_config = ConfigDict(frozen=True)

    title: NonEmptyStr
    url: HttpUrlStr


class AudioResolver(ABC):
    """Interface for resolving URLs and search queries to media references."""

    @abstractmethod
    async def resolve(self, query: NonEmptyStr) -> ResolvedMedia:
        """Resolve a query or URL.

        Raises:
            NoResultsError: If the search produced no match.
            ResolutionError: If the lookup failed.
        """
        ...

    @abstractmethod
    def is_url(self, query: NonEmptyStr) -> bool:
        ...
