"""AudioResolver implementation using yt-dlp for URL lookup and search."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any, Final, cast

from yt_dlp import YoutubeDL

from buffered_music_bot.application.interfaces.audio_resolver import AudioResolver, ResolvedMedia
from buffered_music_bot.config.settings import AudioSettings
from buffered_music_bot.domain.shared.exceptions import NoResultsError, ResolutionError
from buffered_music_bot.domain.shared.messages import ErrorMessages, LogTemplates

from .models import CacheEntry, YtDlpEntry, YtDlpOpts

logger = logging.getLogger(__name__)

CACHE_MAX_SIZE: Final[int] = 500
LOG_QUERY_TRUNCATE: Final[int] = 60

URL_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"^https?://", re.IGNORECASE),
    re.compile(r"^(www\.)?(youtube\.com|youtu\.be)/", re.IGNORECASE),
]


class YtDlpResolver(AudioResolver):
    """Turns a link or free-text query into a title and page URL.

    Free text goes through ``ytsearch1:``; links are looked up directly and,
    if the lookup fails, fall back to using the link itself as the title.
    Results are cached per query for ``search_cache_ttl_seconds``.
    """

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._opts = YtDlpOpts()
        self._cache: dict[str, CacheEntry] = {}

    def is_url(self, query: str) -> bool:
        query = query.strip()
        return any(pattern.search(query) for pattern in URL_PATTERNS)

    async def resolve(self, query: str) -> ResolvedMedia:
        query = query.strip()
        if not query:
            raise ResolutionError(query, ErrorMessages.EMPTY_QUERY)

        cached = self._cache_get(query)
        if cached is not None:
            return cached

        if self.is_url(query):
            media = await self._resolve_url(query)
        else:
            media = await self._resolve_search(query)

        self._cache_put(query, media)
        return media

    # ── Lookup ────────────────────────────────────────────────────────

    async def _resolve_url(self, url: str) -> ResolvedMedia:
        if not url.lower().startswith(("http://", "https://")):
            url = f"https://{url}"
        try:
            entry = await asyncio.to_thread(self._extract_sync, url)
        except Exception:
            logger.warning(LogTemplates.YTDLP_FAILED_RESOLVE, url, exc_info=True)
            entry = None

        title = entry.title if entry is not None and entry.title else url
        return ResolvedMedia(title=title, url=url)

    async def _resolve_search(self, query: str) -> ResolvedMedia:
        try:
            entry = await asyncio.to_thread(self._extract_sync, f"ytsearch1:{query}")
        except Exception as exc:
            logger.exception(LogTemplates.YTDLP_FAILED_RESOLVE, query)
            raise ResolutionError(
                query, ErrorMessages.RESOLUTION_FAILED.format(error=exc)
            ) from exc

        url = entry.page_url if entry is not None else None
        if entry is None or url is None:
            logger.info(LogTemplates.YTDLP_NO_RESULTS, query[:LOG_QUERY_TRUNCATE])
            raise NoResultsError(query)

        return ResolvedMedia(title=entry.title or url, url=url)

    def _extract_sync(self, target: str) -> YtDlpEntry | None:
        """Run yt-dlp and return the first usable entry (None if there is none)."""
        with YoutubeDL(params=cast(Any, self._opts.model_dump())) as ydl:
            data = ydl.extract_info(target, download=False)

        if not isinstance(data, dict):
            return None

        entries = data.get("entries")
        if entries is None:
            return YtDlpEntry.model_validate(data)

        for raw in entries:
            if isinstance(raw, dict):
                return YtDlpEntry.model_validate(raw)
        return None

    # ── Cache ─────────────────────────────────────────────────────────

    def _cache_get(self, query: str) -> ResolvedMedia | None:
        ttl = self._settings.search_cache_ttl_seconds
        entry = self._cache.get(query)
        if entry is None:
            return None
        if time.time() - entry.cached_at >= ttl:
            self._cache.pop(query, None)
            return None
        logger.debug(LogTemplates.CACHE_HIT, query[:LOG_QUERY_TRUNCATE])
        return ResolvedMedia(title=entry.title, url=entry.url)

    def _cache_put(self, query: str, media: ResolvedMedia) -> None:
        ttl = self._settings.search_cache_ttl_seconds
        if ttl <= 0:
            return
        now = time.time()
        self._cache[query] = CacheEntry(title=media.title, url=media.url, cached_at=now)

        if len(self._cache) > CACHE_MAX_SIZE:
            expired = [k for k, e in self._cache.items() if now - e.cached_at >= ttl]
            for k in expired:
                self._cache.pop(k, None)
            if expired:
                logger.debug(LogTemplates.CACHE_EXPIRED_PRUNED, len(expired))
            while len(self._cache) > CACHE_MAX_SIZE:
                self._cache.pop(next(iter(self._cache)))

    def clear_cache(self) -> int:
        count = len(self._cache)
        self._cache.clear()
        return count
