"""
Unit Tests for YtDlpResolver

Tests for the yt-dlp based resolver:
- URL detection
- Search resolution and empty results
- Direct URL lookup with title fallback
- Caching behavior
- Error handling

yt-dlp itself is patched out; no network access happens.
"""

from unittest.mock import MagicMock, patch

import pytest

from buffered_music_bot.config.settings import AudioSettings
from buffered_music_bot.domain.shared.exceptions import NoResultsError, ResolutionError
from buffered_music_bot.infrastructure.audio.ytdlp_resolver import YtDlpResolver

YDL_PATH = "buffered_music_bot.infrastructure.audio.ytdlp_resolver.YoutubeDL"


def _ydl_returning(result=None, side_effect=None) -> MagicMock:
    """Build a YoutubeDL class mock whose extract_info returns ``result``."""
    ydl = MagicMock()
    ydl.extract_info.return_value = result
    if side_effect is not None:
        ydl.extract_info.side_effect = side_effect
    ydl_cls = MagicMock()
    ydl_cls.return_value.__enter__.return_value = ydl
    return ydl_cls


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def resolver():
    """Create a YtDlpResolver instance."""
    return YtDlpResolver(AudioSettings())


# =============================================================================
# URL Detection Tests
# =============================================================================


class TestIsUrl:
    """Tests for telling links from search text."""

    @pytest.mark.parametrize(
        "query",
        [
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "http://example.com/song.mp3",
            "youtube.com/watch?v=abc",
            "www.youtube.com/watch?v=abc",
            "youtu.be/abc",
        ],
    )
    def test_urls(self, resolver, query):
        assert resolver.is_url(query) is True

    @pytest.mark.parametrize("query", ["never gonna give you up", "lofi beats", "ftp://x"])
    def test_search_text(self, resolver, query):
        assert resolver.is_url(query) is False


# =============================================================================
# Search Tests
# =============================================================================


class TestSearch:
    """Tests for free-text search resolution."""

    @pytest.mark.asyncio
    async def test_search_returns_first_entry(self, resolver):
        ydl_cls = _ydl_returning(
            {
                "entries": [
                    {"title": "Song A", "url": "https://www.youtube.com/watch?v=a"},
                    {"title": "Song B", "url": "https://www.youtube.com/watch?v=b"},
                ]
            }
        )
        with patch(YDL_PATH, ydl_cls):
            media = await resolver.resolve("  song a  ")

        assert media.title == "Song A"
        assert media.url == "https://www.youtube.com/watch?v=a"
        ydl = ydl_cls.return_value.__enter__.return_value
        ydl.extract_info.assert_called_once_with("ytsearch1:song a", download=False)

    @pytest.mark.asyncio
    async def test_search_uses_url_as_title_when_missing(self, resolver):
        ydl_cls = _ydl_returning({"entries": [{"webpage_url": "https://www.youtube.com/watch?v=a"}]})
        with patch(YDL_PATH, ydl_cls):
            media = await resolver.resolve("untitled")

        assert media.title == "https://www.youtube.com/watch?v=a"

    @pytest.mark.asyncio
    async def test_no_entries_raises_no_results(self, resolver):
        with patch(YDL_PATH, _ydl_returning({"entries": []})):
            with pytest.raises(NoResultsError):
                await resolver.resolve("nothing matches this")

    @pytest.mark.asyncio
    async def test_entry_without_page_url_raises_no_results(self, resolver):
        with patch(YDL_PATH, _ydl_returning({"entries": [{"title": "x", "url": "abc123"}]})):
            with pytest.raises(NoResultsError):
                await resolver.resolve("bare id")

    @pytest.mark.asyncio
    async def test_non_dict_result_raises_no_results(self, resolver):
        with patch(YDL_PATH, _ydl_returning(None)):
            with pytest.raises(NoResultsError):
                await resolver.resolve("none")

    @pytest.mark.asyncio
    async def test_extractor_error_raises_resolution_error(self, resolver):
        with patch(YDL_PATH, _ydl_returning(side_effect=RuntimeError("network down"))):
            with pytest.raises(ResolutionError) as exc_info:
                await resolver.resolve("some song")

        assert not isinstance(exc_info.value, NoResultsError)
        assert "network down" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_empty_query(self, resolver):
        with pytest.raises(ResolutionError):
            await resolver.resolve("   ")


# =============================================================================
# URL Lookup Tests
# =============================================================================


class TestUrlLookup:
    """Tests for direct link resolution."""

    @pytest.mark.asyncio
    async def test_url_uses_extracted_title(self, resolver):
        url = "https://www.youtube.com/watch?v=abc"
        with patch(YDL_PATH, _ydl_returning({"title": "Real Title", "webpage_url": url})):
            media = await resolver.resolve(url)

        assert media.title == "Real Title"
        assert media.url == url

    @pytest.mark.asyncio
    async def test_lookup_failure_falls_back_to_url(self, resolver):
        url = "https://www.youtube.com/watch?v=abc"
        with patch(YDL_PATH, _ydl_returning(side_effect=RuntimeError("blocked"))):
            media = await resolver.resolve(url)

        assert media.title == url
        assert media.url == url

    @pytest.mark.asyncio
    async def test_scheme_added_to_bare_links(self, resolver):
        ydl_cls = _ydl_returning({"title": "T"})
        with patch(YDL_PATH, ydl_cls):
            media = await resolver.resolve("youtu.be/abc")

        assert media.url == "https://youtu.be/abc"
        ydl = ydl_cls.return_value.__enter__.return_value
        ydl.extract_info.assert_called_once_with("https://youtu.be/abc", download=False)


# =============================================================================
# Caching Tests
# =============================================================================


class TestCaching:
    """Tests for the per-query result cache."""

    @pytest.mark.asyncio
    async def test_repeat_query_hits_cache(self, resolver):
        ydl_cls = _ydl_returning({"entries": [{"title": "A", "url": "https://yt/a"}]})
        with patch(YDL_PATH, ydl_cls):
            first = await resolver.resolve("song")
            second = await resolver.resolve("song")

        assert first == second
        assert ydl_cls.call_count == 1

    @pytest.mark.asyncio
    async def test_zero_ttl_disables_cache(self):
        resolver = YtDlpResolver(AudioSettings(search_cache_ttl_seconds=0))
        ydl_cls = _ydl_returning({"entries": [{"title": "A", "url": "https://yt/a"}]})
        with patch(YDL_PATH, ydl_cls):
            await resolver.resolve("song")
            await resolver.resolve("song")

        assert ydl_cls.call_count == 2

    @pytest.mark.asyncio
    async def test_expired_entry_is_refetched(self, resolver):
        ydl_cls = _ydl_returning({"entries": [{"title": "A", "url": "https://yt/a"}]})
        with patch(YDL_PATH, ydl_cls):
            await resolver.resolve("song")
            with patch("buffered_music_bot.infrastructure.audio.ytdlp_resolver.time.time", return_value=10**12):
                await resolver.resolve("song")

        assert ydl_cls.call_count == 2

    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self, resolver):
        with patch(YDL_PATH, _ydl_returning({"entries": []})):
            with pytest.raises(NoResultsError):
                await resolver.resolve("song")

        with patch(YDL_PATH, _ydl_returning({"entries": [{"title": "A", "url": "https://yt/a"}]})):
            media = await resolver.resolve("song")

        assert media.title == "A"

    @pytest.mark.asyncio
    async def test_clear_cache(self, resolver):
        with patch(YDL_PATH, _ydl_returning({"entries": [{"title": "A", "url": "https://yt/a"}]})):
            await resolver.resolve("song")

        assert resolver.clear_cache() == 1
        assert resolver.clear_cache() == 0
