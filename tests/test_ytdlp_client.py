"""
Unit Tests for the yt-dlp layer

Tests for:
- YtDlpTrackInfo coercion, stream selection and metadata conversion
- YtDlpClient options, caching and error wrapping
"""

from unittest.mock import MagicMock, patch

import pytest
from pydantic import SecretStr

from discord_queue_player.config.settings import AudioSettings
from discord_queue_player.domain.shared.exceptions import ProviderError
from discord_queue_player.infrastructure.audio.models import (
    CacheEntry,
    SAFE_SEARCH_AGE_LIMIT,
    YtDlpPlaylistInfo,
    YtDlpTrackInfo,
)
from discord_queue_player.infrastructure.audio.ytdlp_client import YtDlpClient

URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


def raw_info(**overrides) -> dict:
    data = {
        "id": "dQw4w9WgXcQ",
        "webpage_url": URL,
        "url": "https://rr1.googlevideo.com/audio",
        "title": "Never Gonna Give You Up",
        "duration": 213,
        "thumbnail": "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg",
        "uploader": "Rick Astley",
        "view_count": 1_000_000,
        "age_limit": 0,
        "formats": [{"url": "https://rr1.googlevideo.com/audio", "acodec": "opus", "abr": 160}],
        "requested_downloads": [{"unused": True}],
    }
    data.update(overrides)
    return data


class TestYtDlpTrackInfo:
    """Tests for parsing yt-dlp output."""

    def test_garbage_values_coerced(self):
        """Should coerce blank strings and negative numbers instead of failing."""
        info = YtDlpTrackInfo.model_validate(
            {"id": " ", "title": "", "duration": -5, "view_count": "n/a", "uploader": 42}
        )

        assert info.id is None
        assert info.title == "Unknown Title"
        assert info.duration is None
        assert info.view_count is None
        assert info.uploader is None

    def test_stream_url_prefers_selected_format(self):
        info = YtDlpTrackInfo.model_validate(raw_info())

        assert info.stream_url() == "https://rr1.googlevideo.com/audio"

    def test_stream_url_falls_back_to_best_audio_format(self):
        """Should pick the highest bitrate audio format when no format was selected."""
        info = YtDlpTrackInfo.model_validate(
            raw_info(
                url=URL,
                formats=[
                    {"url": "https://cdn/video", "acodec": "none", "abr": 0},
                    {"url": "https://cdn/low", "acodec": "mp4a", "abr": 48},
                    {"url": "https://cdn/high", "acodec": "opus", "abr": 160},
                ],
            )
        )

        assert info.stream_url() == "https://cdn/high"

    def test_no_stream_without_formats(self):
        assert YtDlpTrackInfo.model_validate(raw_info(formats=[])).stream_url() is None

    def test_to_metadata(self):
        """Should map yt-dlp fields onto provider-neutral metadata."""
        info = YtDlpTrackInfo.model_validate(raw_info(age_limit=18, uploader=None, channel="RA"))

        full = info.to_metadata(full=True)
        basic = info.to_metadata(full=False)

        assert full.id == "dQw4w9WgXcQ"
        assert full.url == URL
        assert full.duration == 213
        assert full.uploader == "RA"
        assert full.views == 1_000_000
        assert full.age_restricted is True
        assert full.stream_url == "https://rr1.googlevideo.com/audio"
        assert basic.stream_url is None

    def test_unavailable_entry_has_no_thumbnail(self):
        info = YtDlpTrackInfo.model_validate(raw_info(title="[Private video]"))

        assert info.is_unavailable
        assert info.to_metadata(full=False).thumbnail is None

    def test_thumbnail_from_thumbnail_list(self):
        info = YtDlpTrackInfo.model_validate(
            raw_info(thumbnail=None, thumbnails=[{"url": "https://img/small"}, {"url": "https://img/big"}])
        )

        assert info.best_thumbnail == "https://img/big"

    def test_missing_url_gives_no_metadata(self):
        assert YtDlpTrackInfo.model_validate({"title": "x"}).to_metadata(full=False) is None

    def test_playlist_drops_empty_entries(self):
        playlist = YtDlpPlaylistInfo.model_validate(
            {"id": "PL1", "title": "List", "entries": [None, {"id": "a", "url": "https://a"}, {}]}
        )

        assert [e.id for e in playlist.entries] == ["a"]


@pytest.fixture
def ydl_cls():
    with patch("discord_queue_player.infrastructure.audio.ytdlp_client.YoutubeDL") as cls:
        yield cls


def ydl_instance(ydl_cls) -> MagicMock:
    return ydl_cls.return_value.__enter__.return_value


class TestYtDlpClient:
    """Tests for running extractions through YoutubeDL."""

    async def test_full_lookup_cached(self, ydl_cls):
        """Should extract once and serve repeated full lookups from the cache."""
        ydl_instance(ydl_cls).extract_info.return_value = raw_info()
        client = YtDlpClient()

        first = await client.extract_info(URL)
        second = await client.extract_info(URL)

        assert first == second
        assert ydl_cls.call_count == 1
        params = ydl_cls.call_args.kwargs["params"]
        assert params["format"] == "bestaudio/best"
        assert params["noplaylist"] is True
        ydl_instance(ydl_cls).extract_info.assert_called_once_with(URL, download=False)

    async def test_basic_lookup_skips_format_selection(self, ydl_cls):
        """Should not select formats or cache partial lookups."""
        ydl_instance(ydl_cls).extract_info.return_value = raw_info(formats=[])
        client = YtDlpClient()

        await client.extract_info(URL, full=False)
        await client.extract_info(URL, full=False)

        assert ydl_cls.call_count == 2
        params = ydl_cls.call_args.kwargs["params"]
        assert "format" not in params
        assert params["extract_flat"] == "discard"

    async def test_expired_cache_entry_refetched(self, ydl_cls):
        ydl_instance(ydl_cls).extract_info.return_value = raw_info()
        client = YtDlpClient()
        client._cache[URL] = CacheEntry(
            info=YtDlpTrackInfo.model_validate(raw_info(title="Stale")), cached_at=0.0
        )

        info = await client.extract_info(URL)

        assert info.title == "Never Gonna Give You Up"

    async def test_extraction_failure_wrapped(self, ydl_cls):
        """Should raise ProviderError chained to the yt-dlp error."""
        ydl_instance(ydl_cls).extract_info.side_effect = RuntimeError("Video unavailable")
        client = YtDlpClient()

        with pytest.raises(ProviderError) as exc_info:
            await client.extract_info(URL)

        assert exc_info.value.url == URL
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    async def test_empty_result(self, ydl_cls):
        ydl_instance(ydl_cls).extract_info.return_value = None

        with pytest.raises(ProviderError):
            await YtDlpClient().extract_info(URL)

    async def test_search(self, ydl_cls):
        """Should run a flat ytsearch for the requested number of results."""
        ydl_instance(ydl_cls).extract_info.return_value = {
            "entries": [{"id": "aaaaaaaaaaa", "title": "One"}, {"id": "bbbbbbbbbbb", "title": "Two"}]
        }

        entries = await YtDlpClient().search("lofi", limit=2)

        assert [e.title for e in entries] == ["One", "Two"]
        ydl_instance(ydl_cls).extract_info.assert_called_once_with("ytsearch2:lofi", download=False)
        assert ydl_cls.call_args.kwargs["params"]["extract_flat"] == "in_playlist"
        assert "age_limit" not in ydl_cls.call_args.kwargs["params"]

    async def test_safe_search_sets_age_limit(self, ydl_cls):
        """Should ask yt-dlp to skip videos unsuitable for minors."""
        ydl_instance(ydl_cls).extract_info.return_value = {"entries": []}

        await YtDlpClient().search("lofi", limit=2, safe_search=True)

        assert ydl_cls.call_args.kwargs["params"]["age_limit"] == SAFE_SEARCH_AGE_LIMIT

    async def test_playlist(self, ydl_cls):
        ydl_instance(ydl_cls).extract_info.return_value = {"id": "PL1", "entries": []}

        await YtDlpClient().extract_playlist("https://www.youtube.com/playlist?list=PL1", limit=5)

        params = ydl_cls.call_args.kwargs["params"]
        assert params["noplaylist"] is False
        assert params["playlistend"] == 5

    async def test_cookie_sent_as_header(self, ydl_cls):
        """Should send the configured cookie with every request."""
        ydl_instance(ydl_cls).extract_info.return_value = raw_info()
        client = YtDlpClient(AudioSettings(youtube_cookie=SecretStr("SID=abc")))

        await client.extract_info(URL)

        assert client.http_headers == {"Cookie": "SID=abc"}
        assert ydl_cls.call_args.kwargs["params"]["http_headers"] == {"Cookie": "SID=abc"}

    async def test_clear_cache(self, ydl_cls):
        ydl_instance(ydl_cls).extract_info.return_value = raw_info()
        client = YtDlpClient()
        await client.extract_info(URL)

        client.clear_cache()
        await client.extract_info(URL)

        assert ydl_cls.call_count == 2
