"""NativeProvider implementation for YouTube, backed by yt-dlp."""

from __future__ import annotations

import re
from typing import Final

from discord_queue_player.application.interfaces.native_provider import NativeProvider
from discord_queue_player.domain.music.entities import SearchResult
from discord_queue_player.domain.music.value_objects import PlaylistMetadata, TrackMetadata
from discord_queue_player.domain.shared.exceptions import ProviderError
from discord_queue_player.domain.shared.messages import ErrorMessages
from discord_queue_player.infrastructure.audio.models import YtDlpTrackInfo
from discord_queue_player.infrastructure.audio.ytdlp_client import YtDlpClient

YOUTUBE_ID_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^https?://(?:www\.|m\.|music\.)?"
    r"(?:youtube\.com/(?:watch\?(?:.*&)?v=|embed/|shorts/|live/)|youtu\.be/)"
    r"([a-zA-Z0-9_-]{11})"
)

PLAYLIST_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^https?://(?:www\.|m\.|music\.)?youtube\.com/(?:playlist|watch)\?(?:.*&)?list=([a-zA-Z0-9_-]+)"
)

WATCH_URL: Final[str] = "https://www.youtube.com/watch?v={id}"
MIX_URL: Final[str] = "https://www.youtube.com/watch?v={id}&list=RD{id}"
RELATED_LIMIT: Final[int] = 10


def extract_video_id(url: str) -> str | None:
    match = YOUTUBE_ID_PATTERN.search(url)
    return match.group(1) if match else None


class YouTubeProvider(NativeProvider):
    """Resolves YouTube videos, playlists and searches.

    Autoplay suggestions come from the video's auto-generated mix playlist.
    """

    def __init__(self, client: YtDlpClient) -> None:
        self._client = client

    def validate_url(self, url: str) -> bool:
        return extract_video_id(url) is not None

    def validate_playlist_url(self, url: str) -> bool:
        return PLAYLIST_PATTERN.search(url) is not None

    async def get_info(self, url: str) -> TrackMetadata:
        info = await self._client.extract_info(url, full=True)
        metadata = self._to_metadata(info, url, full=True)
        if metadata.stream_url is None:
            raise ProviderError(ErrorMessages.PROVIDER_NO_STREAM.format(url=url), url=url)
        return metadata

    async def get_basic_info(self, url: str) -> TrackMetadata:
        info = await self._client.extract_info(url, full=False)
        return self._to_metadata(info, url, full=False)

    async def fetch_playlist(self, url: str, *, limit: int | None = None) -> PlaylistMetadata:
        playlist = await self._client.extract_playlist(url, limit=limit)
        entries = [
            metadata
            for metadata in (self._entry_metadata(entry) for entry in playlist.entries)
            if metadata is not None
        ]
        thumbnails = [t.get("url") for t in playlist.thumbnails if isinstance(t.get("url"), str)]
        return PlaylistMetadata(
            id=playlist.id,
            url=playlist.webpage_url or url,
            title=playlist.title or "Unknown Playlist",
            thumbnail=thumbnails[-1] if thumbnails else (entries[0].thumbnail if entries else None),
            entries=entries,
        )

    async def search(
        self, query: str, *, limit: int = 1, safe_search: bool = False
    ) -> list[SearchResult]:
        results: list[SearchResult] = []
        for entry in await self._client.search(query, limit=limit, safe_search=safe_search):
            metadata = self._entry_metadata(entry)
            if metadata is None or (safe_search and metadata.age_restricted):
                continue
            results.append(
                SearchResult(
                    id=metadata.id,
                    url=metadata.url,
                    name=metadata.title,
                    duration=metadata.duration,
                    uploader=metadata.uploader,
                    thumbnail=metadata.thumbnail,
                )
            )
        return results

    async def get_related(self, url: str) -> list[TrackMetadata]:
        video_id = extract_video_id(url)
        if video_id is None:
            return []
        playlist = await self.fetch_playlist(MIX_URL.format(id=video_id), limit=RELATED_LIMIT)
        return [entry for entry in playlist.entries if entry.id != video_id and entry.has_thumbnail]

    @staticmethod
    def _to_metadata(info: YtDlpTrackInfo, url: str, *, full: bool) -> TrackMetadata:
        metadata = info.to_metadata(full=full, fallback_url=url)
        if metadata is None:
            raise ProviderError(ErrorMessages.PROVIDER_NO_RESULT.format(url=url), url=url)
        return metadata

    @staticmethod
    def _entry_metadata(entry: YtDlpTrackInfo) -> TrackMetadata | None:
        """Flat entries carry a bare id; rebuild the canonical watch URL from it."""
        if entry.id and len(entry.id) == 11:
            url = WATCH_URL.format(id=entry.id)
            return entry.model_copy(update={"webpage_url": url}).to_metadata(full=False)
        return entry.to_metadata(full=False)
