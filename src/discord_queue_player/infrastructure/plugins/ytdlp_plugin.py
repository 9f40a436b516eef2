"""Extractor plugin for the non-YouTube sites yt-dlp knows how to read."""

from __future__ import annotations

from typing import TYPE_CHECKING

from yt_dlp.extractor import gen_extractor_classes

from discord_queue_player.application.interfaces.extractor_plugin import ExtractorPlugin
from discord_queue_player.domain.music.entities import Song
from discord_queue_player.domain.music.value_objects import SongSource
from discord_queue_player.domain.shared.exceptions import ProviderError
from discord_queue_player.domain.shared.messages import ErrorMessages

if TYPE_CHECKING:
    from discord_queue_player.domain.music.value_objects import Requester
    from discord_queue_player.infrastructure.audio.ytdlp_client import YtDlpClient

# Handled by the native provider, or too broad to claim a URL on their own.
EXCLUDED_EXTRACTORS: frozenset[str] = frozenset({"Generic", "Youtube", "YoutubeTab"})


class YtDlpPlugin(ExtractorPlugin):
    """Resolves SoundCloud, Bandcamp, Vimeo and similar links through yt-dlp."""

    name = "yt-dlp"

    def __init__(self, client: YtDlpClient) -> None:
        self._client = client
        self._extractors = [
            ie for ie in gen_extractor_classes() if ie.ie_key() not in EXCLUDED_EXTRACTORS
        ]

    async def validate(self, url: str) -> bool:
        return any(ie.suitable(url) for ie in self._extractors)

    async def resolve(self, url: str, requester: Requester | None) -> Song:
        info = await self._client.extract_info(url, full=True)
        metadata = info.to_metadata(full=True, fallback_url=url)
        if metadata is None:
            raise ProviderError(ErrorMessages.PROVIDER_NO_RESULT.format(url=url), url=url)
        return Song.from_metadata(metadata, requester, source=SongSource.PLUGIN, plugin=self.name)

    async def get_stream_url(self, url: str) -> str:
        info = await self._client.extract_info(url, full=True)
        stream_url = info.stream_url()
        if not stream_url:
            raise ProviderError(ErrorMessages.PROVIDER_NO_STREAM.format(url=url), url=url)
        return stream_url

    async def get_related_songs(self, url: str) -> list[Song]:
        return []
