"""Extractor plugin for plain links to audio files."""

from __future__ import annotations

import posixpath
from typing import Final
from urllib.parse import unquote, urlparse

from discord_queue_player.application.interfaces.extractor_plugin import ExtractorPlugin
from discord_queue_player.domain.music.entities import Song
from discord_queue_player.domain.music.value_objects import Requester, SongSource

AUDIO_EXTENSIONS: Final[frozenset[str]] = frozenset(
    {".mp3", ".ogg", ".oga", ".opus", ".wav", ".flac", ".m4a", ".aac", ".webm", ".mka"}
)


class DirectLinkPlugin(ExtractorPlugin):
    """Plays an audio file URL as-is; FFmpeg reads it directly."""

    name = "direct-link"

    async def validate(self, url: str) -> bool:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https"):
            return False
        return posixpath.splitext(parsed.path)[1].lower() in AUDIO_EXTENSIONS

    async def resolve(self, url: str, requester: Requester | None) -> Song:
        filename = posixpath.basename(unquote(urlparse(url).path)) or url
        return Song(
            id=url,
            url=url,
            source=SongSource.PLUGIN,
            name=filename,
            plugin=self.name,
            stream_url=url,
            requester=requester,
        )

    async def get_stream_url(self, url: str) -> str:
        return url

    async def get_related_songs(self, url: str) -> list[Song]:
        return []
