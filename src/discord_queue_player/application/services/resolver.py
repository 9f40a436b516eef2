"""Resolution pipeline - turns any supported request into a Song or Playlist.

Inputs form a small closed set, each step moving strictly closer to a
playable value::

    search phrase ──search──▶ SearchResult ──▶ Song | Playlist
    URL ──provider / extractor──▶ Song | Playlist
    record ──▶ Song

so resolution recurses at most twice.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Final

from pydantic import ValidationError

from ...domain.music.entities import Playlist, SearchResult, Song
from ...domain.music.value_objects import NATIVE_SOURCE, PlaylistMetadata, SearchResultType
from ...domain.shared.exceptions import (
    EmptyInputError,
    InvalidInputTypeError,
    InvalidSearchResultError,
    InvalidSongRecordError,
    NoValidEntriesError,
    UnsupportedURLError,
)
from ...domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from ...domain.music.value_objects import Requester
    from ..interfaces.native_provider import NativeProvider
    from .extractor_registry import ExtractorRegistry
    from .search_service import SongSearchService

logger = logging.getLogger(__name__)

URL_PATTERN: Final[re.Pattern[str]] = re.compile(r"^https?://\S+$", re.IGNORECASE)

SongInput = Song | Playlist | SearchResult | Mapping[str, Any] | str


def is_url(value: object) -> bool:
    return isinstance(value, str) and URL_PATTERN.match(value.strip()) is not None


class SongResolver:
    """Resolves requests through the native provider, extractor plugins and search."""

    def __init__(
        self,
        *,
        provider: NativeProvider,
        extractors: ExtractorRegistry,
        search_service: SongSearchService | None = None,
    ) -> None:
        self._provider = provider
        self._extractors = extractors
        self._search_service = search_service

    async def resolve_song(
        self,
        requester: Requester | None,
        song: SongInput | None,
        *,
        safe_search: bool = False,
    ) -> Song | Playlist | None:
        """Resolve *song* into a Song or Playlist.

        Returns None for an empty request, or when a search found nothing or
        the requester cancelled the pick. ``safe_search`` keeps age-restricted
        videos out of search phrase results.
        """
        if song is None or song == "":
            return None
        if isinstance(song, Song | Playlist):
            return song
        if isinstance(song, SearchResult):
            return await self._resolve_search_result(requester, song)
        if isinstance(song, Mapping):
            try:
                return Song.from_record(song, requester)
            except ValidationError as e:
                raise InvalidSongRecordError(str(e)) from e
        if not isinstance(song, str):
            raise InvalidInputTypeError(song)

        query = song.strip()
        if is_url(query):
            return await self._resolve_url(requester, query)

        logger.debug(LogTemplates.RESOLVE_SEARCH, query)
        result = await self._search(requester, query, safe_search=safe_search)
        if result is None:
            return None
        return await self._resolve_search_result(requester, result)

    async def _resolve_search_result(
        self, requester: Requester | None, result: SearchResult
    ) -> Song | Playlist:
        if result.type == SearchResultType.VIDEO.value:
            return Song.from_search_result(result, requester)
        if result.type == SearchResultType.PLAYLIST.value:
            return await self.resolve_playlist(requester, result.url)
        raise InvalidSearchResultError(result.type)

    async def _resolve_url(self, requester: Requester | None, url: str) -> Song | Playlist:
        if self._provider.validate_playlist_url(url):
            return await self.resolve_playlist(requester, url)
        if self._provider.validate_url(url):
            logger.debug(LogTemplates.RESOLVE_NATIVE, url)
            return Song.from_metadata(await self._provider.get_basic_info(url), requester)

        plugin = await self._extractors.find(url)
        if plugin is None:
            raise UnsupportedURLError(url)
        logger.debug(LogTemplates.RESOLVE_PLUGIN, url, plugin.name)
        return await plugin.resolve(url, requester)

    async def _search(
        self, requester: Requester | None, query: str, *, safe_search: bool = False
    ) -> SearchResult | None:
        if requester is not None and requester.channel_id and self._search_service:
            return await self._search_service.search_song(
                requester, query, safe_search=safe_search
            )

        results = await self._provider.search(query, limit=1, safe_search=safe_search)
        return results[0] if results else None

    async def resolve_playlist(
        self,
        requester: Requester | None,
        playlist: str | Playlist | Sequence[Song],
        source: str = NATIVE_SOURCE,
    ) -> Playlist:
        """Resolve a playlist URL or a collection of songs into a Playlist.

        Entries the provider lists without a thumbnail are removed or private
        videos and are dropped.
        """
        if isinstance(playlist, Playlist):
            return playlist

        if isinstance(playlist, str):
            metadata = await self._provider.fetch_playlist(playlist, limit=None)
            return self._playlist_from_metadata(requester, metadata, source)

        return Playlist.build(
            list(playlist), requester, properties={"source": source}, allow_empty=True
        )

    def _playlist_from_metadata(
        self, requester: Requester | None, metadata: PlaylistMetadata, source: str
    ) -> Playlist:
        available = [entry for entry in metadata.entries if entry.has_thumbnail]
        dropped = len(metadata.entries) - len(available)
        if dropped:
            logger.info(LogTemplates.PLAYLIST_FILTERED, dropped, metadata.url)

        songs = [Song.from_metadata(entry, requester) for entry in available]
        return Playlist.build(
            songs,
            requester,
            properties={
                "name": metadata.title,
                "url": metadata.url,
                "thumbnail": metadata.thumbnail,
                "source": source,
            },
            allow_empty=True,
        )

    async def create_custom_playlist(
        self,
        requester: Requester | None,
        songs: Sequence[Song | SearchResult | str],
        properties: Mapping[str, Any] | None = None,
        parallel: bool = True,
    ) -> Playlist:
        """Build a playlist from songs, search results and URLs.

        Entries that fail to resolve are dropped; playlists are expanded into
        their songs in place. With ``parallel`` all entries
        resolve concurrently; otherwise one after another. Input order is kept
        either way.
        """
        if isinstance(songs, str) or not isinstance(songs, Sequence):
            raise InvalidInputTypeError(songs, ErrorMessages.INPUTS_NOT_A_LIST)
        if not songs:
            raise EmptyInputError()

        candidates = [s for s in songs if isinstance(s, Song | SearchResult) or is_url(s)]
        if not candidates:
            raise EmptyInputError()

        if parallel:
            resolved = await asyncio.gather(
                *(self._resolve_entry(requester, entry) for entry in candidates)
            )
        else:
            resolved = [await self._resolve_entry(requester, entry) for entry in candidates]

        playable: list[Song] = []
        for entry in resolved:
            if isinstance(entry, Playlist):
                playable.extend(entry.songs)
            elif isinstance(entry, Song):
                playable.append(entry)
        if not playable:
            raise NoValidEntriesError(len(candidates))

        return Playlist.build(playable, requester, properties=properties)

    async def _resolve_entry(
        self, requester: Requester | None, entry: Song | SearchResult | str
    ) -> Song | Playlist | None:
        try:
            return await self.resolve_song(requester, entry)
        except Exception as e:
            logger.warning(LogTemplates.RESOLVE_ENTRY_FAILED, entry, e)
            return None
