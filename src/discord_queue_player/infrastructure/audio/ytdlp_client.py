"""Thin async wrapper around yt-dlp with a TTL cache for single-track lookups."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from yt_dlp import YoutubeDL

from discord_queue_player.config.settings import AudioSettings
from discord_queue_player.domain.shared.exceptions import ProviderError
from discord_queue_player.domain.shared.messages import ErrorMessages, LogTemplates
from discord_queue_player.infrastructure.audio.models import (
    CACHE_MAX_SIZE,
    CACHE_TTL,
    LOG_URL_TRUNCATE,
    SAFE_SEARCH_AGE_LIMIT,
    CacheEntry,
    YtDlpOpts,
    YtDlpPlaylistInfo,
    YtDlpTrackInfo,
)

logger = logging.getLogger(__name__)


class YtDlpClient:
    """Runs yt-dlp extractions off the event loop.

    Full single-track lookups are cached per URL for ``CACHE_TTL`` seconds;
    the stream URLs they carry expire upstream after a few hours anyway.
    """

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        cookie = self._settings.youtube_cookie.get_secret_value()
        self._base_opts = YtDlpOpts(
            format=self._settings.ytdlp_format or "bestaudio/best",
            cookiefile=self._settings.cookie_file,
            http_headers={"Cookie": cookie} if cookie else None,
        )
        self._cache: dict[str, CacheEntry] = {}

    @property
    def http_headers(self) -> dict[str, str]:
        return dict(self._base_opts.http_headers or {})

    def _get_opts(self, **overrides: Any) -> YtDlpOpts:
        if overrides:
            return self._base_opts.model_copy(update=overrides)
        return self._base_opts

    def _extract(self, target: str, opts: YtDlpOpts) -> dict[str, Any]:
        try:
            with YoutubeDL(params=opts.to_params()) as ydl:
                data = ydl.extract_info(target, download=False)
        except Exception as e:
            logger.warning(LogTemplates.YTDLP_FAILED_EXTRACT, target[:LOG_URL_TRUNCATE])
            raise ProviderError(str(e), url=target) from e

        if not isinstance(data, dict):
            raise ProviderError(ErrorMessages.PROVIDER_NO_RESULT.format(url=target), url=target)
        return dict(data)

    def _extract_info_sync(self, url: str, *, full: bool) -> YtDlpTrackInfo:
        now = time.time()
        cached = self._cache.get(url)
        if cached is not None and cached.info is not None:
            if now - cached.cached_at < CACHE_TTL:
                logger.debug(LogTemplates.CACHE_HIT_URL, url[:LOG_URL_TRUNCATE])
                return cached.info
            self._cache.pop(url, None)

        opts = self._get_opts() if full else self._get_opts(format=None, extract_flat="discard")
        info = YtDlpTrackInfo.model_validate(self._extract(url, opts))
        if full:
            self._store(url, info, now)
        return info

    def _store(self, url: str, info: YtDlpTrackInfo, now: float) -> None:
        self._cache[url] = CacheEntry(info=info, cached_at=now)
        if len(self._cache) <= CACHE_MAX_SIZE:
            return

        expired = [k for k, entry in self._cache.items() if now - entry.cached_at >= CACHE_TTL]
        for k in expired:
            self._cache.pop(k, None)
        if expired:
            logger.debug(LogTemplates.CACHE_EXPIRED_CLEANED, len(expired))

    def _extract_playlist_sync(self, url: str, limit: int | None) -> YtDlpPlaylistInfo:
        opts = self._get_opts(noplaylist=False, extract_flat="in_playlist", playlistend=limit)
        return YtDlpPlaylistInfo.model_validate(self._extract(url, opts))

    def _search_sync(self, query: str, limit: int, safe_search: bool) -> list[YtDlpTrackInfo]:
        opts = self._get_opts(
            extract_flat="in_playlist",
            age_limit=SAFE_SEARCH_AGE_LIMIT if safe_search else None,
        )
        try:
            data = self._extract(f"ytsearch{limit}:{query}", opts)
        except ProviderError:
            logger.warning(LogTemplates.YTDLP_FAILED_SEARCH, query)
            raise
        return YtDlpPlaylistInfo.model_validate(data).entries

    async def extract_info(self, url: str, *, full: bool = True) -> YtDlpTrackInfo:
        return await asyncio.to_thread(self._extract_info_sync, url, full=full)

    async def extract_playlist(self, url: str, *, limit: int | None = None) -> YtDlpPlaylistInfo:
        return await asyncio.to_thread(self._extract_playlist_sync, url, limit)

    async def search(
        self, query: str, *, limit: int = 1, safe_search: bool = False
    ) -> list[YtDlpTrackInfo]:
        return await asyncio.to_thread(self._search_sync, query, limit, safe_search)

    def clear_cache(self) -> None:
        self._cache.clear()
