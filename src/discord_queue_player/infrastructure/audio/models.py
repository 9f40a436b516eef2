"""Pydantic models for yt-dlp data transformation and configuration.

These are infrastructure-specific models for parsing external yt-dlp data,
caching extraction results, and configuring yt-dlp options.
"""

from __future__ import annotations

from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from discord_queue_player.domain.music.value_objects import TrackMetadata
from discord_queue_player.domain.shared.types import (
    NonEmptyStr,
    NonNegativeFloat,
    NonNegativeInt,
    PositiveInt,
)

CACHE_TTL: Final[int] = 3600
CACHE_MAX_SIZE: Final[int] = 500
DEFAULT_RETRIES: Final[int] = 3
DEFAULT_SOCKET_TIMEOUT: Final[int] = 10
LOG_URL_TRUNCATE: Final[int] = 60
# Viewer age handed to yt-dlp for safe searches; 18+ videos are skipped.
SAFE_SEARCH_AGE_LIMIT: Final[int] = 17

UNAVAILABLE_TITLES: Final[frozenset[str]] = frozenset({"[Private video]", "[Deleted video]"})


def _non_negative_or_none(v: Any) -> int | None:
    if v is None:
        return None
    try:
        val = int(v)
        return val if val >= 0 else None
    except (TypeError, ValueError):
        return None


class AudioFormatInfo(BaseModel):
    """A single audio format entry from yt-dlp extraction."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: NonEmptyStr | None = None
    acodec: NonEmptyStr | None = None
    abr: NonNegativeFloat | None = None


class YtDlpTrackInfo(BaseModel):
    """Trimmed yt-dlp extraction result for caching and metadata conversion.

    Extra fields from yt-dlp are silently ignored, keeping memory usage low.
    Before-validators coerce garbage from external yt-dlp data gracefully.
    Flat playlist entries carry only ``id``, ``url`` and ``title``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: NonEmptyStr | None = None
    webpage_url: NonEmptyStr | None = None
    url: NonEmptyStr | None = None
    title: NonEmptyStr = "Unknown Title"
    duration: NonNegativeInt | None = None
    thumbnail: NonEmptyStr | None = None
    thumbnails: list[dict[str, Any]] = Field(default_factory=list)
    uploader: NonEmptyStr | None = None
    channel: NonEmptyStr | None = None
    view_count: NonNegativeInt | None = None
    age_limit: NonNegativeInt | None = None
    is_live: bool | None = None
    extractor_key: NonEmptyStr | None = None
    formats: list[AudioFormatInfo] = Field(default_factory=list)

    @field_validator(
        "id", "webpage_url", "url", "thumbnail", "uploader", "channel", "extractor_key",
        mode="before",
    )
    @classmethod
    def _coerce_empty_to_none(cls, v: Any) -> str | None:
        """Convert empty / whitespace-only / non-string values to None."""
        if not isinstance(v, str) or not v.strip():
            return None
        return v

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            return "Unknown Title"
        return v

    @field_validator("duration", "view_count", "age_limit", mode="before")
    @classmethod
    def _coerce_count(cls, v: Any) -> int | None:
        return _non_negative_or_none(v)

    @property
    def page_url(self) -> str | None:
        return self.webpage_url or self.url

    @property
    def is_unavailable(self) -> bool:
        return self.title in UNAVAILABLE_TITLES

    @property
    def best_thumbnail(self) -> str | None:
        if self.is_unavailable:
            return None
        if self.thumbnail:
            return self.thumbnail
        urls = [t.get("url") for t in self.thumbnails if isinstance(t.get("url"), str)]
        return urls[-1] if urls else None

    def stream_url(self) -> str | None:
        """The media URL chosen by the format selector, else the best audio format."""
        if not self.formats:
            return None
        if self.url and self.url != self.webpage_url:
            return self.url
        audio_formats = [f for f in self.formats if f.acodec not in (None, "none") and f.url]
        if audio_formats:
            return max(audio_formats, key=lambda f: f.abr or 0).url
        return None

    def to_metadata(self, *, full: bool, fallback_url: str | None = None) -> TrackMetadata | None:
        url = self.page_url or fallback_url
        track_id = self.id or url
        if not url or not track_id:
            return None
        return TrackMetadata(
            id=track_id,
            url=url,
            title=self.title,
            duration=self.duration or 0,
            thumbnail=self.best_thumbnail,
            uploader=self.uploader or self.channel,
            views=self.view_count or 0,
            age_restricted=(self.age_limit or 0) >= 18,
            is_live=bool(self.is_live),
            stream_url=self.stream_url() if full else None,
        )


class YtDlpPlaylistInfo(BaseModel):
    """Flat playlist extraction result."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: NonEmptyStr | None = None
    title: NonEmptyStr | None = None
    webpage_url: NonEmptyStr | None = None
    thumbnails: list[dict[str, Any]] = Field(default_factory=list)
    entries: list[YtDlpTrackInfo] = Field(default_factory=list)

    @field_validator("entries", mode="before")
    @classmethod
    def _drop_empty_entries(cls, v: Any) -> list[Any]:
        if not isinstance(v, list):
            return list(v) if v is not None else []
        return [e for e in v if e]


class CacheEntry(BaseModel):
    """Cached yt-dlp extraction result with expiry timestamp."""

    model_config = ConfigDict(frozen=True)

    info: YtDlpTrackInfo | None = None
    cached_at: NonNegativeFloat


class YtDlpOpts(BaseModel):
    """Typed yt-dlp configuration options passed to YoutubeDL."""

    model_config = ConfigDict(frozen=True)

    quiet: bool = True
    noprogress: bool = True
    no_warnings: bool = True
    noplaylist: bool = True
    default_search: NonEmptyStr = "ytsearch"
    retries: PositiveInt = DEFAULT_RETRIES
    socket_timeout: PositiveInt = DEFAULT_SOCKET_TIMEOUT
    format: NonEmptyStr | None = None
    skip_download: bool = True
    extract_flat: NonEmptyStr | bool = False
    playlistend: PositiveInt | None = None
    age_limit: NonNegativeInt | None = None
    cookiefile: NonEmptyStr | None = None
    http_headers: dict[str, str] | None = None

    def to_params(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
