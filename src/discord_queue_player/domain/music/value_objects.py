"""Immutable value objects for the music bounded context."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from discord_queue_player.domain.shared.types import (
    DiscordSnowflake,
    DurationSeconds,
    NonEmptyStr,
    NonNegativeInt,
)

NATIVE_SOURCE = "youtube"


class SongSource(Enum):
    """Where a song's playable stream comes from."""

    YOUTUBE = NATIVE_SOURCE  # native provider, streamed from its metadata
    PLUGIN = "plugin"  # extractor plugin, streamed from a resolved direct URL


class SearchResultType(Enum):
    VIDEO = "video"
    PLAYLIST = "playlist"


class RepeatMode(Enum):
    """Repeat policy applied when a song finishes naturally."""

    OFF = 0
    REPEAT_ONE = 1  # Replay the current song
    REPEAT_ALL = 2  # Rotate the whole queue

    def next_mode(self) -> RepeatMode:
        """Cycle to next repeat mode."""
        modes = list(RepeatMode)
        current_index = modes.index(self)
        return modes[(current_index + 1) % len(modes)]


class Requester(BaseModel):
    """Who asked for a song, and where their request came from.

    ``channel_id`` is the text channel an interactive search can prompt in;
    requests without one (API calls, autoplay) never wait for a reply.
    """

    model_config = ConfigDict(frozen=True)

    id: DiscordSnowflake
    name: NonEmptyStr = "unknown"
    channel_id: DiscordSnowflake | None = None


class TrackMetadata(BaseModel):
    """Provider-neutral description of a single track.

    A full lookup carries ``stream_url``; a basic lookup leaves it unset.
    ``has_thumbnail`` is False for items the provider lists but can no longer
    serve (removed or private entries of a playlist).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: NonEmptyStr
    url: NonEmptyStr
    title: NonEmptyStr = "Unknown Title"
    duration: DurationSeconds = 0
    thumbnail: str | None = None
    uploader: str | None = None
    views: NonNegativeInt = 0
    age_restricted: bool = False
    is_live: bool = False
    stream_url: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)

    @property
    def has_thumbnail(self) -> bool:
        return bool(self.thumbnail) and "no_thumbnail" not in (self.thumbnail or "")


class PlaylistMetadata(BaseModel):
    """Provider-neutral description of a playlist and all of its entries."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    url: NonEmptyStr
    title: NonEmptyStr = "Unknown Playlist"
    thumbnail: str | None = None
    entries: list[TrackMetadata] = Field(default_factory=list)


class PlaybackTarget(BaseModel):
    """Where a queue plays: the guild, its voice channel handle and text channel."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    guild_id: DiscordSnowflake
    voice_channel: Any = Field(repr=False)
    text_channel_id: DiscordSnowflake | None = None
    nsfw: bool = False
