"""Core domain entities for the music bounded context."""

from __future__ import annotations

import asyncio
import random
import time
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PrivateAttr

from discord_queue_player.domain.music.value_objects import (
    NATIVE_SOURCE,
    RepeatMode,
    Requester,
    SearchResultType,
    SongSource,
    TrackMetadata,
)
from discord_queue_player.domain.shared.datetime_utils import format_duration
from discord_queue_player.domain.shared.exceptions import EmptyPlaylistError
from discord_queue_player.domain.shared.types import (
    DiscordSnowflake,
    DurationSeconds,
    NonEmptyStr,
    NonNegativeInt,
    PositiveInt,
    VolumePercent,
)


class SearchResult(BaseModel):
    """A search candidate. Not playable until it is resolved again."""

    model_config = ConfigDict(frozen=True)

    type: str = SearchResultType.VIDEO.value
    id: NonEmptyStr
    url: NonEmptyStr
    name: NonEmptyStr = "Unknown Title"
    duration: DurationSeconds = 0
    uploader: str | None = None
    thumbnail: str | None = None

    @property
    def formatted_duration(self) -> str:
        return format_duration(self.duration)


class SongReference(BaseModel):
    """Id-only history entry kept when full songs are not retained."""

    model_config = ConfigDict(frozen=True)

    id: NonEmptyStr


class Song(BaseModel):
    """One playable unit.

    ``info`` (native songs) and ``stream_url`` (plugin songs) are filled in
    lazily right before the song is played, and dropped again when the song
    moves into the queue history.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: NonEmptyStr
    url: NonEmptyStr = Field(validation_alias=AliasChoices("url", "webpage_url"))
    source: SongSource = SongSource.YOUTUBE
    name: NonEmptyStr = Field(
        default="Unknown Title", validation_alias=AliasChoices("name", "title")
    )
    duration: DurationSeconds = 0
    age_restricted: bool = False
    is_live: bool = False
    thumbnail: str | None = None
    uploader: str | None = None
    views: NonNegativeInt = 0
    plugin: str | None = None

    info: TrackMetadata | None = Field(default=None, repr=False)
    stream_url: str | None = Field(default=None, repr=False)
    related_songs: list[Song] = Field(default_factory=list, repr=False)

    requester: Requester | None = None

    @classmethod
    def from_metadata(
        cls,
        metadata: TrackMetadata,
        requester: Requester | None = None,
        *,
        source: SongSource = SongSource.YOUTUBE,
        plugin: str | None = None,
    ) -> Song:
        """Build a song from provider metadata.

        A full native lookup (one that carries a stream URL) is kept as ``info``
        so the first play does not need to fetch it again.
        """
        song = cls(
            id=metadata.id,
            url=metadata.url,
            source=source,
            name=metadata.title,
            duration=metadata.duration,
            age_restricted=metadata.age_restricted,
            is_live=metadata.is_live,
            thumbnail=metadata.thumbnail,
            uploader=metadata.uploader,
            views=metadata.views,
            plugin=plugin,
            requester=requester,
        )
        if metadata.stream_url:
            if source is SongSource.YOUTUBE:
                song.info = metadata
            else:
                song.stream_url = metadata.stream_url
        return song

    @classmethod
    def from_record(cls, record: Mapping[str, Any], requester: Requester | None = None) -> Song:
        """Wrap caller-provided track fields as a song, trusting the data as given."""
        data = dict(record)
        if requester is not None:
            data.setdefault("requester", requester)
        return cls.model_validate(data)

    @classmethod
    def from_search_result(cls, result: SearchResult, requester: Requester | None = None) -> Song:
        return cls(
            id=result.id,
            url=result.url,
            name=result.name,
            duration=result.duration,
            uploader=result.uploader,
            thumbnail=result.thumbnail,
            requester=requester,
        )

    @property
    def is_native(self) -> bool:
        return self.source is SongSource.YOUTUBE

    @property
    def formatted_duration(self) -> str:
        return format_duration(self.duration)

    def history_entry(self, full: bool) -> Song | SongReference:
        """Return what the queue history keeps for this song once it has been played."""
        if not full:
            return SongReference(id=self.id)
        return self.model_copy(update={"info": None, "stream_url": None, "related_songs": []})


class Playlist(BaseModel):
    """Ordered collection of songs sharing a source and requester."""

    songs: list[Song] = Field(default_factory=list)
    source: NonEmptyStr = NATIVE_SOURCE
    requester: Requester | None = None
    name: NonEmptyStr = "Unknown Playlist"
    url: str | None = None
    thumbnail: str | None = None

    @classmethod
    def build(
        cls,
        songs: Iterable[Song],
        requester: Requester | None = None,
        *,
        properties: Mapping[str, Any] | None = None,
        allow_empty: bool = False,
    ) -> Playlist:
        """Create a playlist, rejecting an empty one unless ``allow_empty`` is set.

        ``properties`` may carry ``name``, ``url``, ``thumbnail`` and ``source``.
        Without a name, the playlist is named after its first song.
        """
        song_list = list(songs)
        if not song_list and not allow_empty:
            raise EmptyPlaylistError()

        props = dict(properties or {})
        if not props.get("name") and song_list:
            first = song_list[0].name
            props["name"] = (
                f"{first} and {len(song_list) - 1} more songs." if len(song_list) > 1 else first
            )
        props = {k: v for k, v in props.items() if v is not None}
        return cls(songs=song_list, requester=requester, **props)

    @property
    def duration(self) -> int:
        return sum(song.duration for song in self.songs)

    @property
    def formatted_duration(self) -> str:
        return format_duration(self.duration)


class Queue(BaseModel):
    """Per-guild playback state.

    ``songs[0]`` is the song currently playing. The queue exclusively owns its
    voice ``connection`` and the current audio ``stream``; both are opaque
    handles here, driven by the playback controller.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    guild_id: DiscordSnowflake
    songs: list[Song] = Field(default_factory=list)
    previous_songs: list[Song | SongReference] = Field(default_factory=list)
    repeat_mode: RepeatMode = RepeatMode.OFF
    autoplay: bool = False
    stopped: bool = False
    next: bool = False
    prev: bool = False
    prev_steps: PositiveInt = 1
    paused: bool = False
    begin_time: NonNegativeInt = 0
    volume: VolumePercent = 50
    filters: list[str] = Field(default_factory=list)
    text_channel_id: DiscordSnowflake | None = None

    connection: Any = Field(default=None, repr=False)
    stream: Any = Field(default=None, repr=False)

    _lock: asyncio.Lock = PrivateAttr(default_factory=asyncio.Lock)
    _stream_started_at: float | None = PrivateAttr(default=None)
    _paused_at: float | None = PrivateAttr(default=None)

    @property
    def transition_lock(self) -> asyncio.Lock:
        """Serialises finish/error transitions for this queue."""
        return self._lock

    @property
    def current_song(self) -> Song | None:
        return self.songs[0] if self.songs else None

    @property
    def has_up_next(self) -> bool:
        return len(self.songs) > 1

    @property
    def duration(self) -> int:
        return sum(song.duration for song in self.songs)

    @property
    def formatted_duration(self) -> str:
        return format_duration(self.duration)

    @property
    def current_time(self) -> int:
        """Playback position of the current song in seconds."""
        if self._stream_started_at is None:
            return self.begin_time
        now = self._paused_at if self._paused_at is not None else time.monotonic()
        return self.begin_time + int(now - self._stream_started_at)

    def mark_stream_started(self) -> None:
        self._stream_started_at = time.monotonic()
        self._paused_at = None

    def mark_paused(self) -> None:
        self.paused = True
        if self._paused_at is None:
            self._paused_at = time.monotonic()

    def mark_resumed(self) -> None:
        self.paused = False
        if self._paused_at is not None and self._stream_started_at is not None:
            self._stream_started_at += time.monotonic() - self._paused_at
        self._paused_at = None

    def add_songs(self, songs: Iterable[Song], *, up_next: bool = False) -> None:
        """Append songs, or insert them right after the current song when ``up_next``."""
        new_songs = list(songs)
        if up_next and self.songs:
            self.songs[1:1] = new_songs
        else:
            self.songs.extend(new_songs)

    def archive(self, song: Song, *, full: bool) -> None:
        self.previous_songs.append(song.history_entry(full))

    def history_ids(self) -> set[str]:
        return {entry.id for entry in self.previous_songs}

    def shuffle(self) -> None:
        """Shuffle the upcoming songs, keeping the current one in place."""
        if len(self.songs) < 3:
            return
        upcoming = self.songs[1:]
        random.shuffle(upcoming)
        self.songs[1:] = upcoming

    def toggle_filter(self, name: str) -> bool:
        """Toggle an audio filter and return whether it is now active."""
        if name in self.filters:
            self.filters.remove(name)
            return False
        self.filters.append(name)
        return True

    def toggle_autoplay(self) -> bool:
        self.autoplay = not self.autoplay
        return self.autoplay


Song.model_rebuild()
