"""
Unit Tests for the Music Domain

Tests for:
- Song construction from metadata, records and search results
- History entries
- Playlist building and naming
- Queue mutation helpers and playback position tracking
- RepeatMode cycling and duration formatting
"""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from discord_queue_player.domain.music.entities import (
    Playlist,
    Queue,
    SearchResult,
    Song,
    SongReference,
)
from discord_queue_player.domain.music.value_objects import (
    PlaybackTarget,
    RepeatMode,
    Requester,
    SongSource,
    TrackMetadata,
)
from discord_queue_player.domain.shared.datetime_utils import format_duration
from discord_queue_player.domain.shared.exceptions import EmptyPlaylistError


class TestSong:
    """Tests for Song construction."""

    def test_from_full_native_metadata_keeps_info(self, metadata_factory):
        """Should keep a full native lookup as the song's info."""
        metadata = metadata_factory("aaaaaaaaaaa", views=12)

        song = Song.from_metadata(metadata)

        assert song.is_native
        assert song.info is metadata
        assert song.stream_url is None
        assert song.views == 12
        assert song.name == "Song aaaaaaaaaaa"

    def test_from_plugin_metadata_keeps_stream_url(self, metadata_factory):
        """Should keep the stream URL of plugin songs on the song itself."""
        song = Song.from_metadata(
            metadata_factory("x1"), source=SongSource.PLUGIN, plugin="yt-dlp"
        )

        assert not song.is_native
        assert song.info is None
        assert song.stream_url == "https://stream.example/x1"
        assert song.plugin == "yt-dlp"

    def test_from_basic_metadata_has_nothing_to_stream(self, metadata_factory):
        song = Song.from_metadata(metadata_factory("aaaaaaaaaaa", stream_url=None))

        assert song.info is None
        assert song.stream_url is None

    def test_from_record_accepts_aliases(self):
        """Should accept yt-dlp style field names in records."""
        requester = Requester(id=1)

        song = Song.from_record(
            {"id": "r1", "webpage_url": "https://example.com/r1", "title": "Recorded", "foo": 1},
            requester,
        )

        assert song.url == "https://example.com/r1"
        assert song.name == "Recorded"
        assert song.requester == requester

    def test_from_record_requires_url(self):
        with pytest.raises(ValidationError):
            Song.from_record({"id": "r1"})

    def test_from_search_result(self):
        result = SearchResult(
            id="s1", url="https://www.youtube.com/watch?v=s1", name="Found", duration=61
        )

        song = Song.from_search_result(result)

        assert song.id == "s1"
        assert song.formatted_duration == "01:01"

    def test_history_entry(self, song_factory):
        """Should drop stream data and related songs from full entries, or keep only the id."""
        song = song_factory("aaaaaaaaaaa")
        song.related_songs = [song_factory("ccccccccccc")]

        full = song.history_entry(full=True)
        brief = song.history_entry(full=False)

        assert isinstance(full, Song)
        assert full.info is None
        assert full.stream_url is None
        assert full.related_songs == []
        assert song.info is not None
        assert len(song.related_songs) == 1
        assert brief == SongReference(id="aaaaaaaaaaa")


class TestPlaylist:
    """Tests for Playlist.build."""

    def test_named_after_first_song(self, song_factory):
        playlist = Playlist.build([song_factory("a1"), song_factory("b2"), song_factory("c3")])

        assert playlist.name == "Song a1 and 2 more songs."
        assert playlist.duration == 600
        assert playlist.formatted_duration == "10:00"

    def test_single_song_name(self, song_factory):
        assert Playlist.build([song_factory("a1")]).name == "Song a1"

    def test_properties_applied(self, song_factory):
        playlist = Playlist.build(
            [song_factory("a1")],
            properties={"name": "Chill", "url": "https://example.com/list", "thumbnail": None},
        )

        assert playlist.name == "Chill"
        assert playlist.url == "https://example.com/list"
        assert playlist.thumbnail is None

    def test_empty_playlist_rejected(self):
        """Should raise EmptyPlaylistError unless empty playlists are allowed."""
        with pytest.raises(EmptyPlaylistError):
            Playlist.build([])

        assert Playlist.build([], allow_empty=True).songs == []


class TestQueue:
    """Tests for Queue helpers."""

    def _queue(self, song_factory, *ids) -> Queue:
        return Queue(guild_id=1, songs=[song_factory(i) for i in ids])

    def test_add_songs_up_next(self, song_factory):
        queue = self._queue(song_factory, "a", "b")

        queue.add_songs([song_factory("c")], up_next=True)
        queue.add_songs([song_factory("d")])

        assert [s.id for s in queue.songs] == ["a", "c", "b", "d"]

    def test_add_songs_up_next_to_empty_queue(self, song_factory):
        queue = Queue(guild_id=1)

        queue.add_songs([song_factory("a")], up_next=True)

        assert [s.id for s in queue.songs] == ["a"]

    def test_shuffle_keeps_head(self, song_factory):
        queue = self._queue(song_factory, "a", "b", "c", "d", "e")

        with patch("discord_queue_player.domain.music.entities.random.shuffle") as shuffle:
            shuffle.side_effect = lambda items: items.reverse()
            queue.shuffle()

        assert [s.id for s in queue.songs] == ["a", "e", "d", "c", "b"]

    def test_toggle_filter(self):
        queue = Queue(guild_id=1)

        assert queue.toggle_filter("echo") is True
        assert queue.filters == ["echo"]
        assert queue.toggle_filter("echo") is False
        assert queue.filters == []

    def test_archive_and_history_ids(self, song_factory):
        queue = self._queue(song_factory, "a", "b")

        queue.archive(queue.songs[0], full=False)
        queue.archive(queue.songs[1], full=True)

        assert queue.history_ids() == {"a", "b"}

    def test_current_time_tracks_pause(self):
        """Should not advance the position while paused."""
        queue = Queue(guild_id=1, begin_time=10)
        assert queue.current_time == 10

        with patch("discord_queue_player.domain.music.entities.time.monotonic") as clock:
            clock.return_value = 100.0
            queue.mark_stream_started()
            clock.return_value = 105.0
            queue.mark_paused()
            clock.return_value = 120.0
            assert queue.current_time == 15
            queue.mark_resumed()
            clock.return_value = 122.0
            assert queue.current_time == 17

        assert queue.paused is False

    def test_volume_bounds(self):
        with pytest.raises(ValidationError):
            Queue(guild_id=1, volume=201)


class TestValueObjects:
    def test_repeat_mode_cycle(self):
        assert RepeatMode.OFF.next_mode() is RepeatMode.REPEAT_ONE
        assert RepeatMode.REPEAT_ONE.next_mode() is RepeatMode.REPEAT_ALL
        assert RepeatMode.REPEAT_ALL.next_mode() is RepeatMode.OFF

    def test_track_metadata_thumbnail_availability(self):
        base = {"id": "a", "url": "https://example.com/a"}

        assert TrackMetadata(**base, thumbnail="https://img/a.jpg").has_thumbnail
        assert not TrackMetadata(**base).has_thumbnail
        assert not TrackMetadata(**base, thumbnail="https://img/no_thumbnail.jpg").has_thumbnail

    def test_playback_target_rejects_invalid_guild(self):
        with pytest.raises(ValidationError):
            PlaybackTarget(guild_id=0, voice_channel=object())

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0, "Live"), (None, "Live"), (59, "00:59"), (3600, "1:00:00"), (3725, "1:02:05")],
    )
    def test_format_duration(self, seconds, expected):
        assert format_duration(seconds) == expected
