"""
Music Bounded Context

Songs, playlists, search candidates and the per-guild playback queue.
"""

from discord_queue_player.domain.music.entities import (
    Playlist,
    Queue,
    SearchResult,
    Song,
    SongReference,
)
from discord_queue_player.domain.music.value_objects import (
    PlaybackTarget,
    PlaylistMetadata,
    RepeatMode,
    Requester,
    SearchResultType,
    SongSource,
    TrackMetadata,
)

__all__ = [
    # Entities
    "Song",
    "SongReference",
    "Playlist",
    "SearchResult",
    "Queue",
    # Value Objects
    "RepeatMode",
    "Requester",
    "SearchResultType",
    "SongSource",
    "TrackMetadata",
    "PlaylistMetadata",
    "PlaybackTarget",
]
