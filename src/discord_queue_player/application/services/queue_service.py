"""Queue Application Service - caller-facing operations on a guild's live queue."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel

from ...domain.music.entities import Song
from ...domain.music.value_objects import RepeatMode
from ...domain.shared.exceptions import (
    NoPreviousError,
    NoUpNextError,
    QueueNotFoundError,
    QueueOperationError,
    UnknownFilterError,
)
from ...domain.shared.messages import ErrorMessages
from ...domain.shared.types import DiscordSnowflake, NonNegativeInt

if TYPE_CHECKING:
    from ...domain.music.entities import Queue
    from .playback_service import PlaybackController

logger = logging.getLogger(__name__)


class QueueInfo(BaseModel):

    current_song: Song | None
    upcoming_songs: list[Song]
    repeat_mode: RepeatMode
    autoplay: bool
    volume: NonNegativeInt
    filters: list[str]
    paused: bool
    current_time: NonNegativeInt
    total_duration_seconds: NonNegativeInt

    @property
    def total_songs(self) -> int:
        return len(self.upcoming_songs) + (1 if self.current_song else 0)


class QueueService:
    """Skip, seek, repeat and the other mutations a caller may request on a queue."""

    def __init__(self, *, controller: PlaybackController) -> None:
        self._controller = controller

    def _require(self, guild_id: DiscordSnowflake) -> Queue:
        queue = self._controller.get_queue(guild_id)
        if queue is None:
            raise QueueNotFoundError(guild_id)
        return queue

    def get_info(self, guild_id: DiscordSnowflake) -> QueueInfo:
        queue = self._require(guild_id)
        return QueueInfo(
            current_song=queue.current_song,
            upcoming_songs=list(queue.songs[1:]),
            repeat_mode=queue.repeat_mode,
            autoplay=queue.autoplay,
            volume=queue.volume,
            filters=list(queue.filters),
            paused=queue.paused,
            current_time=queue.current_time,
            total_duration_seconds=queue.duration,
        )

    async def skip(self, guild_id: DiscordSnowflake) -> Song:
        """Advance to the next song, fetching a related one first under autoplay.

        Returns the song that will play next.
        """
        queue = self._require(guild_id)
        if not queue.has_up_next:
            if not queue.autoplay:
                raise NoUpNextError()
            await self._controller.add_related_song(queue)

        upcoming = queue.songs[1]
        self._controller.skip(queue)
        return upcoming

    async def previous(self, guild_id: DiscordSnowflake) -> Song:
        """Step back to the most recently played song.

        Under REPEAT_ALL the last song of the queue is rotated to the front
        instead, so history is not consumed.
        """
        queue = self._require(guild_id)
        if not self._controller.settings.save_previous_songs:
            raise QueueOperationError(ErrorMessages.PREVIOUS_DISABLED, code="PREVIOUS_DISABLED")

        if queue.repeat_mode is RepeatMode.REPEAT_ALL:
            target = queue.songs[-1]
        elif queue.previous_songs:
            entry = queue.previous_songs[-1]
            if not isinstance(entry, Song):
                raise QueueOperationError(ErrorMessages.PREVIOUS_DISABLED, code="PREVIOUS_DISABLED")
            target = entry
        else:
            raise NoPreviousError()

        self._controller.previous(queue)
        return target

    async def jump(self, guild_id: DiscordSnowflake, position: int) -> Song:
        """Jump to an upcoming song (``position >= 1``) or back through history (``< 0``).

        Songs jumped over forwards are dropped; stepping back ``n`` replays the
        ``n``-th most recent song and then the ones played after it.
        """
        queue = self._require(guild_id)
        invalid = QueueOperationError(
            ErrorMessages.INVALID_JUMP.format(position=position), code="INVALID_JUMP"
        )

        if position > 0:
            if position >= len(queue.songs):
                raise invalid
            target = queue.songs[position]
            del queue.songs[1:position]
            self._controller.skip(queue)
            return target

        if position == 0 or -position > len(queue.previous_songs):
            raise invalid
        if queue.repeat_mode is RepeatMode.REPEAT_ALL:
            raise invalid
        if not self._controller.settings.save_previous_songs:
            raise QueueOperationError(ErrorMessages.PREVIOUS_DISABLED, code="PREVIOUS_DISABLED")

        steps = -position
        replayed = queue.previous_songs[-steps:]
        if not all(isinstance(entry, Song) for entry in replayed):
            raise invalid

        self._controller.previous(queue, steps=steps)
        return replayed[0]

    def shuffle(self, guild_id: DiscordSnowflake) -> None:
        self._require(guild_id).shuffle()

    def set_volume(self, guild_id: DiscordSnowflake, percent: int) -> int:
        if not 0 <= percent <= 200:
            raise QueueOperationError(ErrorMessages.INVALID_VOLUME, code="INVALID_VOLUME")
        queue = self._require(guild_id)
        queue.volume = percent
        if queue.connection is not None:
            queue.connection.set_volume(percent / 100)
        return percent

    def set_repeat_mode(self, guild_id: DiscordSnowflake, mode: RepeatMode | None = None) -> RepeatMode:
        """Set the repeat mode, or cycle OFF → REPEAT_ONE → REPEAT_ALL when *mode* is None."""
        queue = self._require(guild_id)
        queue.repeat_mode = mode if mode is not None else queue.repeat_mode.next_mode()
        return queue.repeat_mode

    def toggle_autoplay(self, guild_id: DiscordSnowflake) -> bool:
        return self._require(guild_id).toggle_autoplay()

    async def set_filter(self, guild_id: DiscordSnowflake, name: str | None) -> list[str]:
        """Toggle the named filter, or clear all filters with None.

        The stream restarts at the current position so the change is audible
        immediately. Returns the active filters.
        """
        queue = self._require(guild_id)
        if name is None:
            queue.filters.clear()
        elif name not in self._controller.filters:
            raise UnknownFilterError(name)
        else:
            queue.toggle_filter(name)

        queue.begin_time = queue.current_time
        await self._controller.restart_stream(queue)
        return list(queue.filters)

    async def seek(self, guild_id: DiscordSnowflake, seconds: int) -> None:
        if seconds < 0:
            raise QueueOperationError(ErrorMessages.INVALID_SEEK, code="INVALID_SEEK")
        queue = self._require(guild_id)
        queue.begin_time = seconds
        await self._controller.restart_stream(queue)

    def pause(self, guild_id: DiscordSnowflake) -> None:
        queue = self._require(guild_id)
        if queue.connection is not None:
            queue.connection.pause()
        queue.mark_paused()

    def resume(self, guild_id: DiscordSnowflake) -> None:
        queue = self._require(guild_id)
        if queue.connection is not None:
            queue.connection.resume()
        queue.mark_resumed()

    async def stop(self, guild_id: DiscordSnowflake) -> None:
        await self._controller.stop(self._require(guild_id))
