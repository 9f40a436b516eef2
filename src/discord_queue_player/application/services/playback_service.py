"""Playback Application Service - owns per-guild queues and drives their playback.

Every queue moves through a small lifecycle::

    created ──join──▶ playing ⇄ (finish | error | skip | previous) ──▶ deleted

Transitions triggered by the voice layer (a stream ending or failing) are
marshalled back onto the event loop and run one at a time per queue, under
the queue's transition lock. Callbacks for a queue that has since been
replaced or deleted, or for a stream that is no longer current, are ignored.
Events raised during a transition are held back and published once the lock
is released, so handlers may start another transition on the same queue.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from ...domain.music.entities import Playlist, Queue, Song
from ...domain.music.value_objects import RepeatMode
from ...domain.shared.events import (
    AddList,
    AddSong,
    DomainEvent,
    ErrorRaised,
    EventBus,
    FinishSong,
    NoRelated,
    PlaySong,
    QueueCreated,
    QueueDeleted,
    QueueFinished,
    VoiceConnected,
    VoiceDisconnected,
    get_event_bus,
)
from ...domain.shared.exceptions import (
    DomainError,
    EmptyPlaylistError,
    InvalidInputTypeError,
    JoinVoiceChannelError,
    NoRelatedSongError,
    PlaybackError,
    PlaybackErrorKind,
    ProviderError,
)
from ...domain.shared.messages import ErrorMessages, LogTemplates
from ...domain.shared.types import DiscordSnowflake
from ..interfaces.stream_builder import AudioStream, StreamOptions

if TYPE_CHECKING:
    from ...config.settings import PlayerSettings
    from ...domain.music.value_objects import PlaybackTarget, Requester
    from ..interfaces.native_provider import NativeProvider
    from ..interfaces.stream_builder import StreamBuilder
    from ..interfaces.voice_adapter import VoiceConnection, VoiceConnector
    from .extractor_registry import ExtractorRegistry
    from .resolver import SongInput, SongResolver

logger = logging.getLogger(__name__)

_deferred_events: ContextVar[list[DomainEvent] | None] = ContextVar(
    "deferred_events", default=None
)


class PlaybackController:
    """Creates queues, connects them to voice and advances them song by song."""

    def __init__(
        self,
        *,
        provider: NativeProvider,
        extractors: ExtractorRegistry,
        resolver: SongResolver,
        voice_connector: VoiceConnector,
        stream_builder: StreamBuilder,
        settings: PlayerSettings,
        filters: Mapping[str, str] | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._provider = provider
        self._extractors = extractors
        self._resolver = resolver
        self._voice = voice_connector
        self._streams = stream_builder
        self._settings = settings
        self._filters = dict(filters or {})
        self._events = event_bus or get_event_bus()

        self._queues: dict[DiscordSnowflake, Queue] = {}

    # ─────────────────────────────────────────────────────────────────
    # Registry
    # ─────────────────────────────────────────────────────────────────

    @property
    def settings(self) -> PlayerSettings:
        return self._settings

    @property
    def filters(self) -> Mapping[str, str]:
        return self._filters

    def get_queue(self, guild_id: DiscordSnowflake) -> Queue | None:
        return self._queues.get(guild_id)

    def _is_live(self, queue: Queue) -> bool:
        return self._queues.get(queue.guild_id) is queue

    def _register(self, queue: Queue) -> None:
        queue.stopped = False
        self._queues[queue.guild_id] = queue

    # ─────────────────────────────────────────────────────────────────
    # Entry points
    # ─────────────────────────────────────────────────────────────────

    async def play(
        self,
        target: PlaybackTarget,
        song: SongInput,
        *,
        requester: Requester | None = None,
        skip: bool = False,
    ) -> Song | Playlist | None:
        """Resolve *song* and queue it in the target guild.

        Returns what was queued, or None when a search found nothing or was
        cancelled.
        """
        resolved = await self._resolver.resolve_song(
            requester, song, safe_search=self._filters_age_restricted(target)
        )
        if resolved is None:
            return None
        if isinstance(resolved, Playlist):
            await self.handle_playlist(target, resolved, skip=skip)
        else:
            await self.add_song(target, resolved, skip=skip)
        return resolved

    async def play_custom_playlist(
        self,
        target: PlaybackTarget,
        songs: Any,
        *,
        requester: Requester | None = None,
        properties: Mapping[str, Any] | None = None,
        parallel: bool = True,
        skip: bool = False,
    ) -> Playlist:
        playlist = await self._resolver.create_custom_playlist(
            requester, songs, properties=properties, parallel=parallel
        )
        await self.handle_playlist(target, playlist, skip=skip)
        return playlist

    async def add_song(self, target: PlaybackTarget, song: Song, *, skip: bool = False) -> Queue:
        """Queue a single song, creating the guild's queue when there is none."""
        if self._filters_age_restricted(target) and song.age_restricted:
            logger.info(LogTemplates.QUEUE_AGE_FILTERED, 1, target.guild_id)
            raise EmptyPlaylistError(age_filtered=True)

        queue = self.get_queue(target.guild_id)
        if queue is None:
            return await self._create_queue(target, [song])

        queue.add_songs([song], up_next=skip)
        logger.info(LogTemplates.QUEUE_SONGS_ADDED, 1, target.guild_id)
        if skip:
            self.skip(queue)
        else:
            await self._publish(AddSong(queue=queue, song=song))
        return queue

    async def handle_playlist(
        self, target: PlaybackTarget, playlist: Playlist, skip: bool = False
    ) -> Queue:
        """Queue every song of *playlist*.

        Age-restricted songs are dropped first unless the target channel is
        NSFW. With ``skip`` the songs go right after the current one and the
        queue advances to them at once.
        """
        if not isinstance(playlist, Playlist):
            raise InvalidInputTypeError(playlist)

        songs = list(playlist.songs)
        age_filtered = False
        if self._filters_age_restricted(target):
            allowed = [song for song in songs if not song.age_restricted]
            if len(allowed) < len(songs):
                logger.info(LogTemplates.QUEUE_AGE_FILTERED, len(songs) - len(allowed), target.guild_id)
                age_filtered = True
            songs = allowed

        if not songs:
            raise EmptyPlaylistError(age_filtered=age_filtered)

        queue = self.get_queue(target.guild_id)
        if queue is None:
            return await self._create_queue(target, songs)

        queue.add_songs(songs, up_next=skip)
        logger.info(LogTemplates.QUEUE_SONGS_ADDED, len(songs), target.guild_id)
        if skip:
            self.skip(queue)
        else:
            await self._publish(
                AddList(queue=queue, playlist=playlist.model_copy(update={"songs": songs}))
            )
        return queue

    def _filters_age_restricted(self, target: PlaybackTarget) -> bool:
        return self._settings.filter_age_restricted and not target.nsfw

    async def _create_queue(self, target: PlaybackTarget, songs: list[Song]) -> Queue:
        queue = Queue(
            guild_id=target.guild_id,
            songs=songs,
            volume=self._settings.default_volume,
            text_channel_id=target.text_channel_id,
        )
        self._register(queue)
        logger.info(LogTemplates.QUEUE_CREATED, target.guild_id, len(songs))
        await self._publish(QueueCreated(queue=queue))

        failed = await self.join_voice_channel(queue, target.voice_channel)
        if not failed:
            await self._publish(PlaySong(queue=queue, song=queue.songs[0]))
        return queue

    # ─────────────────────────────────────────────────────────────────
    # Voice
    # ─────────────────────────────────────────────────────────────────

    async def join_voice_channel(self, queue: Queue, channel: Any, *, retried: bool = False) -> bool:
        """Connect *queue* to *channel* and start playing its head.

        A failed join destroys the queue and retries once with the same
        queue; a second failure raises :class:`JoinVoiceChannelError`.
        Returns True when playback did not start.
        """
        logger.debug(LogTemplates.VOICE_JOINING, queue.guild_id, retried)
        try:
            connection = await self._voice.join(channel)
        except Exception as e:
            logger.warning(LogTemplates.VOICE_JOIN_FAILED, queue.guild_id, e)
            await self.delete_queue(queue)
            if retried:
                raise JoinVoiceChannelError(queue.guild_id, e) from e
            self._register(queue)
            return await self.join_voice_channel(queue, channel, retried=True)

        queue.connection = connection
        self._bind_connection(queue, connection)
        logger.info(LogTemplates.VOICE_CONNECTED, connection.channel_id, queue.guild_id)
        await self._publish(VoiceConnected(queue=queue))
        return await self.play_song(queue)

    def _bind_connection(self, queue: Queue, connection: VoiceConnection) -> None:
        async def on_disconnect() -> None:
            logger.info(LogTemplates.VOICE_DISCONNECTED, queue.guild_id)
            await self._publish(VoiceDisconnected(queue=queue))
            await self._stop_or_destroy(queue)

        async def on_error(error: BaseException) -> None:
            await self._report_error(queue, PlaybackError(PlaybackErrorKind.VOICE_CONNECTION, error))
            await self._stop_or_destroy(queue)

        connection.set_disconnect_handler(on_disconnect)
        connection.set_error_handler(on_error)

    # ─────────────────────────────────────────────────────────────────
    # Playback
    # ─────────────────────────────────────────────────────────────────

    async def play_song(self, queue: Queue | None) -> bool:
        """Start streaming the head of *queue*.

        Returns True when nothing started playing: the queue is gone or empty,
        or the stream could not be started (in which case the error path has
        already run).
        """
        if queue is None or not self._is_live(queue):
            return True
        if not queue.songs:
            await self.delete_queue(queue)
            return True

        song = queue.songs[0]
        try:
            await self._prepare_song(song)
            if queue.connection is None:
                raise ProviderError(ErrorMessages.NOT_CONNECTED.format(guild_id=queue.guild_id))

            stream = self.create_stream(queue)
            loop = asyncio.get_running_loop()
            reported = False

            def on_stream_error(error: BaseException) -> None:
                nonlocal reported
                reported = True
                wrapped = PlaybackError(
                    PlaybackErrorKind.STREAM, error, song_id=song.id, song_name=song.name
                )
                asyncio.run_coroutine_threadsafe(self._report_error(queue, wrapped), loop)

            stream.add_error_listener(on_stream_error)

            async def after(error: BaseException | None) -> None:
                await self._on_playback_end(
                    queue, stream, None if reported else error, failed=error is not None or reported
                )

            queue.connection.play(stream, volume=queue.volume / 100, after=after)

            previous, queue.stream = queue.stream, stream
            queue.mark_stream_started()
            if previous is not None and previous is not stream:
                self._release_stream(previous)
        except Exception as e:
            await self._handle_playing_error(queue, e)
            return True

        logger.info(LogTemplates.PLAYBACK_STARTED, song.name, queue.guild_id)
        return False

    async def _prepare_song(self, song: Song) -> None:
        """Fill in what streaming needs: native metadata, or a plugin stream URL."""
        if song.is_native:
            if song.info is None:
                song.info = await self._provider.get_info(song.url)
            return

        if song.stream_url:
            return
        plugin = await self._extractors.find(song.url)
        if plugin is None:
            return
        stream_url, related = await asyncio.gather(
            plugin.get_stream_url(song.url), plugin.get_related_songs(song.url)
        )
        song.stream_url = stream_url
        song.related_songs = list(related)

    def create_stream(self, queue: Queue) -> AudioStream:
        """Build the audio stream for the head of *queue*, honouring seek and filters."""
        song = queue.songs[0]
        filter_args = [self._filters[name] for name in queue.filters if name in self._filters]
        options = StreamOptions(
            seek=queue.begin_time if song.duration else None,
            ffmpeg_args=["-af", ",".join(filter_args)] if filter_args else None,
        )

        if song.is_native:
            if song.info is None:
                raise ProviderError(ErrorMessages.NO_NATIVE_INFO.format(name=song.name), song.url)
            return self._streams.from_native(song.info, options)

        if not song.stream_url:
            raise ProviderError(ErrorMessages.NO_STREAM_URL.format(name=song.name), song.url)
        return self._streams.from_direct_link(song.stream_url, options)

    async def restart_stream(self, queue: Queue) -> bool:
        """Replace the current stream of *queue* without advancing it.

        Used after a seek or a filter change. The old stream's end callback
        becomes stale and is ignored.
        """
        async with self._transition(queue):
            old, queue.stream = queue.stream, None
            if queue.connection is not None:
                queue.connection.stop()
            if old is not None:
                self._release_stream(old)
            return await self.play_song(queue)

    def skip(self, queue: Queue) -> None:
        """Stop the current stream so the queue advances to the next song."""
        queue.next = True
        logger.info(LogTemplates.SONG_SKIPPED, queue.guild_id)
        if queue.connection is not None:
            queue.connection.stop()

    def previous(self, queue: Queue, steps: int = 1) -> None:
        """Stop the current stream so the queue steps back *steps* songs in history."""
        queue.prev = True
        queue.prev_steps = max(1, steps)
        logger.info(LogTemplates.SONG_PREVIOUS, queue.guild_id)
        if queue.connection is not None:
            queue.connection.stop()

    # ─────────────────────────────────────────────────────────────────
    # Transitions
    # ─────────────────────────────────────────────────────────────────

    @asynccontextmanager
    async def _transition(self, queue: Queue) -> AsyncIterator[None]:
        """Hold the queue's transition lock, publishing raised events after release."""
        pending: list[DomainEvent] = []
        token = _deferred_events.set(pending)
        try:
            async with queue.transition_lock:
                yield
        finally:
            _deferred_events.reset(token)
            for event in pending:
                await self._events.publish(event)

    async def _publish(self, event: DomainEvent) -> None:
        pending = _deferred_events.get()
        if pending is not None:
            pending.append(event)
        else:
            await self._events.publish(event)

    async def _on_playback_end(
        self,
        queue: Queue,
        stream: AudioStream,
        error: BaseException | None,
        *,
        failed: bool = False,
    ) -> None:
        async with self._transition(queue):
            if not self._is_live(queue) or queue.stream is not stream:
                logger.debug(LogTemplates.PLAYBACK_STALE_CALLBACK, queue.guild_id)
                return
            logger.debug(LogTemplates.PLAYBACK_ENDED, queue.guild_id, error)
            if failed:
                await self._handle_playing_error(queue, error)
            else:
                await self._handle_song_finish(queue)

    async def _handle_song_finish(self, queue: Queue) -> None:
        """Advance *queue* after its current song ended normally."""
        if queue.songs:
            logger.debug(LogTemplates.SONG_FINISHED, queue.songs[0].name, queue.guild_id)
        await self._publish(
            FinishSong(queue=queue, song=queue.songs[0] if queue.songs else None)
        )

        if queue.stopped:
            await self.delete_queue(queue)
            return

        if queue.prev:
            self._step_back(queue)
        elif queue.repeat_mode is RepeatMode.REPEAT_ALL and queue.songs:
            queue.songs.append(queue.songs[0])

        if len(queue.songs) <= 1 and (queue.next or queue.repeat_mode is RepeatMode.OFF):
            if queue.autoplay:
                try:
                    await self.add_related_song(queue)
                except Exception as e:
                    logger.info(LogTemplates.NO_RELATED, queue.guild_id)
                    logger.debug("Autoplay lookup failed: %r", e)
                    await self._publish(NoRelated(queue=queue))

            if len(queue.songs) <= 1:
                await self._finish_queue(queue)
                return

        emit = self._should_emit(queue)
        if not queue.prev and (queue.repeat_mode is not RepeatMode.REPEAT_ONE or queue.next):
            played = queue.songs.pop(0)
            queue.archive(played, full=self._settings.save_previous_songs)

        queue.next = queue.prev = False
        queue.prev_steps = 1
        queue.begin_time = 0
        failed = await self.play_song(queue)
        if not failed and emit:
            await self._publish(PlaySong(queue=queue, song=queue.songs[0]))

    def _step_back(self, queue: Queue) -> None:
        if queue.repeat_mode is RepeatMode.REPEAT_ALL:
            queue.songs.insert(0, queue.songs.pop())
            return
        steps = min(queue.prev_steps, len(queue.previous_songs))
        if not steps:
            return

        entries = queue.previous_songs[-steps:]
        del queue.previous_songs[-steps:]
        queue.songs[0:0] = [entry for entry in entries if isinstance(entry, Song)]

    async def _finish_queue(self, queue: Queue) -> None:
        if queue.songs:
            queue.archive(queue.songs[0], full=self._settings.save_previous_songs)
        logger.info(LogTemplates.QUEUE_FINISHED, queue.guild_id)

        if self._settings.leave_on_finish and queue.connection is not None:
            try:
                await queue.connection.leave()
            except Exception as e:
                logger.warning(LogTemplates.VOICE_LEAVE_FAILED, queue.guild_id, e)

        if not queue.autoplay:
            await self._publish(QueueFinished(queue=queue))
        await self.delete_queue(queue)

    def _should_emit(self, queue: Queue) -> bool:
        """Whether advancing from the current head should announce the next song."""
        if not self._settings.emit_new_song_only:
            return True
        current = queue.songs[0].id if queue.songs else None
        upcoming = queue.songs[1].id if len(queue.songs) > 1 else None
        return queue.repeat_mode is not RepeatMode.REPEAT_ONE and current != upcoming

    async def _handle_playing_error(self, queue: Queue, error: BaseException | None = None) -> None:
        """Report a playback failure, drop the failing song and try the next one."""
        song = queue.songs.pop(0) if queue.songs else None

        if error is not None:
            if isinstance(error, PlaybackError):
                wrapped: DomainError = error
            elif song is not None:
                wrapped = PlaybackError(
                    PlaybackErrorKind.PLAYING, error, song_id=song.id, song_name=song.name
                )
            else:
                wrapped = PlaybackError(PlaybackErrorKind.PLAYING, error)
            await self._report_error(queue, wrapped)

        if queue.songs:
            queue.next = queue.prev = False
            queue.prev_steps = 1
            queue.begin_time = 0
            failed = await self.play_song(queue)
            if not failed:
                await self._publish(PlaySong(queue=queue, song=queue.songs[0]))
            return

        await self._stop_or_destroy(queue)

    async def _report_error(self, queue: Queue | None, error: DomainError) -> None:
        logger.error(LogTemplates.PLAYBACK_ERROR, queue.guild_id if queue else None, error.message)
        await self._publish(
            ErrorRaised(
                queue=queue,
                error=error,
                text_channel_id=queue.text_channel_id if queue else None,
            )
        )

    # ─────────────────────────────────────────────────────────────────
    # Autoplay
    # ─────────────────────────────────────────────────────────────────

    async def add_related_song(self, queue: Queue) -> Song:
        """Append a song related to the current one that has not been played yet."""
        current = queue.current_song
        if current is None:
            raise NoRelatedSongError()

        related = current.related_songs
        if not related and current.is_native:
            related = [Song.from_metadata(m) for m in await self._provider.get_related(current.url)]
            current.related_songs = related

        excluded = queue.history_ids() | {song.id for song in queue.songs}
        candidate = next((song for song in related if song.id not in excluded), None)
        if candidate is None:
            raise NoRelatedSongError()

        queue.songs.append(candidate)
        logger.info(LogTemplates.RELATED_ADDED, candidate.name, queue.guild_id)
        return candidate

    # ─────────────────────────────────────────────────────────────────
    # Teardown
    # ─────────────────────────────────────────────────────────────────

    async def stop(self, queue: Queue) -> None:
        """Stop *queue*, leave voice when configured to, and delete it."""
        queue.stopped = True
        try:
            connection = queue.connection
            if connection is not None:
                connection.stop()
                if self._settings.leave_on_stop:
                    await connection.leave()
            logger.info(LogTemplates.QUEUE_STOPPED, queue.guild_id)
        finally:
            await self.delete_queue(queue)

    async def _stop_or_destroy(self, queue: Queue) -> None:
        try:
            await self.stop(queue)
        except Exception:
            logger.exception(LogTemplates.QUEUE_STOP_FAILED, queue.guild_id)

    async def delete_queue(self, queue: Queue) -> None:
        """Release the queue's stream and remove it from the registry. Idempotent."""
        queue.stopped = True
        stream, queue.stream = queue.stream, None
        if stream is not None:
            self._release_stream(stream)

        if not self._is_live(queue):
            return
        del self._queues[queue.guild_id]
        logger.info(LogTemplates.QUEUE_DELETED, queue.guild_id)
        await self._publish(QueueDeleted(queue=queue))

    def _release_stream(self, stream: AudioStream) -> None:
        try:
            stream.destroy()
        except Exception as e:
            logger.debug(LogTemplates.STREAM_RELEASE_FAILED, e)

    async def shutdown(self) -> None:
        """Stop every queue; used when the bot closes."""
        for queue in list(self._queues.values()):
            await self._stop_or_destroy(queue)
