import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from discord_queue_player.application.interfaces.stream_builder import (
    AudioStream,
    StreamBuilder,
    StreamOptions,
)
from discord_queue_player.application.interfaces.voice_adapter import (
    VoiceConnection,
    VoiceConnector,
)
from discord_queue_player.config.settings import DEFAULT_FILTERS, PlayerSettings
from discord_queue_player.domain.music.entities import Song
from discord_queue_player.domain.music.value_objects import (
    PlaybackTarget,
    Requester,
    TrackMetadata,
)
from discord_queue_player.domain.shared import events as ev
from discord_queue_player.domain.shared.events import EventBus, reset_event_bus

GUILD_ID = 111111111111111111
TEXT_CHANNEL_ID = 222222222222222222


# ============================================================================
# Fake adapters
# ============================================================================


class FakeStream(AudioStream):
    """Audio stream double that records listeners and destruction."""

    def __init__(self, url: str, options: StreamOptions) -> None:
        self.url = url
        self.options = options
        self.listeners = []
        self.destroy_calls = 0

    def add_error_listener(self, listener) -> None:
        self.listeners.append(listener)

    def fail(self, error: BaseException) -> None:
        for listener in self.listeners:
            listener(error)

    def destroy(self) -> None:
        self.destroy_calls += 1

    @property
    def destroyed(self) -> bool:
        return self.destroy_calls > 0


class FakeStreamBuilder(StreamBuilder):
    def __init__(self) -> None:
        self.streams: list[FakeStream] = []
        self.fail_with: BaseException | None = None

    def from_native(self, info, options):
        return self._create(info.stream_url, options)

    def from_direct_link(self, url, options):
        return self._create(url, options)

    def _create(self, url, options):
        if self.fail_with is not None:
            raise self.fail_with
        stream = FakeStream(url, options)
        self.streams.append(stream)
        return stream


class FakeConnection(VoiceConnection):
    """Voice connection double; tests end playback explicitly with ``finish``."""

    def __init__(self, channel_id: int = 333) -> None:
        self._channel_id = channel_id
        self.played: list[tuple] = []
        self.stop_calls = 0
        self.paused = False
        self.volume: float | None = None
        self.left = False
        self.disconnect_handler = None
        self.error_handler = None

    @property
    def channel_id(self):
        return self._channel_id

    def play(self, stream, *, volume, after):
        self.played.append((stream, volume, after))
        self.volume = volume

    def stop(self):
        self.stop_calls += 1

    def pause(self):
        self.paused = True

    def resume(self):
        self.paused = False

    def set_volume(self, volume):
        self.volume = volume

    async def leave(self):
        self.left = True

    def set_disconnect_handler(self, handler):
        self.disconnect_handler = handler

    def set_error_handler(self, handler):
        self.error_handler = handler

    @property
    def current_stream(self):
        return self.played[-1][0]

    async def finish(self, error: BaseException | None = None) -> None:
        """Fire the end callback of the most recent ``play`` call."""
        await self.played[-1][2](error)


class FakeConnector(VoiceConnector):
    def __init__(self) -> None:
        self.connection = FakeConnection()
        self.failures = 0
        self.join_calls = 0

    async def join(self, channel):
        self.join_calls += 1
        if self.failures:
            self.failures -= 1
            raise ConnectionError("voice handshake failed")
        return self.connection


class EventRecorder:
    """Subscribes to every observation event and keeps them in order."""

    EVENT_TYPES = (
        ev.QueueCreated,
        ev.QueueDeleted,
        ev.PlaySong,
        ev.AddSong,
        ev.AddList,
        ev.FinishSong,
        ev.QueueFinished,
        ev.NoRelated,
        ev.VoiceConnected,
        ev.VoiceDisconnected,
        ev.ErrorRaised,
        ev.SearchNoResult,
        ev.SearchResultsShown,
        ev.SearchCancel,
        ev.SearchDone,
    )

    def __init__(self, bus: EventBus) -> None:
        self.events = []
        for event_type in self.EVENT_TYPES:
            bus.subscribe(event_type, self._record)

    async def _record(self, event) -> None:
        self.events.append(event)

    @property
    def names(self) -> list[str]:
        return [event.event_name for event in self.events]

    def of_type(self, event_type):
        return [event for event in self.events if isinstance(event, event_type)]


# ============================================================================
# Builders
# ============================================================================


def make_metadata(video_id: str, **overrides) -> TrackMetadata:
    data = {
        "id": video_id,
        "url": f"https://www.youtube.com/watch?v={video_id}",
        "title": f"Song {video_id}",
        "duration": 200,
        "thumbnail": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg",
        "stream_url": f"https://stream.example/{video_id}",
    }
    data.update(overrides)
    return TrackMetadata(**data)


def make_song(video_id: str, *, with_info: bool = True, **overrides) -> Song:
    """A native song; ``with_info`` pre-fills the full lookup so playing needs no provider."""
    metadata = make_metadata(video_id, **overrides)
    if not with_info:
        metadata = metadata.model_copy(update={"stream_url": None})
    return Song.from_metadata(metadata)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def event_bus():
    """A fresh event bus, with the global one reset around the test."""
    reset_event_bus()
    bus = EventBus()
    yield bus
    reset_event_bus()


@pytest.fixture
def recorder(event_bus):
    return EventRecorder(event_bus)


@pytest.fixture
def provider():
    """Native provider double; full lookups return metadata with a stream URL."""
    mock = MagicMock()
    mock.validate_url = MagicMock(return_value=False)
    mock.validate_playlist_url = MagicMock(return_value=False)

    async def get_info(url):
        return make_metadata(url.rsplit("=", 1)[-1])

    mock.get_info = AsyncMock(side_effect=get_info)
    mock.get_basic_info = AsyncMock()
    mock.fetch_playlist = AsyncMock()
    mock.search = AsyncMock(return_value=[])
    mock.get_related = AsyncMock(return_value=[])
    return mock


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def connection(connector):
    return connector.connection


@pytest.fixture
def stream_builder():
    return FakeStreamBuilder()


@pytest.fixture
def player_settings():
    return PlayerSettings()


@pytest.fixture
def target():
    return PlaybackTarget(
        guild_id=GUILD_ID, voice_channel=MagicMock(name="voice_channel"), text_channel_id=TEXT_CHANNEL_ID
    )


@pytest.fixture
def requester():
    return Requester(id=444444444444444444, name="listener", channel_id=TEXT_CHANNEL_ID)


@pytest.fixture
def controller_factory(provider, connector, stream_builder, event_bus):
    """Build a PlaybackController over the fake adapters with custom player settings."""
    from discord_queue_player.application.services.extractor_registry import ExtractorRegistry
    from discord_queue_player.application.services.playback_service import PlaybackController

    def factory(settings: PlayerSettings | None = None, *, plugins=(), resolver=None):
        return PlaybackController(
            provider=provider,
            extractors=ExtractorRegistry(plugins),
            resolver=resolver or MagicMock(),
            voice_connector=connector,
            stream_builder=stream_builder,
            settings=settings or PlayerSettings(),
            filters=DEFAULT_FILTERS,
            event_bus=event_bus,
        )

    return factory


@pytest.fixture
def controller(controller_factory, player_settings):
    return controller_factory(player_settings)


@pytest.fixture
def drain():
    """Let callbacks scheduled with ``run_coroutine_threadsafe`` run to completion."""

    async def _drain(rounds: int = 50) -> None:
        for _ in range(rounds):
            await asyncio.sleep(0)

    return _drain


@pytest.fixture
def song_factory():
    return make_song


@pytest.fixture
def metadata_factory():
    return make_metadata
