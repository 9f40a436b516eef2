"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for services and adapters. Components are created
on-demand and cached for reuse throughout the application.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..domain.shared.events import EventBus, get_event_bus
from ..domain.shared.messages import ErrorMessages

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.interfaces.extractor_plugin import ExtractorPlugin
    from ..application.interfaces.native_provider import NativeProvider
    from ..application.interfaces.reply_waiter import ReplyWaiter
    from ..application.interfaces.stream_builder import StreamBuilder
    from ..application.services.extractor_registry import ExtractorRegistry
    from ..application.services.playback_service import PlaybackController
    from ..application.services.queue_service import QueueService
    from ..application.services.resolver import SongResolver
    from ..application.services.search_service import SongSearchService
    from ..infrastructure.audio.ytdlp_client import YtDlpClient
    from ..infrastructure.discord.adapters.voice_adapter import DiscordVoiceConnector
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed. Discord-backed
    adapters need the bot, so ``set_bot`` must be called before them.
    """

    settings: Settings
    _bot: Bot | None = None
    _event_bus: EventBus | None = None

    # Infrastructure adapters
    _ytdlp_client: YtDlpClient | None = None
    _native_provider: NativeProvider | None = None
    _stream_builder: StreamBuilder | None = None
    _voice_connector: DiscordVoiceConnector | None = None
    _reply_waiter: ReplyWaiter | None = None

    # Application services
    _extractor_registry: ExtractorRegistry | None = None
    _search_service: SongSearchService | None = None
    _resolver: SongResolver | None = None
    _playback_controller: PlaybackController | None = None
    _queue_service: QueueService | None = None

    _extra_plugins: list[ExtractorPlugin] = field(default_factory=list)

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        """Get the Discord bot instance."""
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            self._event_bus = get_event_bus()
        return self._event_bus

    # === Infrastructure Adapters ===

    @property
    def ytdlp_client(self) -> YtDlpClient:
        if self._ytdlp_client is None:
            from ..infrastructure.audio.ytdlp_client import YtDlpClient

            self._ytdlp_client = YtDlpClient(self.settings.audio)
        return self._ytdlp_client

    @property
    def native_provider(self) -> NativeProvider:
        """Get the YouTube metadata provider."""
        if self._native_provider is None:
            from ..infrastructure.audio.youtube_provider import YouTubeProvider

            self._native_provider = YouTubeProvider(self.ytdlp_client)
        return self._native_provider

    @property
    def stream_builder(self) -> StreamBuilder:
        """Get the FFmpeg stream builder."""
        if self._stream_builder is None:
            from ..infrastructure.audio.ffmpeg_stream import FFmpegStreamBuilder

            self._stream_builder = FFmpegStreamBuilder(
                self.settings.audio, http_headers=self.ytdlp_client.http_headers
            )
        return self._stream_builder

    @property
    def voice_connector(self) -> DiscordVoiceConnector:
        """Get the Discord voice connector."""
        if self._voice_connector is None:
            from ..infrastructure.discord.adapters.voice_adapter import DiscordVoiceConnector

            self._voice_connector = DiscordVoiceConnector(self.bot)
        return self._voice_connector

    @property
    def reply_waiter(self) -> ReplyWaiter:
        if self._reply_waiter is None:
            from ..infrastructure.discord.adapters.reply_waiter import DiscordReplyWaiter

            self._reply_waiter = DiscordReplyWaiter(self.bot)
        return self._reply_waiter

    # === Application Services ===

    def register_plugin(self, plugin: ExtractorPlugin) -> None:
        """Register an extra extractor plugin ahead of the built-in ones.

        Must be called before the registry is first used.
        """
        if self._extractor_registry is not None:
            self._extractor_registry.register(plugin)
            return
        self._extra_plugins.append(plugin)

    @property
    def extractor_registry(self) -> ExtractorRegistry:
        """Get the extractor registry, in priority order."""
        if self._extractor_registry is None:
            from ..application.services.extractor_registry import ExtractorRegistry
            from ..infrastructure.plugins import DirectLinkPlugin, YtDlpPlugin

            self._extractor_registry = ExtractorRegistry(
                [*self._extra_plugins, DirectLinkPlugin(), YtDlpPlugin(self.ytdlp_client)]
            )
        return self._extractor_registry

    @property
    def search_service(self) -> SongSearchService:
        if self._search_service is None:
            from ..application.services.search_service import SongSearchService

            self._search_service = SongSearchService(
                provider=self.native_provider,
                reply_waiter=self.reply_waiter,
                settings=self.settings.player,
                event_bus=self.event_bus,
            )
        return self._search_service

    @property
    def resolver(self) -> SongResolver:
        """Get the song resolver."""
        if self._resolver is None:
            from ..application.services.resolver import SongResolver

            self._resolver = SongResolver(
                provider=self.native_provider,
                extractors=self.extractor_registry,
                search_service=self.search_service,
            )
        return self._resolver

    @property
    def playback_controller(self) -> PlaybackController:
        """Get the playback controller."""
        if self._playback_controller is None:
            from ..application.services.playback_service import PlaybackController

            self._playback_controller = PlaybackController(
                provider=self.native_provider,
                extractors=self.extractor_registry,
                resolver=self.resolver,
                voice_connector=self.voice_connector,
                stream_builder=self.stream_builder,
                settings=self.settings.player,
                filters=self.settings.audio.filters,
                event_bus=self.event_bus,
            )
        return self._playback_controller

    @property
    def queue_service(self) -> QueueService:
        """Get the queue service."""
        if self._queue_service is None:
            from ..application.services.queue_service import QueueService

            self._queue_service = QueueService(controller=self.playback_controller)
        return self._queue_service

    # === Lifecycle ===

    async def shutdown(self) -> None:
        """Stop every live queue and drop cached lookups."""
        if self._playback_controller is not None:
            await self._playback_controller.shutdown()
        if self._ytdlp_client is not None:
            self._ytdlp_client.clear_cache()


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
