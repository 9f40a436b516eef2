"""
Unit Tests for Dependency Injection Container

Tests for:
- Bot instance management (set_bot, error when not set)
- Lazy initialization and caching of adapters and services
- Extractor plugin registration order
- Shutdown
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from discord_queue_player.application.services.playback_service import PlaybackController
from discord_queue_player.application.services.queue_service import QueueService
from discord_queue_player.config.container import Container, create_container
from discord_queue_player.config.settings import Settings
from discord_queue_player.domain.shared.events import get_event_bus
from discord_queue_player.infrastructure.plugins import DirectLinkPlugin, YtDlpPlugin


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def container(settings, event_bus):
    return Container(settings=settings)


@pytest.fixture
def mock_bot():
    bot = MagicMock()
    bot.user = MagicMock(id=123456789)
    return bot


class TestBot:
    def test_bot_not_set_raises(self, container):
        with pytest.raises(RuntimeError):
            _ = container.bot

    def test_set_bot(self, container, mock_bot):
        container.set_bot(mock_bot)

        assert container.bot is mock_bot

    def test_create_container(self, settings):
        assert create_container(settings).settings is settings


class TestLazyInitialization:
    """Tests for on-demand creation and caching."""

    def test_event_bus_is_global(self, container):
        assert container.event_bus is get_event_bus()

    def test_adapters_cached(self, container):
        assert container.ytdlp_client is container.ytdlp_client
        assert container.native_provider is container.native_provider
        assert container.stream_builder is container.stream_builder

    def test_discord_adapters_need_bot(self, container):
        """Should not build voice or reply adapters before the bot exists."""
        with pytest.raises(RuntimeError):
            _ = container.voice_connector

    def test_services_wired(self, container, mock_bot):
        container.set_bot(mock_bot)

        controller = container.playback_controller
        service = container.queue_service

        assert isinstance(controller, PlaybackController)
        assert isinstance(service, QueueService)
        assert container.playback_controller is controller
        assert container.resolver is container.resolver
        assert container.search_service is container.search_service


class FakePlugin:
    name = "fake"


class TestExtractorRegistry:
    def test_builtin_order(self, container):
        plugins = list(container.extractor_registry)

        assert isinstance(plugins[0], DirectLinkPlugin)
        assert isinstance(plugins[1], YtDlpPlugin)

    def test_registered_plugins_come_first(self, container):
        """Should try extra plugins before the built-in ones."""
        extra = FakePlugin()
        container.register_plugin(extra)

        assert list(container.extractor_registry)[0] is extra

    def test_register_after_first_use(self, container):
        registry = container.extractor_registry
        extra = FakePlugin()

        container.register_plugin(extra)

        assert list(registry)[-1] is extra


class TestShutdown:
    async def test_shutdown_without_services(self, container):
        """Should do nothing when nothing was built."""
        await container.shutdown()

    async def test_shutdown_stops_playback_and_clears_cache(self, container, mock_bot):
        container.set_bot(mock_bot)
        controller = container.playback_controller
        client = container.ytdlp_client

        with (
            patch.object(controller, "shutdown", new_callable=AsyncMock) as mock_shutdown,
            patch.object(client, "clear_cache") as mock_clear,
        ):
            await container.shutdown()

        mock_shutdown.assert_awaited_once()
        mock_clear.assert_called_once()
