"""Discord bot owning the DI container.

The bot has no commands of its own; it hosts the player services and feeds
them the gateway events they cannot observe through the voice client.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING, Any

import discord
from discord.ext import commands

from discord_queue_player.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...config.container import Container
    from ...config.settings import Settings

logger = logging.getLogger(__name__)


class QueuePlayerBot(commands.Bot):
    def __init__(self, container: Container, settings: Settings, **kwargs: Any) -> None:
        intents = discord.Intents.default()
        # Search prompts read the requester's reply.
        intents.message_content = True
        intents.voice_states = True
        intents.guilds = True

        super().__init__(
            command_prefix=settings.discord.command_prefix,
            intents=intents,
            help_command=None,
            **kwargs,
        )

        self.container = container
        self.settings = settings
        self._shutdown_event = asyncio.Event()
        container.set_bot(self)

    async def setup_hook(self) -> None:
        logger.info(LogTemplates.BOT_SETUP)
        # Build the player graph now so plugin registration is logged at startup.
        _ = self.container.playback_controller
        _ = self.container.queue_service

    async def on_ready(self) -> None:
        logger.info(LogTemplates.BOT_READY, self.user)

    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        await self.container.voice_connector.handle_voice_state_update(member, before, after)

    async def on_guild_remove(self, guild: discord.Guild) -> None:
        controller = self.container.playback_controller
        queue = controller.get_queue(guild.id)
        if queue is None:
            return
        logger.info(LogTemplates.BOT_GUILD_REMOVED, guild.id)
        await controller.delete_queue(queue)

    async def close(self) -> None:
        try:
            await self.container.shutdown()
        except Exception as e:
            logger.warning("Error shutting down container: %r", e)

        await super().close()
        self._shutdown_event.set()
        logger.info(LogTemplates.BOT_STOPPED)

    def run_with_graceful_shutdown(self, token: str, *, shutdown_timeout: float = 30.0) -> None:
        """Run until SIGINT/SIGTERM, giving live queues *shutdown_timeout* seconds to stop."""

        async def runner() -> None:
            async with self:
                loop = asyncio.get_running_loop()

                async def _graceful_close() -> None:
                    try:
                        await asyncio.wait_for(self.close(), timeout=shutdown_timeout)
                    except TimeoutError:
                        logger.warning("Shutdown did not finish within %.0fs", shutdown_timeout)

                for sig in (signal.SIGINT, signal.SIGTERM):
                    loop.add_signal_handler(sig, lambda: asyncio.create_task(_graceful_close()))
                await self.start(token)

        asyncio.run(runner())


def create_bot(container: Container, settings: Settings) -> QueuePlayerBot:
    return QueuePlayerBot(container=container, settings=settings)
