"""Discord voice adapter implementing the VoiceConnector / VoiceConnection ports."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import discord

from discord_queue_player.application.interfaces.voice_adapter import (
    ConnectionErrorHandler,
    DisconnectHandler,
    PlaybackEndCallback,
    VoiceConnection,
    VoiceConnector,
)
from discord_queue_player.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from discord_queue_player.application.interfaces.stream_builder import AudioStream

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT: float = 10.0


class DiscordVoiceConnection(VoiceConnection):
    """Wraps a discord.py VoiceClient for one guild.

    discord.py calls ``after`` on its audio thread; every callback is handed
    back to the bot's event loop with ``run_coroutine_threadsafe``.
    """

    def __init__(self, voice_client: discord.VoiceClient, loop: asyncio.AbstractEventLoop) -> None:
        self._vc = voice_client
        self._loop = loop
        self._on_disconnect: DisconnectHandler | None = None
        self._on_error: ConnectionErrorHandler | None = None
        self._closed = False

    @property
    def voice_client(self) -> discord.VoiceClient:
        return self._vc

    @property
    def guild_id(self) -> int:
        return self._vc.guild.id

    @property
    def channel_id(self) -> int | None:
        channel = self._vc.channel
        return channel.id if channel else None

    def play(self, stream: AudioStream, *, volume: float, after: PlaybackEndCallback) -> None:
        source = discord.PCMVolumeTransformer(stream, volume=max(0.0, min(2.0, volume)))

        def after_callback(error: Exception | None = None) -> None:
            logger.debug(LogTemplates.PLAYBACK_ENDED, self.guild_id, error)
            if isinstance(error, discord.ConnectionClosed):
                coro = self._dispatch_error(error)
            else:
                coro = self._dispatch_end(after, error)
            asyncio.run_coroutine_threadsafe(coro, self._loop)

        self._vc.play(source, after=after_callback)

    async def _dispatch_end(self, after: PlaybackEndCallback, error: BaseException | None) -> None:
        try:
            await after(error)
        except Exception:
            logger.exception(LogTemplates.VOICE_CALLBACK_ERROR, self.guild_id)

    async def _dispatch_error(self, error: BaseException) -> None:
        if self._on_error is None:
            return
        try:
            await self._on_error(error)
        except Exception:
            logger.exception(LogTemplates.VOICE_CALLBACK_ERROR, self.guild_id)

    def stop(self) -> None:
        if self._vc.is_playing() or self._vc.is_paused():
            self._vc.stop()

    def pause(self) -> None:
        if self._vc.is_playing():
            self._vc.pause()

    def resume(self) -> None:
        if self._vc.is_paused():
            self._vc.resume()

    def set_volume(self, volume: float) -> None:
        if isinstance(self._vc.source, discord.PCMVolumeTransformer):
            self._vc.source.volume = max(0.0, min(2.0, volume))

    async def leave(self) -> None:
        self._closed = True
        await self._vc.disconnect(force=True)
        logger.info(LogTemplates.VOICE_DISCONNECTED, self.guild_id)

    def set_disconnect_handler(self, handler: DisconnectHandler) -> None:
        self._on_disconnect = handler

    def set_error_handler(self, handler: ConnectionErrorHandler) -> None:
        self._on_error = handler

    async def notify_disconnected(self) -> None:
        """Called when Discord reports the bot left the channel without ``leave``."""
        if self._closed:
            return
        self._closed = True
        if self._on_disconnect is None:
            return
        try:
            await self._on_disconnect()
        except Exception:
            logger.exception(LogTemplates.VOICE_CALLBACK_ERROR, self.guild_id)


class DiscordVoiceConnector(VoiceConnector):
    def __init__(self, bot: discord.Client) -> None:
        self._bot = bot
        self._connections: dict[int, DiscordVoiceConnection] = {}

    def get_connection(self, guild_id: int) -> DiscordVoiceConnection | None:
        return self._connections.get(guild_id)

    async def join(self, channel: discord.VoiceChannel | discord.StageChannel) -> DiscordVoiceConnection:
        """Connect to *channel*, moving the guild's existing connection if needed.

        Raises whatever discord.py raises (``TimeoutError``, ``discord.ClientException``,
        ``discord.Forbidden``); the playback controller decides whether to retry.
        """
        guild = channel.guild
        vc = guild.voice_client

        if isinstance(vc, discord.VoiceClient) and not vc.is_connected():
            await vc.disconnect(force=True)
            vc = None

        try:
            async with asyncio.timeout(CONNECT_TIMEOUT):
                if isinstance(vc, discord.VoiceClient):
                    if vc.channel is None or vc.channel.id != channel.id:
                        await vc.move_to(channel)
                else:
                    vc = await channel.connect(self_deaf=True)
        except TimeoutError:
            logger.error(LogTemplates.VOICE_CONNECT_TIMEOUT, channel.id)
            raise

        existing = self._connections.get(guild.id)
        if existing is not None and existing.voice_client is vc:
            return existing

        connection = DiscordVoiceConnection(vc, self._bot.loop)
        self._connections[guild.id] = connection
        return connection

    async def handle_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        """Relay the bot's own disconnects to the owning connection."""
        user = self._bot.user
        if user is None or member.id != user.id:
            return
        if before.channel is None or after.channel is not None:
            return

        connection = self._connections.pop(member.guild.id, None)
        if connection is not None:
            await connection.notify_disconnected()
