"""ReplyWaiter implementation that waits for the requester's next chat message."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from discord_queue_player.application.interfaces.reply_waiter import ReplyWaiter

if TYPE_CHECKING:
    from discord_queue_player.domain.music.value_objects import Requester

logger = logging.getLogger(__name__)


class DiscordReplyWaiter(ReplyWaiter):
    def __init__(self, bot: discord.Client) -> None:
        self._bot = bot

    async def wait_for_reply(self, requester: Requester, *, timeout: float) -> str | None:
        def check(message: discord.Message) -> bool:
            return (
                message.author.id == requester.id
                and (requester.channel_id is None or message.channel.id == requester.channel_id)
            )

        try:
            message = await self._bot.wait_for("message", check=check, timeout=timeout)
        except TimeoutError:
            logger.debug("No reply from %s within %.0fs", requester.id, timeout)
            return None
        return message.content
