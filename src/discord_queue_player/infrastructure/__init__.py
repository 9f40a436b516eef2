"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Discord (bot, voice connections, reply waiting)
- Audio (yt-dlp lookups, FFmpeg streams)
- Extractor plugins for non-YouTube URLs
"""

from discord_queue_player.infrastructure.discord.bot import create_bot
from discord_queue_player.infrastructure.discord.adapters.voice_adapter import (
    DiscordVoiceConnection,
    DiscordVoiceConnector,
)

__all__ = [
    "create_bot",
    "DiscordVoiceConnection",
    "DiscordVoiceConnector",
]
