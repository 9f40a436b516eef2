"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from discord_queue_player.application.interfaces.extractor_plugin import ExtractorPlugin
from discord_queue_player.application.interfaces.native_provider import NativeProvider
from discord_queue_player.application.interfaces.reply_waiter import ReplyWaiter
from discord_queue_player.application.interfaces.stream_builder import (
    AudioStream,
    StreamBuilder,
    StreamOptions,
)
from discord_queue_player.application.interfaces.voice_adapter import (
    VoiceConnection,
    VoiceConnector,
)

__all__ = [
    "AudioStream",
    "ExtractorPlugin",
    "NativeProvider",
    "ReplyWaiter",
    "StreamBuilder",
    "StreamOptions",
    "VoiceConnection",
    "VoiceConnector",
]
