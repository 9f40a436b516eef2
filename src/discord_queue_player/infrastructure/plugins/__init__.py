"""Built-in extractor plugins for URLs the native provider does not handle."""

from discord_queue_player.infrastructure.plugins.direct_link import DirectLinkPlugin
from discord_queue_player.infrastructure.plugins.ytdlp_plugin import YtDlpPlugin

__all__ = [
    "DirectLinkPlugin",
    "YtDlpPlugin",
]
