"""Audio infrastructure - yt-dlp lookups, the YouTube provider and FFmpeg streams."""

from discord_queue_player.infrastructure.audio.ffmpeg_stream import (
    FFmpegAudioStream,
    FFmpegStreamBuilder,
)
from discord_queue_player.infrastructure.audio.models import (
    AudioFormatInfo,
    CacheEntry,
    YtDlpOpts,
    YtDlpPlaylistInfo,
    YtDlpTrackInfo,
)
from discord_queue_player.infrastructure.audio.youtube_provider import YouTubeProvider
from discord_queue_player.infrastructure.audio.ytdlp_client import YtDlpClient

__all__ = [
    "AudioFormatInfo",
    "CacheEntry",
    "FFmpegAudioStream",
    "FFmpegStreamBuilder",
    "YouTubeProvider",
    "YtDlpClient",
    "YtDlpOpts",
    "YtDlpPlaylistInfo",
    "YtDlpTrackInfo",
]
