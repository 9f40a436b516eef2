"""
FFmpeg Audio Streams

Infrastructure component turning resolved media URLs into discord.py audio
sources, with seek and audio filters applied through FFmpeg arguments.
"""

from __future__ import annotations

import logging
import shlex
import threading
from dataclasses import dataclass

import discord

from discord_queue_player.application.interfaces.stream_builder import (
    AudioStream,
    StreamBuilder,
    StreamErrorListener,
    StreamOptions,
)
from discord_queue_player.config.settings import AudioSettings
from discord_queue_player.domain.music.value_objects import TrackMetadata
from discord_queue_player.domain.shared.exceptions import ProviderError
from discord_queue_player.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)


class FFmpegExitError(RuntimeError):
    """FFmpeg stopped producing audio and exited with a failure status."""

    def __init__(self, returncode: int) -> None:
        super().__init__(f"FFmpeg exited with status {returncode}")
        self.returncode = returncode


@dataclass
class FFmpegConfig:
    """Configuration for FFmpeg audio processing."""

    before_options: str = "-reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5"
    options: str = "-vn"
    executable: str = "ffmpeg"

    @classmethod
    def from_settings(cls, settings: AudioSettings) -> FFmpegConfig:
        return cls(
            before_options=settings.ffmpeg_before_options,
            options=settings.ffmpeg_options,
            executable=settings.ffmpeg_executable,
        )

    def get_before_options(self, stream_options: StreamOptions) -> str:
        opts = [self.before_options] if self.before_options else []
        if stream_options.seek:
            opts.append(f"-ss {int(stream_options.seek)}")
        if stream_options.http_headers:
            headers = "".join(f"{k}: {v}\r\n" for k, v in stream_options.http_headers.items())
            opts.append(f"-headers {shlex.quote(headers)}")
        return " ".join(opts)

    def get_options(self, stream_options: StreamOptions) -> str:
        opts = [self.options] if self.options else []
        if stream_options.ffmpeg_args:
            opts.append(shlex.join(stream_options.ffmpeg_args))
        return " ".join(opts)


class FFmpegAudioStream(discord.AudioSource, AudioStream):
    """An FFmpeg PCM source that reports its own failures to listeners.

    ``read`` runs on discord.py's audio thread; listeners are called there too
    and must hand off to the event loop themselves.
    """

    def __init__(self, source: discord.FFmpegPCMAudio) -> None:
        self._source = source
        self._listeners: list[StreamErrorListener] = []
        self._destroyed = False
        self._lock = threading.Lock()

    def add_error_listener(self, listener: StreamErrorListener) -> None:
        self._listeners.append(listener)

    def _notify(self, error: BaseException) -> None:
        for listener in list(self._listeners):
            try:
                listener(error)
            except Exception:
                logger.exception(LogTemplates.FFMPEG_READ_FAILED, error)

    def read(self) -> bytes:
        try:
            data = self._source.read()
        except Exception as e:
            logger.warning(LogTemplates.FFMPEG_READ_FAILED, e)
            self._notify(e)
            raise

        if not data:
            returncode = self._returncode()
            if returncode:
                error = FFmpegExitError(returncode)
                logger.warning(LogTemplates.FFMPEG_READ_FAILED, error)
                self._notify(error)
                raise error
        return data

    def _returncode(self) -> int | None:
        process = getattr(self._source, "_process", None)
        if process is None:
            return None
        return process.poll()

    def is_opus(self) -> bool:
        return False

    def cleanup(self) -> None:
        self.destroy()

    def destroy(self) -> None:
        with self._lock:
            if self._destroyed:
                return
            self._destroyed = True
        self._listeners.clear()
        try:
            self._source.cleanup()
        except Exception as e:
            logger.debug(LogTemplates.FFMPEG_CLEANUP_ERROR, e)

    @property
    def destroyed(self) -> bool:
        return self._destroyed


class FFmpegStreamBuilder(StreamBuilder):
    """Builds FFmpeg streams for native metadata and direct media links."""

    def __init__(
        self,
        settings: AudioSettings | None = None,
        config: FFmpegConfig | None = None,
        http_headers: dict[str, str] | None = None,
    ) -> None:
        self._settings = settings or AudioSettings()
        self._config = config or FFmpegConfig.from_settings(self._settings)
        self._http_headers = dict(http_headers or {})

    def from_native(self, info: TrackMetadata, options: StreamOptions) -> AudioStream:
        if not info.stream_url:
            raise ProviderError(ErrorMessages.PROVIDER_NO_STREAM.format(url=info.url), url=info.url)
        if self._http_headers and not options.http_headers:
            options = options.model_copy(update={"http_headers": self._http_headers})
        return self._create(info.stream_url, options)

    def from_direct_link(self, url: str, options: StreamOptions) -> AudioStream:
        return self._create(url, options)

    def _create(self, url: str, options: StreamOptions) -> FFmpegAudioStream:
        before_options = self._config.get_before_options(options)
        ffmpeg_options = self._config.get_options(options)
        source = discord.FFmpegPCMAudio(
            url,
            executable=self._config.executable,
            before_options=before_options,
            options=ffmpeg_options,
        )
        logger.debug(LogTemplates.FFMPEG_STREAM_CREATED, options.seek, options.ffmpeg_args)
        return FFmpegAudioStream(source)
