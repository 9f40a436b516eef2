"""
Unit Tests for FFmpeg audio streams

Tests for:
- FFmpeg argument construction (seek, headers, filters)
- Stream building from native metadata and direct links
- Error reporting from the audio thread and idempotent destruction
"""

from unittest.mock import MagicMock, patch

import pytest

from discord_queue_player.application.interfaces.stream_builder import StreamOptions
from discord_queue_player.config.settings import AudioSettings
from discord_queue_player.domain.shared.exceptions import ProviderError
from discord_queue_player.infrastructure.audio.ffmpeg_stream import (
    FFmpegAudioStream,
    FFmpegConfig,
    FFmpegExitError,
    FFmpegStreamBuilder,
)


class TestFFmpegConfig:
    """Tests for FFmpeg option strings."""

    def test_seek_added_before_input(self):
        config = FFmpegConfig(before_options="-reconnect 1")

        assert config.get_before_options(StreamOptions(seek=90)) == "-reconnect 1 -ss 90"

    def test_zero_seek_omitted(self):
        config = FFmpegConfig(before_options="-reconnect 1")

        assert config.get_before_options(StreamOptions(seek=0)) == "-reconnect 1"

    def test_headers_passed_to_ffmpeg(self):
        config = FFmpegConfig(before_options="")

        before = config.get_before_options(StreamOptions(http_headers={"Cookie": "SID=1"}))

        assert before.startswith("-headers ")
        assert "Cookie: SID=1" in before

    def test_filter_args_appended(self):
        """Should quote filter chains so FFmpeg receives them as one argument."""
        options = StreamOptions(ffmpeg_args=["-af", "asetrate=48000*1.25,aresample=48000"])

        assert FFmpegConfig().get_options(options) == "-vn -af 'asetrate=48000*1.25,aresample=48000'"

    def test_from_settings(self):
        config = FFmpegConfig.from_settings(
            AudioSettings(ffmpeg_before_options="-nostdin", ffmpeg_options="-vn -sn")
        )

        assert config.before_options == "-nostdin"
        assert config.options == "-vn -sn"


@pytest.fixture
def pcm_audio():
    with patch("discord_queue_player.infrastructure.audio.ffmpeg_stream.discord.FFmpegPCMAudio") as cls:
        yield cls


class TestFFmpegStreamBuilder:
    def test_from_native(self, pcm_audio, metadata_factory):
        """Should stream the metadata's stream URL with the provider headers."""
        builder = FFmpegStreamBuilder(
            config=FFmpegConfig(before_options=""), http_headers={"Cookie": "SID=1"}
        )

        stream = builder.from_native(metadata_factory("aaaaaaaaaaa"), StreamOptions(seek=5))

        assert isinstance(stream, FFmpegAudioStream)
        args, kwargs = pcm_audio.call_args
        assert args == ("https://stream.example/aaaaaaaaaaa",)
        assert "-ss 5" in kwargs["before_options"]
        assert "Cookie: SID=1" in kwargs["before_options"]
        assert kwargs["options"] == "-vn"

    def test_from_native_without_stream_url(self, pcm_audio, metadata_factory):
        builder = FFmpegStreamBuilder()

        with pytest.raises(ProviderError):
            builder.from_native(metadata_factory("aaaaaaaaaaa", stream_url=None), StreamOptions())

        pcm_audio.assert_not_called()

    def test_from_direct_link(self, pcm_audio):
        FFmpegStreamBuilder().from_direct_link("https://cdn.example/a.mp3", StreamOptions())

        assert pcm_audio.call_args.args == ("https://cdn.example/a.mp3",)


class TestFFmpegAudioStream:
    """Tests for the audio source wrapper."""

    def _stream(self, data: bytes = b"", returncode=None):
        source = MagicMock()
        source.read.return_value = data
        source._process.poll.return_value = returncode
        return FFmpegAudioStream(source), source

    def test_read_passes_frames_through(self):
        stream, _ = self._stream(b"\x00" * 3840)

        assert stream.read() == b"\x00" * 3840
        assert stream.is_opus() is False

    def test_clean_end_of_stream(self):
        stream, _ = self._stream(b"", returncode=0)
        listener = MagicMock()
        stream.add_error_listener(listener)

        assert stream.read() == b""
        listener.assert_not_called()

    def test_ffmpeg_failure_reported(self):
        """Should notify listeners and raise when FFmpeg exits with an error."""
        stream, _ = self._stream(b"", returncode=1)
        listener = MagicMock()
        stream.add_error_listener(listener)

        with pytest.raises(FFmpegExitError) as exc_info:
            stream.read()

        assert exc_info.value.returncode == 1
        listener.assert_called_once_with(exc_info.value)

    def test_read_error_reported(self):
        stream, source = self._stream()
        source.read.side_effect = OSError("pipe closed")
        listener = MagicMock()
        stream.add_error_listener(listener)

        with pytest.raises(OSError):
            stream.read()

        listener.assert_called_once_with(source.read.side_effect)

    def test_failing_listener_does_not_mask_error(self):
        stream, _ = self._stream(b"", returncode=1)
        stream.add_error_listener(MagicMock(side_effect=RuntimeError("listener bug")))

        with pytest.raises(FFmpegExitError):
            stream.read()

    def test_destroy_is_idempotent(self):
        """Should clean up the FFmpeg process exactly once."""
        stream, source = self._stream()

        stream.destroy()
        stream.cleanup()
        stream.destroy()

        assert stream.destroyed
        source.cleanup.assert_called_once()
