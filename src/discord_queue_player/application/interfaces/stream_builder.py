"""Port interface for building audio streams handed to a voice connection."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from discord_queue_player.domain.shared.types import NonNegativeInt

if TYPE_CHECKING:
    from ...domain.music.value_objects import TrackMetadata

StreamErrorListener = Callable[[BaseException], None]


class StreamOptions(BaseModel):
    """Per-stream options derived from the queue state."""

    model_config = ConfigDict(frozen=True)

    seek: NonNegativeInt | None = None
    ffmpeg_args: list[str] | None = None
    http_headers: dict[str, str] = Field(default_factory=dict)


class AudioStream(ABC):
    """A media stream owned by exactly one queue at a time."""

    @abstractmethod
    def add_error_listener(self, listener: StreamErrorListener) -> None:
        """Register a callback fired when the stream itself fails."""
        ...

    @abstractmethod
    def destroy(self) -> None:
        """Release the stream's resources. Safe to call more than once."""
        ...


class StreamBuilder(ABC):
    """Interface for turning a song's media location into an AudioStream."""

    @abstractmethod
    def from_native(self, info: "TrackMetadata", options: StreamOptions) -> AudioStream:
        ...

    @abstractmethod
    def from_direct_link(self, url: str, options: StreamOptions) -> AudioStream:
        ...
