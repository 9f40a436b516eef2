"""Port interface for Discord voice operations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .stream_builder import AudioStream

PlaybackEndCallback = Callable[[BaseException | None], Awaitable[None]]
DisconnectHandler = Callable[[], Awaitable[None]]
ConnectionErrorHandler = Callable[[BaseException], Awaitable[None]]


class VoiceConnection(ABC):
    """A live voice connection owned by one queue.

    Callbacks are always invoked on the event loop, never from the audio thread.
    """

    @property
    @abstractmethod
    def channel_id(self) -> int | None:
        ...

    @abstractmethod
    def play(self, stream: "AudioStream", *, volume: float, after: PlaybackEndCallback) -> None:
        """Start playing *stream*; *after* receives None on completion or the failure."""
        ...

    @abstractmethod
    def stop(self) -> None:
        """End the current stream. The pending *after* callback still fires."""
        ...

    @abstractmethod
    def pause(self) -> None:
        ...

    @abstractmethod
    def resume(self) -> None:
        ...

    @abstractmethod
    def set_volume(self, volume: float) -> None:
        ...

    @abstractmethod
    async def leave(self) -> None:
        """Disconnect from the voice channel."""
        ...

    @abstractmethod
    def set_disconnect_handler(self, handler: DisconnectHandler) -> None:
        ...

    @abstractmethod
    def set_error_handler(self, handler: ConnectionErrorHandler) -> None:
        ...


class VoiceConnector(ABC):
    """Interface for acquiring voice connections."""

    @abstractmethod
    async def join(self, channel: Any) -> VoiceConnection:
        """Connect to *channel* (or reuse the guild's live connection to it)."""
        ...
