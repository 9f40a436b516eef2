"""Base exception classes for domain-level errors."""

from __future__ import annotations

from enum import Enum

from discord_queue_player.domain.shared.messages import ErrorMessages


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


# === Resolution ===


class ResolutionError(DomainError):
    """Raised when a request cannot be turned into a Song or Playlist."""


class InvalidInputError(ResolutionError):
    """Raised when the resolver is handed something it cannot interpret."""


class InvalidInputTypeError(InvalidInputError):
    def __init__(self, value: object, message: str | None = None) -> None:
        msg = message or ErrorMessages.INVALID_INPUT_TYPE.format(type_name=type(value).__name__)
        super().__init__(msg, code="INVALID_INPUT_TYPE")
        self.value = value


class InvalidSearchResultError(InvalidInputError):
    def __init__(self, result_type: str) -> None:
        super().__init__(
            ErrorMessages.INVALID_SEARCH_RESULT.format(result_type=result_type),
            code="INVALID_SEARCH_RESULT",
        )
        self.result_type = result_type


class InvalidSongRecordError(InvalidInputError):
    def __init__(self, reason: str) -> None:
        super().__init__(ErrorMessages.INVALID_RECORD.format(reason=reason), code="INVALID_RECORD")
        self.reason = reason


class UnsupportedURLError(ResolutionError):
    def __init__(self, url: str) -> None:
        super().__init__(ErrorMessages.UNSUPPORTED_URL.format(url=url), code="UNSUPPORTED_URL")
        self.url = url


# === Playlist construction ===


class PlaylistConstructionError(DomainError):
    """Raised when a playlist or queue cannot be built from the given songs."""


class EmptyPlaylistError(PlaylistConstructionError):
    def __init__(self, age_filtered: bool = False) -> None:
        message = (
            ErrorMessages.EMPTY_PLAYLIST_AGE_FILTERED if age_filtered else ErrorMessages.EMPTY_PLAYLIST
        )
        super().__init__(message, code="EMPTY_PLAYLIST")
        self.age_filtered = age_filtered


class EmptyInputError(PlaylistConstructionError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or ErrorMessages.EMPTY_INPUT, code="EMPTY_INPUT")


class NoValidEntriesError(PlaylistConstructionError):
    def __init__(self, attempted: int) -> None:
        super().__init__(
            ErrorMessages.NO_VALID_ENTRIES.format(count=attempted), code="NO_VALID_ENTRIES"
        )
        self.attempted = attempted


# === Voice / playback ===


class JoinVoiceChannelError(DomainError):
    def __init__(self, guild_id: int, cause: BaseException | None = None) -> None:
        msg = ErrorMessages.JOIN_VOICE_CHANNEL_FAILED.format(guild_id=guild_id)
        if cause is not None:
            msg = f"{msg}: {cause}"
        super().__init__(msg, code="JOIN_VOICE_CHANNEL")
        self.guild_id = guild_id
        self.cause = cause


class PlaybackErrorKind(Enum):
    """Where a playback-time failure was observed."""

    STREAM = "Stream"
    PLAYING = "Playing"
    VOICE_CONNECTION = "VoiceConnection"


class PlaybackError(DomainError):
    """A playback-time failure annotated with the identity of the song involved.

    Built fresh from the underlying cause instead of mutating it; the original
    exception stays reachable through ``cause`` and ``__cause__``.
    """

    def __init__(
        self,
        kind: PlaybackErrorKind,
        cause: BaseException,
        *,
        song_id: str | None = None,
        song_name: str | None = None,
    ) -> None:
        msg = str(cause) or cause.__class__.__name__
        if song_id is not None:
            msg = f"{msg}\nID: {song_id}\nName: {song_name}"
        super().__init__(msg, code=kind.value)
        self.kind = kind
        self.cause = cause
        self.song_id = song_id
        self.song_name = song_name
        self.__cause__ = cause


# === Queue operations ===


class QueueOperationError(DomainError):
    """Raised when a queue operation is invalid in the current state."""


class QueueNotFoundError(QueueOperationError):
    def __init__(self, guild_id: int) -> None:
        super().__init__(ErrorMessages.QUEUE_NOT_FOUND.format(guild_id=guild_id), code="NO_QUEUE")
        self.guild_id = guild_id


class NoUpNextError(QueueOperationError):
    def __init__(self) -> None:
        super().__init__(ErrorMessages.NO_UP_NEXT, code="NO_UP_NEXT")


class NoPreviousError(QueueOperationError):
    def __init__(self) -> None:
        super().__init__(ErrorMessages.NO_PREVIOUS, code="NO_PREVIOUS")


class NoRelatedSongError(QueueOperationError):
    def __init__(self) -> None:
        super().__init__(ErrorMessages.NO_RELATED, code="NO_RELATED")


class UnknownFilterError(QueueOperationError):
    def __init__(self, name: str) -> None:
        super().__init__(ErrorMessages.UNKNOWN_FILTER.format(name=name), code="UNKNOWN_FILTER")
        self.name = name


# === Adapters ===


class ProviderError(DomainError):
    """Raised by metadata providers and extractor plugins when a lookup fails."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message, code="PROVIDER_ERROR")
        self.url = url
