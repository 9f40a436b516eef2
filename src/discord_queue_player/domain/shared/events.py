"""Observation events published by the player, and the bus that delivers them."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, ClassVar, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from discord_queue_player.domain.music.entities import Playlist, Queue, SearchResult, Song
from discord_queue_player.domain.music.value_objects import Requester
from discord_queue_player.domain.shared.datetime_utils import utcnow
from discord_queue_player.domain.shared.exceptions import DomainError
from discord_queue_player.domain.shared.messages import LogTemplates
from discord_queue_player.domain.shared.types import NonEmptyStr

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="DomainEvent")
EventHandler = Callable[[T], Awaitable[None]]


class DomainEvent(BaseModel):
    """Base class for all observation events."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    event_name: ClassVar[str] = "event"

    event_id: NonEmptyStr = Field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = Field(default_factory=utcnow)


class QueueEvent(DomainEvent):
    queue: Queue


# === Queue / playback events ===


class QueueCreated(QueueEvent):
    event_name: ClassVar[str] = "initQueue"


class QueueDeleted(QueueEvent):
    event_name: ClassVar[str] = "deleteQueue"


class PlaySong(QueueEvent):
    event_name: ClassVar[str] = "playSong"

    song: Song


class AddSong(QueueEvent):
    event_name: ClassVar[str] = "addSong"

    song: Song


class AddList(QueueEvent):
    event_name: ClassVar[str] = "addList"

    playlist: Playlist


class FinishSong(QueueEvent):
    event_name: ClassVar[str] = "finishSong"

    song: Song | None = None


class QueueFinished(QueueEvent):
    event_name: ClassVar[str] = "finish"


class NoRelated(QueueEvent):
    event_name: ClassVar[str] = "noRelated"


class VoiceConnected(QueueEvent):
    event_name: ClassVar[str] = "connect"


class VoiceDisconnected(QueueEvent):
    event_name: ClassVar[str] = "disconnect"


class ErrorRaised(DomainEvent):
    event_name: ClassVar[str] = "error"

    queue: Queue | None = None
    error: DomainError
    text_channel_id: int | None = None


# === Search events ===


class SearchEvent(DomainEvent):
    requester: Requester
    query: str


class SearchNoResult(SearchEvent):
    event_name: ClassVar[str] = "searchNoResult"


class SearchResultsShown(SearchEvent):
    event_name: ClassVar[str] = "searchResult"

    results: list[SearchResult]


class SearchCancel(SearchEvent):
    event_name: ClassVar[str] = "searchCancel"


class SearchDone(SearchEvent):
    event_name: ClassVar[str] = "searchDone"

    answer: str
    result: SearchResult


# === Event Bus ===


class EventBus:
    """In-memory pub/sub event bus for observation events.

    Handlers are called concurrently. Exceptions in handlers are logged
    but do not prevent other handlers from running.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[EventHandler[Any]]] = defaultdict(list)

    def subscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        self._handlers[event_type].append(handler)
        logger.debug("Subscribed handler to: %s", event_type.__name__)

    def unsubscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        handlers = self._handlers[event_type]
        if handler in handlers:
            handlers.remove(handler)
            logger.debug("Unsubscribed handler from %s", event_type.__name__)

    async def publish(self, event: DomainEvent) -> None:
        event_type = type(event)
        handlers = list(self._handlers.get(event_type, []))

        if not handlers:
            logger.debug("No handlers for %s", event_type.__name__)
            return

        logger.debug("Publishing %s to %d handlers", event_type.__name__, len(handlers))

        async def safe_call(handler: EventHandler[Any]) -> None:
            try:
                await handler(event)
            except Exception as e:
                logger.exception(LogTemplates.EVENT_HANDLER_ERROR, event_type.__name__, e)

        async with asyncio.TaskGroup() as tg:
            for handler in handlers:
                tg.create_task(safe_call(handler))

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
        logger.debug("Cleared all event handlers")


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get or create the global event bus singleton."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Reset the global event bus (for testing)."""
    global _event_bus
    if _event_bus is not None:
        _event_bus.clear()
    _event_bus = None
