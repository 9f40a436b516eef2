"""Search Application Service - lets a requester pick one of several search results."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...domain.shared.events import (
    EventBus,
    SearchCancel,
    SearchDone,
    SearchNoResult,
    SearchResultsShown,
    get_event_bus,
)
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...config.settings import PlayerSettings
    from ...domain.music.entities import SearchResult
    from ...domain.music.value_objects import Requester
    from ..interfaces.native_provider import NativeProvider
    from ..interfaces.reply_waiter import ReplyWaiter

logger = logging.getLogger(__name__)


class SongSearchService:
    """Runs a search and, when more than one result is offered, waits for a pick."""

    def __init__(
        self,
        *,
        provider: NativeProvider,
        reply_waiter: ReplyWaiter,
        settings: PlayerSettings,
        event_bus: EventBus | None = None,
    ) -> None:
        self._provider = provider
        self._reply_waiter = reply_waiter
        self._settings = settings
        self._events = event_bus or get_event_bus()

    @property
    def limit(self) -> int:
        return max(1, self._settings.search_songs)

    async def search_song(
        self, requester: Requester, query: str, *, safe_search: bool = False
    ) -> SearchResult | None:
        """Return the chosen result, or None when nothing was found or the pick was cancelled."""
        limit = self.limit
        try:
            results = await self._provider.search(query, limit=limit, safe_search=safe_search)
        except Exception as e:
            logger.warning(LogTemplates.SEARCH_FAILED, query, e)
            results = []

        if not results:
            logger.info(LogTemplates.SEARCH_NO_RESULT, query)
            await self._events.publish(SearchNoResult(requester=requester, query=query))
            return None

        if limit == 1:
            return results[0]

        await self._events.publish(
            SearchResultsShown(requester=requester, query=query, results=results)
        )
        answer = await self._reply_waiter.wait_for_reply(
            requester, timeout=self._settings.search_cooldown
        )
        index = _parse_choice(answer, len(results))
        if index is None:
            logger.info(LogTemplates.SEARCH_CANCELLED, query)
            await self._events.publish(SearchCancel(requester=requester, query=query))
            return None

        result = results[index - 1]
        logger.debug(LogTemplates.SEARCH_PICKED, index, query)
        await self._events.publish(
            SearchDone(requester=requester, query=query, answer=answer or "", result=result)
        )
        return result


def _parse_choice(answer: str | None, count: int) -> int | None:
    """Parse a 1-based pick; anything else is a cancellation."""
    if answer is None:
        return None
    try:
        index = int(answer.strip())
    except ValueError:
        return None
    if index < 1 or index > count:
        return None
    return index
