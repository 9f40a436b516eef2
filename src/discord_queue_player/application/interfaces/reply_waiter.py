"""Port interface for waiting on a user's reply in a text channel."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.music.value_objects import Requester


class ReplyWaiter(ABC):
    @abstractmethod
    async def wait_for_reply(self, requester: "Requester", *, timeout: float) -> str | None:
        """Return the content of the requester's next message, or None on timeout."""
        ...
