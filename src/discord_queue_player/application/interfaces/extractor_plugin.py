"""Port interface for extractor plugins that handle non-native URLs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.music.entities import Playlist, Song
    from ...domain.music.value_objects import Requester


class ExtractorPlugin(ABC):
    """Capability contract for resolving URLs the native provider does not handle.

    Plugins are consulted in registration order; the first one whose
    ``validate`` accepts a URL handles it.
    """

    name: str = "extractor"

    @abstractmethod
    async def validate(self, url: str) -> bool:
        """Return True if this plugin can handle *url*."""
        ...

    @abstractmethod
    async def resolve(self, url: str, requester: "Requester | None") -> "Song | Playlist":
        """Resolve *url* into a song or a playlist."""
        ...

    @abstractmethod
    async def get_stream_url(self, url: str) -> str:
        """Return a direct media URL FFmpeg can read for *url*."""
        ...

    @abstractmethod
    async def get_related_songs(self, url: str) -> list["Song"]:
        """Return songs related to *url*, used by autoplay."""
        ...
