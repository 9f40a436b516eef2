"""Port interface for the native metadata and playlist provider."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.music.entities import SearchResult
    from ...domain.music.value_objects import PlaylistMetadata, TrackMetadata


class NativeProvider(ABC):
    """Interface for the provider whose URLs are resolved and streamed natively."""

    @abstractmethod
    def validate_url(self, url: str) -> bool:
        """Return True if *url* is a single-track URL of this provider."""
        ...

    @abstractmethod
    def validate_playlist_url(self, url: str) -> bool:
        """Return True if *url* points at a playlist of this provider."""
        ...

    @abstractmethod
    async def get_info(self, url: str) -> "TrackMetadata":
        """Full lookup, including a playable stream URL."""
        ...

    @abstractmethod
    async def get_basic_info(self, url: str) -> "TrackMetadata":
        """Partial lookup without stream selection."""
        ...

    @abstractmethod
    async def fetch_playlist(self, url: str, *, limit: int | None = None) -> "PlaylistMetadata":
        """Fetch a playlist with all entries, or at most *limit* of them."""
        ...

    @abstractmethod
    async def search(
        self, query: str, *, limit: int = 1, safe_search: bool = False
    ) -> list["SearchResult"]:
        """Search for videos matching *query*; ``safe_search`` leaves out age-restricted ones."""
        ...

    @abstractmethod
    async def get_related(self, url: str) -> list["TrackMetadata"]:
        """Return tracks related to *url*, used by autoplay."""
        ...
