"""Ordered registry of extractor plugins."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ..interfaces.extractor_plugin import ExtractorPlugin

logger = logging.getLogger(__name__)


class ExtractorRegistry:
    """Extractor plugins in registration order.

    Registration order is the tie-break: when several plugins accept a URL,
    the one registered first wins. The registry is populated at startup and
    only read afterwards.
    """

    def __init__(self, plugins: Iterable[ExtractorPlugin] = ()) -> None:
        self._plugins: list[ExtractorPlugin] = []
        for plugin in plugins:
            self.register(plugin)

    def register(self, plugin: ExtractorPlugin) -> None:
        self._plugins.append(plugin)
        logger.info(LogTemplates.EXTRACTOR_REGISTERED, plugin.name)

    async def find(self, url: str) -> ExtractorPlugin | None:
        """Return the first plugin whose ``validate`` accepts *url*."""
        for plugin in self._plugins:
            if await plugin.validate(url):
                return plugin
        return None

    def __iter__(self) -> Iterator[ExtractorPlugin]:
        return iter(self._plugins)

    def __len__(self) -> int:
        return len(self._plugins)
