from __future__ import annotations

import logging
from typing import List
from importlib import metadata

from .base import SiteAdapter
from .ikea import IkeaAdapter

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """
    Registry for available site adapters.
    Supports the built-in IKEA adapter, config-defined dotted classes and entry-point plugins.
    """
    def __init__(self) -> None:
        self._adapters: List[SiteAdapter] = [IkeaAdapter()]

    # ---- Introspection / Management ----

    def register(self, adapter: SiteAdapter) -> None:
        self._adapters.append(adapter)

    @property
    def adapters(self) -> List[SiteAdapter]:
        return list(self._adapters)

    def match(self, url: str) -> SiteAdapter:
        # Later registrations win so plugins can override the built-in adapter.
        for a in reversed(self._adapters[1:]):
            if a.matches(url):
                return a
        return self._adapters[0]

    # ---- Discovery ----

    def discover_entry_points(self, group: str = "ikea_crawler.adapters") -> int:
        """
        Discover third-party adapters installed as entry points.
        Returns count of newly registered adapters.
        """
        added = 0
        for ep in metadata.entry_points(group=group):
            try:
                adapter_cls = ep.load()
                self.register(adapter_cls())
                added += 1
            except Exception as exc:
                # Plugins are optional; a broken one must not stop the crawl.
                logger.warning("Failed to load adapter entry point %s: %r", ep.name, exc)
        return added
