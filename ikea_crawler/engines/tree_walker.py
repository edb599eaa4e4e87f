from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Protocol, Set

from bs4 import BeautifulSoup

from .base import ErrorLog
from ..adapters.base import Department, Lineage, ProductStub, SiteAdapter, extend_lineage
from ..utils.http import FetchError

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    async def fetch(self, url: str) -> BeautifulSoup:
        """Return the parsed page or raise FetchError."""
        ...


class ProductCollector:
    """
    Product stubs keyed by URL. A URL reached through a second branch
    replaces the earlier stub, so the last walked lineage wins.
    """

    def __init__(self) -> None:
        self._stubs: Dict[str, ProductStub] = {}

    def upsert(self, stub: ProductStub) -> None:
        self._stubs[stub.url] = stub

    def get(self, url: str) -> ProductStub | None:
        return self._stubs.get(url)

    def __contains__(self, url: object) -> bool:
        return url in self._stubs

    def __len__(self) -> int:
        return len(self._stubs)

    def __iter__(self) -> Iterator[ProductStub]:
        return iter(list(self._stubs.values()))


class TreeWalker:
    """
    Depth-first walk of the category tree below one root department.

    Each page is either a listing (collect its products, stop) or a department
    page (descend into its children in document order). The walk uses an
    explicit stack instead of recursion so tree depth is not bounded by the
    interpreter's recursion limit.
    """

    def __init__(self, adapter: SiteAdapter, fetcher: Fetcher, errors: ErrorLog) -> None:
        self.adapter = adapter
        self.fetcher = fetcher
        self.errors = errors

    async def walk(self, visited: Set[str], collector: ProductCollector, lineage: Lineage) -> int:
        """
        Walk the subtree whose root is ``lineage[-1]``; returns the number of pages fetched.
        ``visited`` is owned by the caller and updated in place.
        """
        if not lineage:
            raise ValueError("lineage must contain at least the root department")
        visited.add(lineage[-1].url)

        fetched = 0
        stack: List[Lineage] = [lineage]
        at_root = True
        while stack:
            current = stack.pop()
            node = current[-1]
            if at_root:
                at_root = False
            else:
                # Checked on pop, not on push: matches recursive insert-before-recurse order.
                if node.url in visited:
                    continue
                visited.add(node.url)
                logger.debug("DEPARTMENT %s (%s)", node.name, " > ".join(d.name for d in current))

            try:
                document = await self.fetcher.fetch(node.url)
            except FetchError as exc:
                self.errors.append(f"Could not fetch department {node.url}: {exc.cause!r}")
                continue
            fetched += 1

            if self.adapter.is_product_listing(document):
                self._collect(document, collector, current)
                continue

            children = self.adapter.child_departments(document)
            for child in reversed(children):
                stack.append(extend_lineage(current, child))
        return fetched

    def _collect(self, document: BeautifulSoup, collector: ProductCollector, lineage: Lineage) -> None:
        # The listing page belongs to the deepest department already in the lineage.
        for url in self.adapter.product_links(document):
            logger.debug("PRODUCT URL %s", url)
            collector.upsert(ProductStub(url=url, lineage=lineage))
