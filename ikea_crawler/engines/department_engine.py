from __future__ import annotations

import logging
from typing import List, Optional, Set

from .base import CrawlEngine, CrawlReport, ErrorLog
from .enricher import ProductEnricher
from .tree_walker import Fetcher, ProductCollector, TreeWalker
from ..adapters.base import Department, SiteAdapter
from ..adapters.registry import AdapterRegistry
from ..config import CrawlConfig
from ..export.base import ProductSink
from ..utils.http import FetchError, PageFetcher

logger = logging.getLogger(__name__)


class DepartmentCrawlEngine(CrawlEngine):
    """
    One full pass over a market:
    - resolve the root departments,
    - walk every root's category tree with its own visited set,
    - enrich each collected stub and stream the product to the sink.
    Fetching is sequential; a failed page is recorded and skipped.
    """
    def __init__(
        self,
        config: CrawlConfig,
        registry: AdapterRegistry | None = None,
        *,
        sink: ProductSink,
        fetcher: Optional[Fetcher] = None,
    ) -> None:
        self.config = config
        self.registry = registry or AdapterRegistry()
        self.sink = sink
        self._fetcher = fetcher

    async def crawl(self) -> CrawlReport:
        if self._fetcher is not None:
            return await self._crawl(self._fetcher)
        cfg = self.config
        async with PageFetcher(
            cfg.base_url,
            timeout=cfg.request_timeout,
            user_agent=cfg.user_agent,
            retries=cfg.retries,
        ) as fetcher:
            return await self._crawl(fetcher)

    async def _crawl(self, fetcher: Fetcher) -> CrawlReport:
        cfg = self.config
        adapter = self.registry.match(cfg.base_url)
        report = CrawlReport(country=cfg.country_name)
        errors = report.errors

        roots = await self.resolve_roots(adapter, fetcher, errors)
        report.roots = len(roots)
        logger.info("Crawling %s root departments for %s", len(roots), cfg.country_name)

        collector = ProductCollector()
        walker = TreeWalker(adapter, fetcher, errors)
        for root in roots:
            visited: Set[str] = set()
            report.visited_count += await walker.walk(visited, collector, (root,))
            logger.info("%s: %s products collected so far", root.name, len(collector))
        report.stub_count = len(collector)

        enricher = ProductEnricher(adapter, fetcher, errors, cfg.country_name)
        self.sink.open()
        try:
            for index, stub in enumerate(collector, start=1):
                product = await enricher.enrich(stub)
                if product is None:
                    continue
                self.sink.write(product)
                report.product_count += 1
                logger.debug("%s/%s: %s", index, report.stub_count, product.name)
        finally:
            self.sink.finalize()
        return report

    async def resolve_roots(self, adapter: SiteAdapter, fetcher: Fetcher, errors: ErrorLog) -> List[Department]:
        """
        Configured departments win; otherwise read them from the market home page.
        Roots are de-duplicated by URL, keeping the first occurrence.
        """
        cfg = self.config
        if cfg.departments:
            candidates = [Department(name=d["name"], url=d["url"]) for d in cfg.departments]
        else:
            try:
                document = await fetcher.fetch(cfg.home_url)
            except FetchError as exc:
                errors.append(f"Could not fetch home page {cfg.home_url}: {exc.cause!r}")
                return []
            candidates = adapter.root_departments(document)

        roots: List[Department] = []
        seen: Set[str] = set()
        for dept in candidates:
            if dept.url in seen:
                continue
            seen.add(dept.url)
            roots.append(dept)
        return roots
