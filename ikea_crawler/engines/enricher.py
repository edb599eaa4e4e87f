from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from .base import ErrorLog
from .tree_walker import Fetcher
from ..adapters.base import Product, ProductStub, SiteAdapter
from ..utils.http import FetchError

logger = logging.getLogger(__name__)


class ProductEnricher:
    """
    Turns a ProductStub into a Product by fetching and reading its page.
    Missing fields come back as empty strings; an unreachable page yields None.
    """

    def __init__(self, adapter: SiteAdapter, fetcher: Fetcher, errors: ErrorLog, country: str) -> None:
        self.adapter = adapter
        self.fetcher = fetcher
        self.errors = errors
        self.country = country

    async def enrich(self, stub: ProductStub) -> Optional[Product]:
        try:
            document = await self.fetcher.fetch(stub.url)
        except FetchError as exc:
            self.errors.append(f"Could not fetch product {stub.url}: {exc.cause!r}")
            return None

        product = self.adapter.extract_product(document, stub.url, self.country)
        return dataclasses.replace(
            product,
            department=stub.department,
            category=stub.category,
            subcategory=stub.subcategory,
        )
