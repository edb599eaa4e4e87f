from __future__ import annotations

from typing import List

from ..adapters.base import Product
from ..config import CrawlConfig


class MemorySink:
    """Keeps the products of the latest pass in memory (used by the HTTP API)."""

    def __init__(self) -> None:
        self.products: List[Product] = []

    @classmethod
    def from_config(cls, cfg: CrawlConfig) -> "MemorySink":
        return cls()

    def open(self) -> None:
        self.products = []

    def write(self, product: Product) -> None:
        self.products.append(product)

    def finalize(self) -> None:
        pass
