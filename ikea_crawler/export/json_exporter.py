from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from .base import SinkWriteError
from ..adapters.base import Product
from ..config import CrawlConfig

logger = logging.getLogger(__name__)


class JSONFileSink:
    """Buffers a pass and writes it as one JSON array when the pass ends."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._items: List[Dict[str, Any]] = []

    @classmethod
    def from_config(cls, cfg: CrawlConfig) -> "JSONFileSink":
        return cls(cfg.output_file())

    def open(self) -> None:
        self._items = []

    def write(self, product: Product) -> None:
        self._items.append(product.to_dict())

    def finalize(self) -> None:
        try:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self._items, f, indent=2, ensure_ascii=False)
        except OSError as exc:
            raise SinkWriteError(f"cannot write {self.path}: {exc}") from exc
        logger.info("Wrote %s products to %s", len(self._items), self.path)
