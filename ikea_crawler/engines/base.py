from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, List
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class ErrorLog:
    """
    Append-only record of recoverable failures (fetch errors) during one pass.
    """

    def __init__(self) -> None:
        self._entries: List[str] = []

    def append(self, message: str) -> None:
        logger.warning(message)
        self._entries.append(message)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def summary(self) -> str:
        return "\n".join(self._entries)


@dataclass
class CrawlReport:
    country: str = ""
    roots: int = 0
    visited_count: int = 0
    stub_count: int = 0
    product_count: int = 0
    errors: ErrorLog = field(default_factory=ErrorLog)


class CrawlEngine(ABC):
    """
    Abstract engine interface. Implementations own one crawl pass.
    """
    @abstractmethod
    async def crawl(self) -> CrawlReport:  # pragma: no cover - interface
        ...
