from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import IO, Optional

from .base import SinkWriteError
from ..adapters.base import CSV_HEADER, Product
from ..config import CrawlConfig

logger = logging.getLogger(__name__)


class CSVFileSink:
    """
    Writes the fixed header line, then one fully quoted row per product.
    The file is recreated at the start of every pass.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._fh: Optional[IO[str]] = None
        self._writer = None
        self.rows = 0

    @classmethod
    def from_config(cls, cfg: CrawlConfig) -> "CSVFileSink":
        return cls(cfg.output_file())

    def open(self) -> None:
        try:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            self._fh = open(self.path, "w", encoding="utf-8", newline="")
            self._fh.write(CSV_HEADER + "\n")
        except OSError as exc:
            raise SinkWriteError(f"cannot create {self.path}: {exc}") from exc
        self._writer = csv.writer(self._fh, quoting=csv.QUOTE_ALL, lineterminator="\n")
        self.rows = 0

    def write(self, product: Product) -> None:
        if self._writer is None:
            raise SinkWriteError("CSVFileSink.write() called before open()")
        try:
            self._writer.writerow(product.to_row())
            self._fh.flush()
        except OSError as exc:
            raise SinkWriteError(f"cannot write to {self.path}: {exc}") from exc
        self.rows += 1

    def finalize(self) -> None:
        if self._fh is None:
            return
        try:
            self._fh.close()
        except OSError as exc:
            raise SinkWriteError(f"cannot close {self.path}: {exc}") from exc
        finally:
            self._fh = None
            self._writer = None
        logger.info("Wrote %s products to %s", self.rows, self.path)
