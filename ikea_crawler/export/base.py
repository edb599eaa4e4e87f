from __future__ import annotations

from typing import Dict, Protocol

from ..adapters.base import Product


class SinkWriteError(Exception):
    """The destination could not be written. Fatal for the pass."""


class ProductSink(Protocol):
    """
    Destination for finished products. ``open`` is called once per pass,
    ``write`` once per product, ``finalize`` when the pass ends.
    """
    def open(self) -> None:
        ...

    def write(self, product: Product) -> None:
        ...

    def finalize(self) -> None:
        ...


# Output modes accepted by --type, resolved with utils.loader.load_symbol.
SINK_ALIASES: Dict[str, str] = {
    "file": "ikea_crawler.export.csv_exporter:CSVFileSink",
    "json": "ikea_crawler.export.json_exporter:JSONFileSink",
    "table": "ikea_crawler.export.sql_exporter:TableSink",
    "memory": "ikea_crawler.export.memory:MemorySink",
}
