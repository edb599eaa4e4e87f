from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, MetaData, Table, Text, UniqueConstraint, create_engine
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import URL, Connection, Engine
from sqlalchemy.exc import ArgumentError, DBAPIError, SQLAlchemyError

from .base import SinkWriteError
from ..adapters.base import Product
from ..config import ConfigError, CrawlConfig

logger = logging.getLogger(__name__)

metadata = MetaData()

products_table = Table(
    "products",
    metadata,
    Column("id", Text, nullable=False),
    Column("name", Text),
    Column("type", Text),
    Column("country", Text, nullable=False),
    Column("price", Text),
    Column("unit", Text),
    Column("metric", Text),
    Column("url", Text, nullable=False),
    Column("image_url", Text),
    Column("department", Text),
    Column("category", Text),
    Column("subcategory", Text),
    Column("department_url", Text),
    Column("category_url", Text),
    Column("subcategory_url", Text),
    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
    UniqueConstraint("id", "country", "url", name="products_id_country_url_key"),
)

KEY_COLUMNS = ("id", "country", "url")
UPDATE_COLUMNS = tuple(
    c.name for c in products_table.columns if c.name not in KEY_COLUMNS + ("created_at", "updated_at")
)

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def create_db_engine(cfg: CrawlConfig) -> Engine:
    """Engine for the configured database; a malformed URL or unknown driver is a ConfigError."""
    try:
        if cfg.db_url:
            return create_engine(cfg.db_url)
        url = URL.create(
            drivername=cfg.db_driver,
            username=cfg.db_user or None,
            password=cfg.db_password or None,
            host=cfg.db_host or None,
            port=cfg.db_port,
            database=cfg.db_name or None,
        )
        return create_engine(url)
    except ArgumentError as exc:  # includes NoSuchModuleError
        raise ConfigError(f"invalid database settings: {exc}") from exc


class TableSink:
    """
    Upserts products into the ``products`` table keyed by (id, country, url).
    Repeated passes over the same market update rows in place.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        try:
            self._insert = _INSERTS[engine.dialect.name]
        except KeyError:
            raise SinkWriteError(f"upsert is not supported for {engine.dialect.name}") from None
        self._conn: Optional[Connection] = None
        self.written = 0
        self.failed = 0
        self.ensure_schema()

    @classmethod
    def from_config(cls, cfg: CrawlConfig) -> "TableSink":
        return cls(create_db_engine(cfg))

    def ensure_schema(self) -> None:
        try:
            metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            # Usually the table already exists under a different owner; writes will tell.
            logger.debug("Table creation skipped: %r", exc)

    def open(self) -> None:
        try:
            self._conn = self.engine.connect()
        except SQLAlchemyError as exc:
            raise SinkWriteError(f"cannot connect to database: {exc}") from exc
        self.written = 0
        self.failed = 0

    def write(self, product: Product) -> None:
        if self._conn is None:
            raise SinkWriteError("TableSink.write() called before open()")
        now = datetime.now(timezone.utc)
        stmt = self._insert(products_table).values(**product.to_record(), created_at=now, updated_at=now)
        update = {name: stmt.excluded[name] for name in UPDATE_COLUMNS}
        update["updated_at"] = now
        stmt = stmt.on_conflict_do_update(index_elements=list(KEY_COLUMNS), set_=update)
        try:
            with self._conn.begin():
                self._conn.execute(stmt)
        except DBAPIError as exc:
            if exc.connection_invalidated:
                raise SinkWriteError(f"database connection lost: {exc}") from exc
            self.failed += 1
            logger.error("Upsert failed for %s: %s", product.url, exc)
            return
        self.written += 1

    def finalize(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        logger.info("Upserted %s products (%s failed)", self.written, self.failed)
