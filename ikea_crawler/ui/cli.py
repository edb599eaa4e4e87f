from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List

from ..config import ConfigError, CrawlConfig, OUTPUT_MODES
from ..utils.logging import setup_logging
from ..utils.loader import load_symbol
from ..utils.notify import EmailNotifier
from ..adapters.registry import AdapterRegistry
from ..engines.base import CrawlEngine
from ..engines.orchestrator import CrawlOrchestrator
from ..export.base import SINK_ALIASES, ProductSink, SinkWriteError

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="IKEA catalogue crawler")
    p.add_argument("-t", "--type", choices=[m for m in OUTPUT_MODES if m != "memory"], default=None,
                   help="Output type: file (CSV), table (database upsert) or json (default: file)")
    p.add_argument("-o", "--output", type=str, default=None, help="Output file name (default: output.csv, or output.json for -t json)")
    p.add_argument("-c", "--country", type=int, default=None,
                   help="Index of the country to crawl (run without it to list countries)")
    p.add_argument("-l", "--loop", action="store_true", help="Keep crawling instead of running once")
    p.add_argument("-i", "--interval", type=float, default=None,
                   help="Seconds between the starts of two passes when looping (default: 60)")
    p.add_argument("-e", "--email", action="append", default=None, metavar="ADDRESS",
                   help="Send failure summaries to this address (repeatable)")
    p.add_argument("--db-host", type=str, default=None, help="Database host")
    p.add_argument("--db-port", type=int, default=None, help="Database port")
    p.add_argument("--db-user", type=str, default=None, help="Database user")
    p.add_argument("--db-password", type=str, default=None, help="Database password")
    p.add_argument("--db-name", type=str, default=None, help="Database name")
    p.add_argument("--db-url", type=str, default=None, help="SQLAlchemy database URL (overrides --db-*)")
    p.add_argument("--config", type=str, help="Path to config JSON", default=None)
    p.add_argument("--extra-adapters", type=str, default=None,
                   help="Comma-separated dotted paths for additional adapters")
    p.add_argument("--log-level", type=str, default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
    p.add_argument("--serve", action="store_true", help="Run REST API server instead of CLI crawl")
    p.add_argument("--host", type=str, default="127.0.0.1", help="API host (when --serve)")
    p.add_argument("--port", type=int, default=8000, help="API port (when --serve)")
    return p


def _load_config(args: argparse.Namespace) -> CrawlConfig:
    if args.config:
        cfg = CrawlConfig.from_file(args.config)
    else:
        cfg = CrawlConfig.from_env()

    if args.type:
        cfg.output_mode = args.type
    if args.output:
        cfg.output_path = args.output
    if args.country is not None:
        cfg.country = args.country
    if args.loop:
        cfg.loop = True
    if args.interval is not None:
        cfg.interval = args.interval
    if args.email:
        cfg.notify = list(args.email)
    if args.db_host:
        cfg.db_host = args.db_host
    if args.db_port is not None:
        cfg.db_port = args.db_port
    if args.db_user:
        cfg.db_user = args.db_user
    if args.db_password:
        cfg.db_password = args.db_password
    if args.db_name:
        cfg.db_name = args.db_name
    if args.db_url:
        cfg.db_url = args.db_url
    if args.extra_adapters:
        cfg.extra_adapters = [a.strip() for a in args.extra_adapters.split(",") if a.strip()]
    return cfg


def build_registry(cfg: CrawlConfig) -> AdapterRegistry:
    registry = AdapterRegistry()
    registry.discover_entry_points()
    # Allow runtime registration of additional adapters
    for dotted in cfg.extra_adapters:
        try:
            adapter_cls = load_symbol(dotted)
            registry.register(adapter_cls())
        except (ImportError, TypeError) as exc:
            logger.warning("Failed to load adapter %s: %r", dotted, exc)
    return registry


def build_sink(cfg: CrawlConfig) -> ProductSink:
    sink_cls = load_symbol(cfg.output_mode, SINK_ALIASES)
    return sink_cls.from_config(cfg)


def run_server(host: str, port: int) -> None:
    import uvicorn

    uvicorn.run("ikea_crawler.apis.app:app", host=host, port=port)


def run_cli(argv: List[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if args.serve:
        run_server(args.host, args.port)
        return 0

    try:
        cfg = _load_config(args)
        if cfg.country is None:
            print("A country is required (-c INDEX). Configured countries:", file=sys.stderr)
            print(cfg.describe_countries(), file=sys.stderr)
            return 2
        cfg.validate()
    except (ValueError, OSError) as exc:  # ConfigError is a ValueError
        print(f"error: {exc}", file=sys.stderr)
        return 2

    # Dynamic engine loading so upgrades don't require code edits.
    engine_cls = load_symbol(cfg.engine)
    registry = build_registry(cfg)
    notifier = EmailNotifier.from_config(cfg)

    try:
        # Built once: the table sink creates its table here, not on every pass.
        sink = build_sink(cfg)

        def engine_factory() -> CrawlEngine:
            return engine_cls(cfg, registry=registry, sink=sink)

        orchestrator = CrawlOrchestrator(cfg, engine_factory, notifier)
        asyncio.run(orchestrator.run())
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except SinkWriteError as exc:
        logger.critical("Output failed, aborting: %s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130
    return 0
