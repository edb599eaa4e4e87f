from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import List, Optional, Dict, Any
from pathlib import Path
import os
import json

from .version import __version__, CONFIG_SCHEMA_VERSION


class ConfigError(ValueError):
    """Invalid configuration; raised before any page is fetched."""


# Markets the crawler knows about. The path prefixes the catalogue URLs of each market.
DEFAULT_COUNTRIES: List[Dict[str, str]] = [
    {"name": "Singapore", "path": "/sg/en"},
    {"name": "Malaysia", "path": "/my/en"},
    {"name": "Thailand", "path": "/th/en"},
    {"name": "Hong Kong", "path": "/hk/en"},
    {"name": "Australia", "path": "/au/en"},
    {"name": "United Kingdom", "path": "/gb/en"},
]

# "memory" keeps products in-process and is only used by the HTTP API.
OUTPUT_MODES = ("file", "table", "json", "memory")

# Output file used when no path is given, per file-based mode.
DEFAULT_OUTPUT_FILES = {"file": "output.csv", "json": "output.json"}


@dataclass
class CrawlConfig:
    """
    Canonical configuration object passed throughout the system.
    Keep it dataclass-only (no heavy deps) to stay upgrade-friendly.
    """
    schema_version: int = CONFIG_SCHEMA_VERSION
    base_url: str = "https://www.ikea.com"
    countries: List[Dict[str, str]] = field(default_factory=lambda: [dict(c) for c in DEFAULT_COUNTRIES])
    # Index into ``countries``; required, there is no default market.
    country: Optional[int] = None
    # Explicit root departments ({"name", "url"}); discovered from the market home page when empty.
    departments: List[Dict[str, str]] = field(default_factory=list)
    output_mode: str = "file"
    # Defaults to DEFAULT_OUTPUT_FILES for the selected mode.
    output_path: Optional[str] = None
    loop: bool = False
    interval: float = 60.0
    # Failure summaries are e-mailed to these addresses.
    notify: List[str] = field(default_factory=list)
    smtp_host: str = "localhost"
    smtp_port: int = 25
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_sender: str = "ikea_crawler@localhost"
    smtp_starttls: bool = False
    # Table output. ``db_url`` wins over the individual fields.
    db_url: Optional[str] = None
    db_driver: str = "postgresql+psycopg2"
    db_host: str = "localhost"
    db_port: Optional[int] = 5432
    db_user: Optional[str] = None
    db_password: Optional[str] = None
    db_name: str = "ikea"
    request_timeout: float = 15.0
    retries: int = 2
    user_agent: str = f"ikea_crawler/{__version__}"
    # Dotted path for the pass engine to allow runtime swapping without code changes.
    engine: str = "ikea_crawler.engines.department_engine:DepartmentCrawlEngine"
    # Extra adapters (dotted class paths) to register at startup
    extra_adapters: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    # ---------- Market helpers ----------

    @property
    def market(self) -> Dict[str, str]:
        if self.country is None:
            raise ConfigError("no country selected")
        return self.countries[self.country]

    @property
    def country_name(self) -> str:
        return self.market["name"]

    @property
    def home_url(self) -> str:
        return self.market["path"].rstrip("/") + "/"

    def output_file(self) -> str:
        if self.output_path:
            return self.output_path
        return DEFAULT_OUTPUT_FILES.get(self.output_mode, "output.csv")

    def describe_countries(self) -> str:
        return "\n".join(f"  {i}: {c['name']}" for i, c in enumerate(self.countries))

    # ---------- Loaders ----------

    @classmethod
    def from_env(cls) -> "CrawlConfig":
        """
        Build config from environment variables (all optional).
        """
        def _get(name: str, default: str) -> str:
            return os.getenv(name, default)

        country = _get("CRAWLER_COUNTRY", "")
        db_port = _get("CRAWLER_DB_PORT", "5432")
        return cls(
            base_url=_get("CRAWLER_BASE_URL", "https://www.ikea.com"),
            country=int(country) if country else None,
            output_mode=_get("CRAWLER_OUTPUT_MODE", "file"),
            output_path=os.getenv("CRAWLER_OUTPUT_PATH"),
            loop=_get("CRAWLER_LOOP", "false").lower() in ("1", "true", "yes"),
            interval=float(_get("CRAWLER_INTERVAL", "60")),
            notify=[a.strip() for a in _get("CRAWLER_NOTIFY", "").split(",") if a.strip()],
            smtp_host=_get("CRAWLER_SMTP_HOST", "localhost"),
            smtp_port=int(_get("CRAWLER_SMTP_PORT", "25")),
            smtp_user=os.getenv("CRAWLER_SMTP_USER"),
            smtp_password=os.getenv("CRAWLER_SMTP_PASSWORD"),
            smtp_sender=_get("CRAWLER_SMTP_SENDER", "ikea_crawler@localhost"),
            smtp_starttls=_get("CRAWLER_SMTP_STARTTLS", "false").lower() in ("1", "true", "yes"),
            db_url=os.getenv("CRAWLER_DB_URL"),
            db_host=_get("CRAWLER_DB_HOST", "localhost"),
            db_port=int(db_port) if db_port else None,
            db_user=os.getenv("CRAWLER_DB_USER"),
            db_password=os.getenv("CRAWLER_DB_PASSWORD"),
            db_name=_get("CRAWLER_DB_NAME", "ikea"),
            request_timeout=float(_get("CRAWLER_REQUEST_TIMEOUT", "15.0")),
            retries=int(_get("CRAWLER_RETRIES", "2")),
            user_agent=_get("CRAWLER_USER_AGENT", f"ikea_crawler/{__version__}"),
            engine=_get("CRAWLER_ENGINE", "ikea_crawler.engines.department_engine:DepartmentCrawlEngine"),
            extra_adapters=[a.strip() for a in _get("CRAWLER_EXTRA_ADAPTERS", "").split(",") if a.strip()],
        )

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> "CrawlConfig":
        """
        Load configuration from a JSON file. Supports schema migration for future versions.
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        data = migrate_config(data)
        try:
            return cls(**data)
        except TypeError as exc:
            raise ConfigError(f"invalid config file {path}: {exc}") from exc

    # ---------- Validation ----------

    def validate(self) -> None:
        if not self.countries:
            raise ConfigError("at least one country must be configured")
        if self.country is None:
            raise ConfigError("a country index is required")
        if not 0 <= self.country < len(self.countries):
            raise ConfigError(
                f"country index {self.country} out of range 0..{len(self.countries) - 1}"
            )
        if self.output_mode not in OUTPUT_MODES:
            raise ConfigError(f"output mode must be one of {', '.join(OUTPUT_MODES)}")
        if self.interval < 0:
            raise ConfigError("interval must be >= 0")
        if self.retries < 0:
            raise ConfigError("retries must be >= 0")
        for dept in self.departments:
            if not dept.get("name") or not dept.get("url"):
                raise ConfigError(f"department entries need a name and a url: {dept!r}")
        if self.output_mode in ("file", "json"):
            # Validate output path parent exists or is creatable
            parent = Path(self.output_file()).parent
            parent.mkdir(parents=True, exist_ok=True)


def migrate_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Migrate config dict to the latest schema version.
    Keep this pure and additive. Add migrations here as you bump schema.
    """
    schema = raw.get("schema_version", 1)

    if schema < 2:
        # v1 crawled from start URLs; each becomes an explicit root department.
        start_urls = raw.pop("start_urls", None) or []
        raw.setdefault("departments", [{"name": u, "url": u} for u in start_urls])
        for obsolete in ("allowed_domains", "max_depth", "max_concurrency", "engine", "exporter"):
            raw.pop(obsolete, None)
        raw["schema_version"] = 2

    # Ensure a schema_version is present
    raw.setdefault("schema_version", CONFIG_SCHEMA_VERSION)
    return raw
