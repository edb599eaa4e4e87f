import json

import pytest

from ikea_crawler.config import ConfigError, CrawlConfig, migrate_config
from ikea_crawler.export.csv_exporter import CSVFileSink
from ikea_crawler.export.json_exporter import JSONFileSink
from ikea_crawler.ui.cli import _load_config, build_arg_parser, build_sink, run_cli


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("CRAWLER_COUNTRY", "CRAWLER_OUTPUT_MODE", "CRAWLER_OUTPUT_PATH", "CRAWLER_NOTIFY"):
        monkeypatch.delenv(name, raising=False)


def test_missing_country_lists_countries_and_exits(capsys):
    assert run_cli([]) == 2
    err = capsys.readouterr().err
    assert "0: Singapore" in err
    assert "Malaysia" in err


def test_out_of_range_country_is_rejected(capsys):
    assert run_cli(["-c", "99"]) == 2
    assert "out of range" in capsys.readouterr().err


def test_cli_flags_override_defaults():
    args = build_arg_parser().parse_args(
        ["-t", "table", "-c", "1", "-l", "-i", "300", "-e", "ops@example.com", "-e", "dev@example.com",
         "--db-host", "db.internal", "--db-port", "6543", "--db-user", "crawler"]
    )
    cfg = _load_config(args)
    cfg.validate()
    assert cfg.output_mode == "table"
    assert cfg.country_name == "Malaysia"
    assert cfg.loop is True
    assert cfg.interval == 300
    assert cfg.notify == ["ops@example.com", "dev@example.com"]
    assert (cfg.db_host, cfg.db_port, cfg.db_user) == ("db.internal", 6543, "crawler")


def test_defaults_match_documented_cli_surface():
    cfg = _load_config(build_arg_parser().parse_args(["-c", "0"]))
    assert cfg.output_mode == "file"
    assert cfg.output_file() == "output.csv"
    assert cfg.interval == 60
    assert cfg.loop is False
    assert cfg.home_url == "/sg/en/"


def test_unknown_output_mode_is_a_config_error():
    with pytest.raises(ConfigError):
        CrawlConfig(country=0, output_mode="xml").validate()


def test_department_entries_need_name_and_url():
    with pytest.raises(ConfigError):
        CrawlConfig(country=0, output_mode="table", departments=[{"url": "/x"}]).validate()


def test_build_sink_resolves_output_modes(tmp_path):
    assert isinstance(build_sink(CrawlConfig(country=0, output_path=str(tmp_path / "a.csv"))), CSVFileSink)
    assert isinstance(build_sink(CrawlConfig(country=0, output_mode="json")), JSONFileSink)


def test_config_file_with_v1_schema_is_migrated(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "start_urls": ["/sg/en/catalog/categories/departments/childrens_ikea/"],
        "max_depth": 3,
        "output_path": str(tmp_path / "out.csv"),
    }), encoding="utf-8")
    cfg = CrawlConfig.from_file(path)
    assert cfg.schema_version == 2
    assert cfg.departments[0]["url"] == "/sg/en/catalog/categories/departments/childrens_ikea/"


def test_migrate_keeps_current_schema_untouched():
    raw = {"schema_version": 2, "departments": [{"name": "Bedroom", "url": "/bedroom/"}]}
    assert migrate_config(dict(raw)) == raw


def test_json_mode_defaults_to_json_file():
    cfg = _load_config(build_arg_parser().parse_args(["-c", "0", "-t", "json"]))
    assert cfg.output_file() == "output.json"
    assert build_sink(cfg).path == "output.json"
    explicit = _load_config(build_arg_parser().parse_args(["-c", "0", "-t", "json", "-o", "dump.txt"]))
    assert explicit.output_file() == "dump.txt"


def test_malformed_db_url_exits_with_config_error(capsys):
    assert run_cli(["-c", "0", "-t", "table", "--db-url", "not a database url"]) == 2
    assert "error: invalid database settings" in capsys.readouterr().err


def test_unknown_db_driver_exits_with_config_error(capsys):
    assert run_cli(["-c", "0", "-t", "table", "--db-url", "nosuchdialect://user@host/ikea"]) == 2
    assert "error: invalid database settings" in capsys.readouterr().err
