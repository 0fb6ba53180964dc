from __future__ import annotations

import pytest

from ecom_analytics.config.settings import load_settings

CONFIG = """
app:
  log_level: DEBUG
ingestion:
  data_dir: /data/olist
  fallback_encodings: ["utf-8"]
database:
  db_type: duckdb
  duckdb_path: /tmp/reporting.duckdb
  postgres:
    host: db.internal
    port: 6543
    database: ecommerce
"""

ENV_KEYS = [
    "APP_ENV", "CONFIG_DIR", "LOG_LEVEL", "LOG_FILE", "DATA_DIR", "DB_TYPE", "DUCKDB_PATH",
    "PGHOST", "PGPORT", "PGDATABASE", "PGUSER", "PGPASSWORD", "PGSCHEMA",
    "FALLBACK_ENCODINGS", "SKIP_BAD_LINES", "EXPORT_DIR", "DEFAULT_DELIMITER",
]


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    (tmp_path / "test.yaml").write_text(CONFIG, encoding="utf-8")
    monkeypatch.setenv("APP_ENV", "test")
    return tmp_path


def test_settings_from_yaml(config_dir):
    s = load_settings(str(config_dir))
    assert s.env == "test"
    assert s.log_level == "DEBUG"
    assert s.data_dir == "/data/olist"
    assert s.fallback_encodings == ["utf-8"]
    assert s.db_type == "duckdb"
    assert s.duckdb_path == "/tmp/reporting.duckdb"
    assert (s.pg_host, s.pg_port, s.pg_database) == ("db.internal", 6543, "ecommerce")
    assert s.pg_schema == "public"
    assert s.delimiter == ","
    assert s.skip_bad_lines is False


def test_environment_overrides_yaml(config_dir, monkeypatch):
    monkeypatch.setenv("DB_TYPE", "Postgres")
    monkeypatch.setenv("PGPORT", "5433")
    monkeypatch.setenv("PGPASSWORD", "secret")
    monkeypatch.setenv("FALLBACK_ENCODINGS", "utf-8, latin-1")
    monkeypatch.setenv("SKIP_BAD_LINES", "yes")
    s = load_settings(str(config_dir))
    assert s.db_type == "postgres"
    assert s.pg_port == 5433
    assert s.pg_password == "secret"
    assert s.fallback_encodings == ["utf-8", "latin-1"]
    assert s.skip_bad_lines is True


def test_missing_config_file(tmp_path, monkeypatch):
    monkeypatch.setenv("APP_ENV", "nowhere")
    with pytest.raises(FileNotFoundError):
        load_settings(str(tmp_path))


def test_repo_dev_config_loads(monkeypatch):
    from conftest import ROOT

    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("APP_ENV", "dev")
    s = load_settings(str(ROOT / "config"))
    assert s.db_type == "duckdb"
