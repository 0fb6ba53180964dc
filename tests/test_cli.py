from __future__ import annotations

import pytest

from ecom_analytics import cli


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    for key in ("DB_TYPE", "DUCKDB_PATH", "LOG_FILE", "EXPORT_DIR", "DATA_DIR", "CONFIG_DIR"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("APP_ENV", "clitest")
    (tmp_path / "clitest.yaml").write_text(
        f"""
app:
  log_file: {tmp_path / 'logs' / 'reporting.log'}
export:
  export_dir: {tmp_path / 'exports'}
database:
  db_type: duckdb
  duckdb_path: {tmp_path / 'ecommerce.duckdb'}
""",
        encoding="utf-8",
    )
    return tmp_path


def test_list_prints_every_metric(config_dir, capsys):
    assert cli.main(["--config-dir", str(config_dir), "list"]) == 0
    out = capsys.readouterr().out
    assert "yoy-partial-period-growth" in out
    assert "base_year=2017" in out


def test_sql_renders_for_requested_dialect(config_dir, capsys):
    rc = cli.main(["--config-dir", str(config_dir), "sql", "volume-by-month", "--dialect", "postgres"])
    assert rc == 0
    assert "TO_CHAR" in capsys.readouterr().out


def test_ddl_prints_create_statements(config_dir, capsys):
    assert cli.main(["--config-dir", str(config_dir), "ddl"]) == 0
    assert 'CREATE TABLE IF NOT EXISTS "orders"' in capsys.readouterr().out


def test_load_then_run_and_export(config_dir, dataset_dir, capsys):
    assert cli.main(["--config-dir", str(config_dir), "load", str(dataset_dir)]) == 0
    assert "olist_orders_dataset.csv" in capsys.readouterr().out

    rc = cli.main(
        ["--config-dir", str(config_dir), "run", "top-categories-by-revenue", "--param", "limit=1", "--export"]
    )
    assert rc == 0
    out = capsys.readouterr().out
    assert "beleza_saude" in out and "esporte_lazer" not in out
    assert (config_dir / "exports" / "top_categories_by_revenue.csv").exists()


def test_bad_parameter_returns_error_code(config_dir, capsys):
    rc = cli.main(["--config-dir", str(config_dir), "sql", "top-categories-by-revenue", "--param", "limit"])
    assert rc == 1
    assert "key=value" in capsys.readouterr().err


def test_unknown_metric_returns_error_code(config_dir, capsys):
    assert cli.main(["--config-dir", str(config_dir), "sql", "no-such-metric"]) == 1
    assert "no-such-metric" in capsys.readouterr().err


def test_run_all_exports_manifest(config_dir, dataset_dir, capsys):
    assert cli.main(["--config-dir", str(config_dir), "load", str(dataset_dir)]) == 0
    assert cli.main(["--config-dir", str(config_dir), "run-all", "--export"]) == 0
    out = capsys.readouterr().out
    assert "== repeat-purchase-rate" in out
    assert (config_dir / "exports" / "manifest.csv").exists()


def test_reload_needs_replace(config_dir, dataset_dir, capsys):
    args = ["--config-dir", str(config_dir), "load", str(dataset_dir)]
    assert cli.main(args) == 0
    assert cli.main(args) == 1
    assert "Integrity violation" in capsys.readouterr().err
    assert cli.main(args + ["--replace"]) == 0
    assert cli.main(["--config-dir", str(config_dir), "run", "customers-by-state"]) == 0
    assert "SP" in capsys.readouterr().out
