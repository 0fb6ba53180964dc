"""Store backends for the reporting catalog.

Every metric is plain SQL rendered for one dialect, so the same catalog runs
wherever a copy of the schema lives:
  - DuckDB   : local, in-memory or file (default)
  - Postgres : psycopg2, the original home of the dataset
  - Redshift : cluster/serverless via Redshift Data API (read-only)
"""
from __future__ import annotations

from ecom_analytics.config.settings import Settings


def get_executor(settings: Settings):
    db_type = (settings.db_type or "duckdb").strip().lower()
    if db_type == "duckdb":
        from ecom_analytics.db.duckdb_store import DuckDBExecutor
        return DuckDBExecutor.from_settings(settings)
    if db_type in {"postgres", "postgresql", "pg"}:
        from ecom_analytics.db.postgres import PostgresExecutor
        return PostgresExecutor.from_settings(settings)
    if db_type == "redshift":
        from ecom_analytics.db.redshift import RedshiftExecutor
        return RedshiftExecutor.from_settings(settings)
    raise ValueError(f"Unknown DB_TYPE: {db_type}")
