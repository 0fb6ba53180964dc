from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import pandas as pd
import psycopg2
from psycopg2 import sql

from ecom_analytics.config.settings import Settings
from ecom_analytics.db.utils import SqlDialect, dialect_for
from ecom_analytics.exceptions.errors import DataLoadError, QueryExecutionError
from ecom_analytics.logging.logger import get_logger


log = get_logger("db.postgres")

CHUNK_ROWS = 50_000  # rows per COPY round-trip


@dataclass
class PostgresExecutor:
    settings: Settings
    _conn: Optional[Any] = field(default=None, init=False, repr=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PostgresExecutor":
        return cls(settings=settings)

    @property
    def dialect(self) -> SqlDialect:
        return dialect_for("postgres")

    @property
    def schema(self) -> Optional[str]:
        return self.settings.pg_schema or None

    @property
    def connection(self):
        if self._conn is None:
            s = self.settings
            self._conn = psycopg2.connect(
                host=s.pg_host,
                port=s.pg_port,
                dbname=s.pg_database,
                user=s.pg_user,
                password=s.pg_password,
            )
            if s.pg_schema:
                with self._conn.cursor() as cur:
                    cur.execute(sql.SQL("SET search_path TO {}").format(sql.Identifier(s.pg_schema)))
                self._conn.commit()
            log.info("Connected to Postgres", extra={"host": s.pg_host, "database": s.pg_database})
        return self._conn

    def execute(self, query: str) -> pd.DataFrame:
        conn = self.connection
        try:
            with conn.cursor() as cur:
                cur.execute(query)
                cols = [c[0] for c in (cur.description or [])]
                rows = cur.fetchall() if cur.description else []
            conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            raise QueryExecutionError(f"Postgres query failed: {e}") from e
        return pd.DataFrame(rows, columns=cols)

    def execute_script(self, statements: Iterable[str]) -> None:
        conn = self.connection
        try:
            with conn.cursor() as cur:
                for stmt in statements:
                    cur.execute(stmt)
            conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            raise QueryExecutionError(f"Postgres statement failed: {e}") from e

    def insert_frame(self, table: str, df: pd.DataFrame) -> int:
        """COPY ``df`` into ``table`` in chunks; one transaction for the whole frame."""
        if df.empty:
            return 0
        conn = self.connection
        copy_sql = sql.SQL(
            "COPY {}.{} ({}) FROM STDIN WITH (FORMAT csv, NULL '', QUOTE '\"', ESCAPE '\"')"
        ).format(
            sql.Identifier(self.schema or "public"),
            sql.Identifier(table),
            sql.SQL(", ").join(sql.Identifier(c) for c in df.columns),
        )
        try:
            with conn.cursor() as cur:
                for start in range(0, len(df), CHUNK_ROWS):
                    buf = io.StringIO()
                    df.iloc[start:start + CHUNK_ROWS].to_csv(
                        buf, index=False, header=False, quoting=csv.QUOTE_MINIMAL
                    )
                    buf.seek(0)
                    cur.copy_expert(copy_sql.as_string(conn), buf)
            conn.commit()
        except psycopg2.IntegrityError as e:
            conn.rollback()
            raise DataLoadError(f"Integrity violation while loading '{table}': {e}") from e
        except psycopg2.Error as e:
            conn.rollback()
            raise DataLoadError(f"Failed to load '{table}': {e}") from e
        return len(df)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "PostgresExecutor":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
