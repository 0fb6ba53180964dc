from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

import duckdb
import pandas as pd

from ecom_analytics.config.settings import Settings
from ecom_analytics.db.utils import SqlDialect, dialect_for
from ecom_analytics.exceptions.errors import DataLoadError, QueryExecutionError
from ecom_analytics.logging.logger import get_logger


log = get_logger("db.duckdb")

_STAGE = "_ecom_stage"


@dataclass
class DuckDBExecutor:
    """Local DuckDB store; ``:memory:`` unless a database file is configured."""

    database: str = ":memory:"
    _con: Optional[duckdb.DuckDBPyConnection] = field(default=None, init=False, repr=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> "DuckDBExecutor":
        return cls(database=settings.duckdb_path)

    @property
    def dialect(self) -> SqlDialect:
        return dialect_for("duckdb")

    @property
    def schema(self) -> Optional[str]:
        return None

    @property
    def connection(self) -> duckdb.DuckDBPyConnection:
        if self._con is None:
            if self.database != ":memory:":
                Path(self.database).parent.mkdir(parents=True, exist_ok=True)
            self._con = duckdb.connect(database=self.database)
            log.info("Opened DuckDB", extra={"database": self.database})
        return self._con

    def execute(self, sql: str) -> pd.DataFrame:
        try:
            return self.connection.execute(sql).df()
        except duckdb.Error as e:
            raise QueryExecutionError(f"DuckDB query failed: {e}") from e

    def execute_script(self, statements: Iterable[str]) -> None:
        con = self.connection
        for stmt in statements:
            try:
                con.execute(stmt)
            except duckdb.Error as e:
                raise QueryExecutionError(f"DuckDB statement failed: {e}\n{stmt}") from e

    def insert_frame(self, table: str, df: pd.DataFrame) -> int:
        """Append ``df`` to ``table``; column names must match the target table.

        Foreign keys are enforced by DuckDB, so an orphan row rejects the whole frame.
        """
        if df.empty:
            return 0
        d = self.dialect
        cols = ", ".join(d.ident(c) for c in df.columns)
        con = self.connection
        con.register(_STAGE, df)
        try:
            con.execute(f"INSERT INTO {d.ident(table)} ({cols}) SELECT {cols} FROM {_STAGE}")
        except duckdb.ConstraintException as e:
            raise DataLoadError(f"Integrity violation while loading '{table}': {e}") from e
        except duckdb.Error as e:
            raise DataLoadError(f"Failed to load '{table}': {e}") from e
        finally:
            con.unregister(_STAGE)
        return len(df)

    def close(self) -> None:
        if self._con is not None:
            self._con.close()
            self._con = None

    def __enter__(self) -> "DuckDBExecutor":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
