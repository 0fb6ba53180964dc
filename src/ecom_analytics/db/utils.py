from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


_DUCKDB_TYPES = {
    "string": "VARCHAR",
    "int": "INTEGER",
    "float": "DOUBLE",
    "datetime": "TIMESTAMP",
    "date": "DATE",
    "bool": "BOOLEAN",
}

_POSTGRES_TYPES = {
    "string": "TEXT",
    "int": "INTEGER",
    "float": "DOUBLE PRECISION",
    "datetime": "TIMESTAMP",
    "date": "DATE",
    "bool": "BOOLEAN",
}


@dataclass(frozen=True)
class SqlDialect:
    """Tiny dialect shim.

    The report catalog is written once and rendered for DuckDB (local default)
    or PostgreSQL / Redshift. Only the handful of expressions that differ
    between those engines live here; everything else is plain ANSI SQL.
    """

    name: str
    types: Dict[str, str] = field(default_factory=dict)
    inline_foreign_keys: bool = True

    def ident(self, name: str) -> str:
        return '"' + name.replace('"', '""') + '"'

    def sql_type(self, logical: str) -> str:
        return self.types.get((logical or "string").lower(), self.types["string"])

    def month_start(self, expr: str) -> str:
        """First day of the month as a DATE."""
        return f"CAST(date_trunc('month', {expr}) AS DATE)"

    def hour_of(self, expr: str) -> str:
        return f"EXTRACT(HOUR FROM {expr})"

    def month_abbrev(self, expr: str) -> str:
        if self.name == "duckdb":
            return f"strftime({expr}, '%b')"
        return f"TO_CHAR({expr}, 'Mon')"

    def seconds_between(self, later: str, earlier: str) -> str:
        """Signed seconds from ``earlier`` to ``later`` (positive when later > earlier)."""
        if self.name == "duckdb":
            return f"(epoch({later}) - epoch({earlier}))"
        return f"EXTRACT(EPOCH FROM ({later} - {earlier}))"

    def round2(self, expr: str) -> str:
        if self.name == "duckdb":
            return f"ROUND({expr}, 2)"
        # bare NUMERIC is NUMERIC(18,0) on Redshift and would drop the fraction first
        return f"ROUND(({expr})::numeric(38, 6), 2)"


def dialect_for(db_type: str) -> SqlDialect:
    t = (db_type or "duckdb").strip().lower()
    if t == "duckdb":
        return SqlDialect(name="duckdb", types=_DUCKDB_TYPES, inline_foreign_keys=True)
    if t in {"postgres", "postgresql", "pg", "redshift"}:
        # Constraints are added after the tables exist, as named ALTER TABLE statements.
        return SqlDialect(name="postgres", types=_POSTGRES_TYPES, inline_foreign_keys=False)
    raise ValueError(f"Unsupported db_type: {db_type}")
