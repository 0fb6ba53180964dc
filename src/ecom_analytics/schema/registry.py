from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from ecom_analytics.db.utils import SqlDialect
from ecom_analytics.exceptions.errors import SchemaValidationError
from ecom_analytics.logging.logger import get_logger

log = get_logger("schema.registry")

DEFAULT_SCHEMA_PATH = Path(__file__).with_name("ecommerce_schema.yaml")


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    type: str
    nullable: bool = True
    description: str = ""


@dataclass(frozen=True)
class TableSpec:
    name: str
    file_patterns: List[str]
    description: str
    primary_key: List[str]
    columns: Dict[str, ColumnSpec]


@dataclass(frozen=True)
class ForeignKey:
    name: str
    table: str
    columns: List[str]
    ref_table: str
    ref_columns: List[str]


class SchemaRegistry:
    def __init__(self, tables: Dict[str, TableSpec], foreign_keys: List[ForeignKey], version: int = 1):
        self.version = version
        self.tables = tables
        self.foreign_keys = foreign_keys

    @staticmethod
    def load(path: Optional[str] = None) -> "SchemaRegistry":
        p = Path(path) if path else DEFAULT_SCHEMA_PATH
        if not p.exists():
            raise FileNotFoundError(f"Schema registry not found: {p}")
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        version = int(raw.get("version", 1))

        tables: Dict[str, TableSpec] = {}
        for tname, tval in (raw.get("tables") or {}).items():
            cols: Dict[str, ColumnSpec] = {}
            for cname, cval in (tval.get("columns") or {}).items():
                cval = cval or {}
                cols[cname] = ColumnSpec(
                    name=cname,
                    type=str(cval.get("type", "string")),
                    nullable=bool(cval.get("nullable", True)),
                    description=str(cval.get("description", "")),
                )

            patterns = tval.get("file_patterns", []) or []
            if isinstance(patterns, str):
                patterns = [patterns]

            tables[tname] = TableSpec(
                name=tname,
                file_patterns=[str(x) for x in patterns],
                description=str(tval.get("description", "")),
                primary_key=list(tval.get("primary_key", []) or []),
                columns=cols,
            )

        fks: List[ForeignKey] = []
        for fk in raw.get("foreign_keys", []) or []:
            fks.append(
                ForeignKey(
                    name=fk["name"],
                    table=fk["table"],
                    columns=list(fk["columns"]),
                    ref_table=fk["ref_table"],
                    ref_columns=list(fk["ref_columns"]),
                )
            )

        reg = SchemaRegistry(tables=tables, foreign_keys=fks, version=version)
        reg.validate()
        return reg

    def validate(self) -> None:
        if not self.tables:
            raise SchemaValidationError("Schema registry has no tables.")
        for t in self.tables.values():
            for k in t.primary_key:
                if k not in t.columns:
                    raise SchemaValidationError(f"Primary key column missing in {t.name}: {k}")
        for fk in self.foreign_keys:
            if fk.table not in self.tables or fk.ref_table not in self.tables:
                raise SchemaValidationError(f"Foreign key references unknown table: {fk.name}")
            if len(fk.columns) != len(fk.ref_columns):
                raise SchemaValidationError(f"Foreign key column count mismatch: {fk.name}")
            child = self.tables[fk.table]
            parent = self.tables[fk.ref_table]
            for c in fk.columns:
                if c not in child.columns:
                    raise SchemaValidationError(f"Foreign key column missing in {child.name}: {c}")
            for c in fk.ref_columns:
                if c not in parent.columns:
                    raise SchemaValidationError(f"Referenced column missing in {parent.name}: {c}")
            # Stores only accept references to a primary key.
            if sorted(fk.ref_columns) != sorted(parent.primary_key):
                raise SchemaValidationError(
                    f"Foreign key {fk.name} must reference the primary key of {parent.name}"
                )
        self.load_order()
        log.info("Schema registry validated", extra={"tables": len(self.tables), "foreign_keys": len(self.foreign_keys)})

    def list_tables(self) -> List[str]:
        return sorted(self.tables.keys())

    def columns_for_table(self, table: str) -> List[str]:
        """Column names in declaration order."""
        self._ensure_table(table)
        return list(self.tables[table].columns.keys())

    def get_table(self, table: str) -> TableSpec:
        self._ensure_table(table)
        return self.tables[table]

    def foreign_keys_for(self, table: str) -> List[ForeignKey]:
        self._ensure_table(table)
        return [fk for fk in self.foreign_keys if fk.table == table]

    def load_order(self) -> List[str]:
        """Tables ordered so every referenced table comes before its children.

        Ties are broken alphabetically so the order is stable across runs.
        """
        parents: Dict[str, set] = {t: set() for t in self.tables}
        for fk in self.foreign_keys:
            if fk.ref_table != fk.table:
                parents[fk.table].add(fk.ref_table)

        ordered: List[str] = []
        done: set = set()
        while len(ordered) < len(parents):
            ready = sorted(t for t, deps in parents.items() if t not in done and deps <= done)
            if not ready:
                pending = sorted(t for t in parents if t not in done)
                raise SchemaValidationError(f"Foreign key cycle between tables: {pending}")
            for t in ready:
                ordered.append(t)
                done.add(t)
        return ordered

    def render_ddl(self, dialect: SqlDialect, schema: Optional[str] = None) -> List[str]:
        """CREATE TABLE statements (parents first) followed by any ALTER TABLE constraints."""
        prefix = f"{dialect.ident(schema)}." if schema else ""
        stmts: List[str] = []
        if schema:
            stmts.append(f"CREATE SCHEMA IF NOT EXISTS {dialect.ident(schema)}")

        for tname in self.load_order():
            spec = self.tables[tname]
            parts: List[str] = []
            for c in spec.columns.values():
                null_sql = "" if c.nullable else " NOT NULL"
                parts.append(f"{dialect.ident(c.name)} {dialect.sql_type(c.type)}{null_sql}")
            if spec.primary_key:
                pk = ", ".join(dialect.ident(k) for k in spec.primary_key)
                parts.append(f"PRIMARY KEY ({pk})")
            if dialect.inline_foreign_keys:
                for fk in self.foreign_keys_for(tname):
                    parts.append(self._fk_clause(fk, dialect, prefix))
            body = ",\n  ".join(parts)
            stmts.append(f"CREATE TABLE IF NOT EXISTS {prefix}{dialect.ident(tname)} (\n  {body}\n)")

        if not dialect.inline_foreign_keys:
            for fk in self.foreign_keys:
                stmts.append(
                    f"ALTER TABLE {prefix}{dialect.ident(fk.table)}\n"
                    f"  ADD CONSTRAINT {dialect.ident(fk.name)}\n"
                    f"  {self._fk_clause(fk, dialect, prefix)}"
                )
        return stmts

    def render_drop(self, dialect: SqlDialect, schema: Optional[str] = None) -> List[str]:
        prefix = f"{dialect.ident(schema)}." if schema else ""
        return [f"DROP TABLE IF EXISTS {prefix}{dialect.ident(t)}" for t in reversed(self.load_order())]

    @staticmethod
    def _fk_clause(fk: ForeignKey, dialect: SqlDialect, prefix: str) -> str:
        cols = ", ".join(dialect.ident(c) for c in fk.columns)
        ref_cols = ", ".join(dialect.ident(c) for c in fk.ref_columns)
        return f"FOREIGN KEY ({cols}) REFERENCES {prefix}{dialect.ident(fk.ref_table)} ({ref_cols})"

    def _ensure_table(self, table: str) -> None:
        if table not in self.tables:
            raise SchemaValidationError(f"Unknown table: {table}")
