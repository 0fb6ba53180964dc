from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd

from ecom_analytics.config.settings import Settings
from ecom_analytics.exceptions.errors import DataIngestionError
from ecom_analytics.ingestion.mapper import scan_dataset
from ecom_analytics.ingestion.reader import read_table_file
from ecom_analytics.logging.logger import get_logger
from ecom_analytics.preprocessing.cleaning import coerce_types, select_registry_columns, standardize_columns
from ecom_analytics.schema.registry import SchemaRegistry

log = get_logger("loader.bulk")


@dataclass
class LoadReport:
    rows_loaded: Dict[str, int] = field(default_factory=dict)
    source_files: Dict[str, str] = field(default_factory=dict)
    skipped_files: List[str] = field(default_factory=list)


def create_schema(executor, registry: SchemaRegistry, drop_existing: bool = False) -> None:
    """Create every registry table and its foreign keys on the executor's store."""
    stmts: List[str] = []
    if drop_existing:
        stmts.extend(registry.render_drop(executor.dialect, schema=executor.schema))
    stmts.extend(registry.render_ddl(executor.dialect, schema=executor.schema))
    executor.execute_script(stmts)
    log.info("Schema created", extra={"tables": len(registry.tables), "dialect": executor.dialect.name})


def prepare_frame(registry: SchemaRegistry, table: str, df: pd.DataFrame) -> pd.DataFrame:
    spec = registry.get_table(table)
    required = [c.name for c in spec.columns.values() if not c.nullable]
    out = standardize_columns(df)
    out = select_registry_columns(out, table, registry.columns_for_table(table), required)
    return coerce_types(out, {c: spec.columns[c].type for c in spec.columns})


def load_frames(executor, registry: SchemaRegistry, frames: Dict[str, pd.DataFrame]) -> LoadReport:
    """Insert frames parents-first so foreign keys can be checked row by row.

    An orphan row surfaces as DataLoadError from the executor and stops the load.
    """
    unknown = sorted(set(frames) - set(registry.tables))
    if unknown:
        raise DataIngestionError(f"Frames for unknown tables: {unknown}")

    report = LoadReport()
    for table in registry.load_order():
        if table not in frames:
            continue
        df = prepare_frame(registry, table, frames[table])
        report.rows_loaded[table] = executor.insert_frame(table, df)
        log.info("Loaded table", extra={"table": table, "rows": report.rows_loaded[table]})
    return report


def load_directory(
    executor,
    registry: SchemaRegistry,
    data_dir: str,
    settings: Optional[Settings] = None,
    create: bool = True,
    replace: bool = False,
) -> LoadReport:
    """Populate a store from one CSV per table found in ``data_dir``.

    ``replace`` drops and recreates every registry table first, so a reload does not
    collide with the primary keys of an earlier load.
    """
    scan = scan_dataset(registry, data_dir)
    delimiter = settings.delimiter if settings else ","
    encodings = settings.fallback_encodings if settings else ["utf-8", "latin-1"]
    skip_bad = settings.skip_bad_lines if settings else False

    frames: Dict[str, pd.DataFrame] = {}
    for table, fp in scan.files.items():
        res = read_table_file(str(fp), delimiter=delimiter, fallback_encodings=encodings, skip_bad_lines=skip_bad)
        frames[table] = res.df

    if create or replace:
        create_schema(executor, registry, drop_existing=replace)
    report = load_frames(executor, registry, frames)
    report.source_files = {t: fp.name for t, fp in scan.files.items()}
    report.skipped_files = scan.skipped
    return report
