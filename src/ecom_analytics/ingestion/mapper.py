from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional
import fnmatch

from ecom_analytics.exceptions.errors import DataIngestionError
from ecom_analytics.schema.registry import SchemaRegistry
from ecom_analytics.logging.logger import get_logger

log = get_logger("ingestion.mapper")


@dataclass
class DatasetScan:
    """CSV files found in a dataset directory, keyed by the table they feed."""

    files: Dict[str, Path] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)


def map_file_to_table(registry: SchemaRegistry, filename: str) -> Optional[str]:
    """Table whose file patterns match ``filename`` (case-insensitive), or None.

    A name matched by patterns of two different tables is ambiguous and rejected.
    """
    name = Path(filename).name.lower()
    hits = sorted(
        {t for t in registry.list_tables() for pat in registry.get_table(t).file_patterns if fnmatch.fnmatch(name, pat.lower())}
    )
    if len(hits) > 1:
        raise DataIngestionError(f"{Path(filename).name} matches more than one table: {hits}")
    return hits[0] if hits else None


def scan_dataset(registry: SchemaRegistry, data_dir: str) -> DatasetScan:
    root = Path(data_dir)
    if not root.is_dir():
        raise DataIngestionError(f"Data directory not found: {data_dir}")

    scan = DatasetScan()
    for fp in sorted(root.glob("*.csv")):
        table = map_file_to_table(registry, fp.name)
        if table is None:
            log.warning("File did not match any table pattern", extra={"source_file": fp.name})
            scan.skipped.append(fp.name)
            continue
        if table in scan.files:
            raise DataIngestionError(f"Both {scan.files[table].name} and {fp.name} map to table '{table}'")
        log.info("Mapped file to table", extra={"source_file": fp.name, "table": table})
        scan.files[table] = fp
    return scan
