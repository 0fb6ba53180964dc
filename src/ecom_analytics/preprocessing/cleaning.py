from __future__ import annotations
from typing import Dict, List
import pandas as pd

from ecom_analytics.exceptions.errors import DataIngestionError
from ecom_analytics.logging.logger import get_logger

log = get_logger("preprocessing.cleaning")

def standardize_columns(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    out.columns = [str(c).strip().lower() for c in out.columns]
    return out

def coerce_types(df: pd.DataFrame, column_types: Dict[str, str], date_format: str | None = None) -> pd.DataFrame:
    """Cast columns to their registry types.

    Unparseable values become nulls (``errors="coerce"``); a malformed timestamp is then
    excluded by the metrics that need it instead of failing the load.
    """
    out = df.copy()
    for col, typ in column_types.items():
        if col not in out.columns:
            continue
        if typ in ("date", "datetime"):
            out[col] = pd.to_datetime(out[col], errors="coerce", format=date_format)
        elif typ == "int":
            nums = pd.to_numeric(out[col], errors="coerce")
            # fractional values cannot be held by Int64; they count as unparseable
            out[col] = nums.where(nums.isna() | (nums % 1 == 0)).astype("Int64")
        elif typ == "float":
            out[col] = pd.to_numeric(out[col], errors="coerce").astype("float64")
        elif typ == "bool":
            out[col] = out[col].astype("boolean")
        else:
            out[col] = out[col].astype(object).where(out[col].notna(), None)
        bad = int(out[col].isna().sum() - df[col].isna().sum())
        if bad:
            log.warning("Values coerced to null", extra={"column": col, "type": typ, "count": bad})
    return out

def select_registry_columns(df: pd.DataFrame, table: str, columns: List[str], required: List[str]) -> pd.DataFrame:
    """Keep only registry columns, in registry order; fail if a required one is absent."""
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise DataIngestionError(f"Table '{table}' is missing required columns: {missing}")
    absent = [c for c in columns if c not in df.columns]
    if absent:
        log.warning("Optional columns absent; loading as null", extra={"table": table, "missing_columns": absent})
    out = df.reindex(columns=columns)
    return out
