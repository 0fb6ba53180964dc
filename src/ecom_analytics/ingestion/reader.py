from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional
from pathlib import Path
import pandas as pd

from ecom_analytics.logging.logger import get_logger
from ecom_analytics.exceptions.errors import DataIngestionError

log = get_logger("ingestion.reader")


@dataclass(frozen=True)
class IngestionResult:
    df: pd.DataFrame
    source_file: str
    encoding_used: str
    rows_read: int


def _decoder(encoding: str) -> str:
    # Spreadsheet exports prepend a BOM that would otherwise end up in the first header.
    return "utf-8-sig" if encoding.lower().replace("_", "-") in ("utf-8", "utf8") else encoding


def read_table_file(
    file_path: str,
    delimiter: str = ",",
    fallback_encodings: Optional[List[str]] = None,
    skip_bad_lines: bool = False,
) -> IngestionResult:
    """Read one dataset file as text columns; typing happens in preprocessing.

    Everything is read as str so zip-code prefixes and ids keep their leading zeros.
    Encodings are tried in order; a malformed row fails the read unless
    ``skip_bad_lines`` is set.
    """
    p = Path(file_path)
    if not p.is_file():
        raise DataIngestionError(f"File not found: {file_path}")

    encodings = fallback_encodings or ["utf-8"]
    for enc in encodings:
        try:
            df = pd.read_csv(
                p,
                sep=delimiter,
                encoding=_decoder(enc),
                dtype=str,
                on_bad_lines="skip" if skip_bad_lines else "error",
            )
        except UnicodeDecodeError as e:
            log.warning("Encoding failed, trying next", extra={"source_file": p.name, "encoding": enc, "error": str(e)})
            continue
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise DataIngestionError(f"Failed to parse {p.name}: {e}") from e

        log.info("Read file", extra={"source_file": p.name, "encoding": enc, "rows": len(df)})
        return IngestionResult(df=df, source_file=p.name, encoding_used=enc, rows_read=len(df))

    raise DataIngestionError(f"Failed to decode {p.name} with encodings: {encodings}")
