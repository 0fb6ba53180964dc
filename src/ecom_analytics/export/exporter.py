from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
import pandas as pd

from reportlab.lib.pagesizes import landscape, letter
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet

from ecom_analytics.exceptions.errors import ExportError
from ecom_analytics.logging.logger import get_logger

log = get_logger("export.exporter")

PDF_MAX_ROWS = 200
MANIFEST_NAME = "manifest.csv"

_GRID = TableStyle([
    ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
    ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
    ("FONTSIZE", (0, 0), (-1, -1), 8),
    ("ALIGN", (0, 0), (-1, -1), "LEFT"),
])


@dataclass(frozen=True)
class ExportPaths:
    csv_path: str
    xml_path: Optional[str] = None
    pdf_path: Optional[str] = None


def _printable(df: pd.DataFrame) -> pd.DataFrame:
    # XML and PDF cells are text; intervals render as "10 days 00:00:00".
    out = df.copy()
    for col in out.columns:
        if pd.api.types.is_timedelta64_dtype(out[col]) or pd.api.types.is_datetime64_any_dtype(out[col]):
            out[col] = out[col].astype(str)
    return out


def _write_xml(printable: pd.DataFrame, path: Path) -> None:
    printable.to_xml(str(path), index=False, root_name="Report", row_name="Row", parser="etree")


def _write_pdf(printable: pd.DataFrame, path: Path, title: str, subtitle: Optional[str]) -> None:
    styles = getSampleStyleSheet()
    elements: List[Any] = [Paragraph(title, styles["Title"])]
    if subtitle:
        elements.append(Paragraph(subtitle, styles["Normal"]))
    elements.append(Spacer(1, 12))

    shown = printable.head(PDF_MAX_ROWS).astype(str)
    table = Table([list(shown.columns)] + shown.values.tolist(), repeatRows=1)
    table.setStyle(_GRID)
    elements.append(table)
    if len(printable) > PDF_MAX_ROWS:
        elements.append(Paragraph(f"Showing first {PDF_MAX_ROWS} of {len(printable)} rows.", styles["Normal"]))

    SimpleDocTemplate(str(path), pagesize=landscape(letter)).build(elements)


def export_report(
    df: pd.DataFrame,
    out_dir: str,
    base_name: str,
    title: Optional[str] = None,
    params: Optional[Mapping[str, Any]] = None,
) -> ExportPaths:
    """Write a metric result as CSV, then best-effort XML and PDF.

    CSV failure raises ExportError; XML/PDF failures are logged and their path is None.
    ``params`` are printed under the PDF title so a saved report says how it was produced.
    """
    target = Path(out_dir)
    csv_path = target / f"{base_name}.csv"
    try:
        target.mkdir(parents=True, exist_ok=True)
        df.to_csv(csv_path, index=False, encoding="utf-8")
    except OSError as e:
        raise ExportError(f"CSV export failed for {base_name}: {e}") from e
    log.info("Exported CSV", extra={"path": str(csv_path), "rows": len(df)})

    printable = _printable(df)

    xml_path: Optional[Path] = target / f"{base_name}.xml"
    try:
        _write_xml(printable, xml_path)
        log.info("Exported XML", extra={"path": str(xml_path)})
    except Exception:
        log.exception("XML export failed", extra={"report": base_name})
        xml_path = None

    pdf_path: Optional[Path] = target / f"{base_name}.pdf"
    subtitle = ", ".join(f"{k}={v}" for k, v in params.items()) if params else None
    try:
        _write_pdf(printable, pdf_path, title or f"Report: {base_name}", subtitle)
        log.info("Exported PDF", extra={"path": str(pdf_path)})
    except Exception:
        log.exception("PDF export failed", extra={"report": base_name})
        pdf_path = None

    return ExportPaths(
        csv_path=str(csv_path),
        xml_path=str(xml_path) if xml_path else None,
        pdf_path=str(pdf_path) if pdf_path else None,
    )


def export_all(results: Dict[str, pd.DataFrame], out_dir: str) -> Dict[str, ExportPaths]:
    """Export every result and write a manifest.csv listing row counts and files."""
    Path(out_dir).mkdir(parents=True, exist_ok=True)
    exported: Dict[str, ExportPaths] = {}
    manifest: List[Dict[str, Any]] = []
    for name, df in results.items():
        paths = export_report(df, out_dir, name.replace("-", "_"), title=name)
        exported[name] = paths
        manifest.append({"metric": name, "rows": len(df), "csv": Path(paths.csv_path).name,
                         "xml": Path(paths.xml_path).name if paths.xml_path else "",
                         "pdf": Path(paths.pdf_path).name if paths.pdf_path else ""})
    pd.DataFrame(manifest, columns=["metric", "rows", "csv", "xml", "pdf"]).to_csv(
        Path(out_dir) / MANIFEST_NAME, index=False
    )
    return exported
