"""Command line entry point.

Examples:
  ecom-analytics ddl --dialect postgres
  ecom-analytics load data/olist --replace
  ecom-analytics list
  ecom-analytics run yoy-partial-period-growth --param base_year=2017 --param compare_year=2018
  ecom-analytics run-all --export
"""
from __future__ import annotations

import argparse
import sys
from typing import Dict, List, Optional

import pandas as pd

from ecom_analytics.config.settings import Settings, load_settings
from ecom_analytics.db import get_executor
from ecom_analytics.db.utils import dialect_for
from ecom_analytics.exceptions.errors import ReportingError, ReportParameterError
from ecom_analytics.export.exporter import export_all, export_report
from ecom_analytics.loader.bulk import load_directory
from ecom_analytics.logging.logger import get_logger, init_logging
from ecom_analytics.reports.executor import ReportExecutor
from ecom_analytics.reports.queries import get_metric, list_metrics
from ecom_analytics.schema.registry import SchemaRegistry

log = get_logger("cli")


def _parse_params(pairs: Optional[List[str]]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for raw in pairs or []:
        key, sep, value = raw.partition("=")
        if not sep or not key.strip():
            raise ReportParameterError(f"Expected key=value, got {raw!r}")
        out[key.strip()] = value.strip()
    return out


def _print_frame(df: pd.DataFrame) -> None:
    with pd.option_context("display.max_rows", 200, "display.width", 160):
        print(df.to_string(index=False) if not df.empty else "(no rows)")


def _cmd_ddl(args: argparse.Namespace, settings: Settings) -> int:
    registry = SchemaRegistry.load(args.schema)
    dialect = dialect_for(args.dialect or settings.db_type)
    for stmt in registry.render_ddl(dialect):
        print(stmt + ";\n")
    return 0


def _cmd_load(args: argparse.Namespace, settings: Settings) -> int:
    registry = SchemaRegistry.load(args.schema)
    with get_executor(settings) as store:
        report = load_directory(
            store,
            registry,
            args.data_dir or settings.data_dir,
            settings=settings,
            create=not args.no_create,
            replace=args.replace,
        )
    for table, rows in report.rows_loaded.items():
        print(f"{table:<15} {rows:>10,}  <- {report.source_files.get(table, '')}")
    for name in report.skipped_files:
        print(f"skipped        {name}")
    return 0


def _cmd_list(args: argparse.Namespace, settings: Settings) -> int:
    for m in list_metrics():
        params = ", ".join(f"{p.name}={p.default}" for p in m.params)
        suffix = f"  [{params}]" if params else ""
        print(f"{m.name:<36} {m.description}{suffix}")
    return 0


def _cmd_sql(args: argparse.Namespace, settings: Settings) -> int:
    metric_sql = get_metric(args.metric).render(
        dialect_for(args.dialect or settings.db_type), **_parse_params(args.param)
    )
    print(metric_sql + ";")
    return 0


def _cmd_run(args: argparse.Namespace, settings: Settings) -> int:
    params = _parse_params(args.param)
    with get_executor(settings) as store:
        df = ReportExecutor(store=store).run(args.metric, **params)
    _print_frame(df)
    if args.export:
        metric = get_metric(args.metric)
        paths = export_report(
            df, settings.export_dir, metric.name.replace("-", "_"), title=metric.description, params=params
        )
        print(f"exported: {paths.csv_path}")
    return 0


def _cmd_run_all(args: argparse.Namespace, settings: Settings) -> int:
    with get_executor(settings) as store:
        results = ReportExecutor(store=store).run_all()
    for name, df in results.items():
        print(f"\n== {name} ({len(df)} rows)")
        _print_frame(df)
    if args.export:
        export_all(results, settings.export_dir)
        print(f"exported: {settings.export_dir}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ecom-analytics", description="E-commerce reporting query catalog.")
    parser.add_argument("--config-dir", default=None, help="Directory holding <APP_ENV>.yaml (default: ./config).")
    parser.add_argument("--schema", default=None, help="Schema registry YAML (default: packaged schema).")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("ddl", help="Print CREATE TABLE / foreign key statements.")
    p.add_argument("--dialect", default=None, help="duckdb or postgres (default: configured db_type).")
    p.set_defaults(func=_cmd_ddl)

    p = sub.add_parser("load", help="Create the schema and load one CSV per table from a directory.")
    p.add_argument("data_dir", nargs="?", default=None, help="Dataset directory (default: configured data_dir).")
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--no-create", action="store_true", help="Assume the tables already exist.")
    mode.add_argument("--replace", action="store_true", help="Drop and recreate the tables before loading.")
    p.set_defaults(func=_cmd_load)

    p = sub.add_parser("list", help="List catalog metrics.")
    p.set_defaults(func=_cmd_list)

    p = sub.add_parser("sql", help="Print a metric's SQL without running it.")
    p.add_argument("metric")
    p.add_argument("--param", action="append", help="Metric parameter as key=value (repeatable).")
    p.add_argument("--dialect", default=None)
    p.set_defaults(func=_cmd_sql)

    p = sub.add_parser("run", help="Run one metric.")
    p.add_argument("metric")
    p.add_argument("--param", action="append", help="Metric parameter as key=value (repeatable).")
    p.add_argument("--export", action="store_true", help="Also write CSV/XML/PDF to the export dir.")
    p.set_defaults(func=_cmd_run)

    p = sub.add_parser("run-all", help="Run every metric with default parameters.")
    p.add_argument("--export", action="store_true")
    p.set_defaults(func=_cmd_run_all)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(args.config_dir)
    init_logging(settings.log_level, settings.log_file)
    try:
        return args.func(args, settings)
    except ReportingError as e:
        log.error("Command failed", extra={"command": args.command, "error": str(e)})
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
