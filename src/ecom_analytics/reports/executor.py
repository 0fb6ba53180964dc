from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List
import time

import pandas as pd

from ecom_analytics.exceptions.errors import QueryExecutionError
from ecom_analytics.logging.logger import get_logger
from ecom_analytics.reports.queries import MetricSpec, get_metric, list_metrics

log = get_logger("reports.executor")


@dataclass
class ReportExecutor:
    """Runs catalog metrics against one store (DuckDB, Postgres or Redshift executor).

    Read-only: nothing here writes to the store, so metrics can be run in any order.
    """

    store: Any

    def list_metrics(self) -> List[MetricSpec]:
        return list_metrics()

    def get_metric(self, name: str) -> MetricSpec:
        return get_metric(name)

    def render_sql(self, name: str, **params: Any) -> str:
        return get_metric(name).render(self.store.dialect, **params)

    def run(self, name: str, **params: Any) -> pd.DataFrame:
        metric = get_metric(name)
        sql = metric.render(self.store.dialect, **params)

        log.info("Running metric", extra={"metric": metric.name, "params": params, "sql_head": sql[:300]})
        started = time.perf_counter()
        df = self.store.execute(sql)
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        missing = [c for c in metric.columns if c not in df.columns]
        if missing:
            raise QueryExecutionError(f"Metric '{metric.name}' returned without columns: {missing}")
        df = df[list(metric.columns)]

        log.info("Metric finished", extra={"metric": metric.name, "rows": len(df), "elapsed_ms": elapsed_ms})
        return df

    def run_all(self) -> Dict[str, pd.DataFrame]:
        return {m.name: self.run(m.name) for m in self.list_metrics()}
