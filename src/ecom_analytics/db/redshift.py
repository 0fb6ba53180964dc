from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple
import time

import boto3
import pandas as pd

from ecom_analytics.config.settings import Settings
from ecom_analytics.db.utils import SqlDialect, dialect_for
from ecom_analytics.exceptions.errors import QueryExecutionError
from ecom_analytics.logging.logger import get_logger


log = get_logger("db.redshift")

POLL_ATTEMPTS = 240
POLL_INTERVAL_S = 0.5

_DONE = {"FINISHED", "FAILED", "ABORTED"}
_READ_ONLY = "Redshift backend is read-only; create and load the schema upstream"


def _cell(field: Dict[str, Any]) -> Any:
    """One Data API field as a Python value; SQL NULL is None."""
    if not field or field.get("isNull"):
        return None
    values = [v for k, v in field.items() if k != "isNull"]
    return values[0] if values else None


@dataclass
class RedshiftExecutor:
    """Runs catalog SQL on a warehouse copy of the schema through the Redshift Data API.

    Provisioned clusters are addressed by cluster id, serverless by workgroup name.
    Credentials come from a Secrets Manager ARN or, failing that, a database user.
    """

    settings: Settings

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedshiftExecutor":
        return cls(settings=settings)

    @property
    def dialect(self) -> SqlDialect:
        return dialect_for("redshift")

    @property
    def schema(self) -> Optional[str]:
        return None

    def _target(self) -> Dict[str, str]:
        s = self.settings
        missing = []
        if not s.redshift_database:
            missing.append("REDSHIFT_DATABASE")
        if not (s.redshift_cluster_id or s.redshift_workgroup_name):
            missing.append("REDSHIFT_CLUSTER_ID or REDSHIFT_WORKGROUP_NAME")
        if not (s.redshift_secret_arn or s.redshift_db_user):
            missing.append("REDSHIFT_SECRET_ARN or REDSHIFT_DB_USER")
        if missing:
            raise QueryExecutionError(f"Redshift is not configured: {', '.join(missing)}")

        target = {"Database": s.redshift_database}
        if s.redshift_cluster_id:
            target["ClusterIdentifier"] = s.redshift_cluster_id
        else:
            target["WorkgroupName"] = s.redshift_workgroup_name
        if s.redshift_secret_arn:
            target["SecretArn"] = s.redshift_secret_arn
        else:
            target["DbUser"] = s.redshift_db_user
        return target

    def _wait(self, client, statement_id: str) -> None:
        for _ in range(POLL_ATTEMPTS):
            desc = client.describe_statement(Id=statement_id)
            status = desc.get("Status", "")
            if status == "FINISHED":
                return
            if status in _DONE:
                raise QueryExecutionError(f"Redshift query {status}: {desc.get('Error') or ''}")
            time.sleep(POLL_INTERVAL_S)
        client.cancel_statement(Id=statement_id)
        raise QueryExecutionError(f"Redshift query did not finish after {POLL_ATTEMPTS} polls; cancelled")

    def _pages(self, client, statement_id: str) -> Iterator[Dict[str, Any]]:
        kwargs: Dict[str, Any] = {"Id": statement_id}
        while True:
            page = client.get_statement_result(**kwargs)
            yield page
            token = page.get("NextToken")
            if not token:
                return
            kwargs["NextToken"] = token

    def _collect(self, client, statement_id: str) -> Tuple[List[str], List[List[Any]]]:
        columns: List[str] = []
        rows: List[List[Any]] = []
        for page in self._pages(client, statement_id):
            if not columns:
                columns = [c.get("name", "") for c in page.get("ColumnMetadata", [])]
            rows.extend([_cell(f) for f in record] for record in page.get("Records", []))
        return columns, rows

    def execute(self, sql: str) -> pd.DataFrame:
        target = self._target()
        client = boto3.client("redshift-data", region_name=self.settings.aws_region or None)
        log.info(
            "Submitting statement",
            extra={
                "database": target["Database"],
                "cluster_id": target.get("ClusterIdentifier"),
                "workgroup": target.get("WorkgroupName"),
                "sql_head": sql[:300],
            },
        )

        statement_id = client.execute_statement(Sql=sql, **target)["Id"]
        self._wait(client, statement_id)
        columns, rows = self._collect(client, statement_id)
        log.info("Statement finished", extra={"statement_id": statement_id, "rows": len(rows)})
        return pd.DataFrame(rows, columns=columns)

    def execute_script(self, statements: Iterable[str]) -> None:
        raise QueryExecutionError(_READ_ONLY)

    def insert_frame(self, table: str, df: pd.DataFrame) -> int:
        raise QueryExecutionError(_READ_ONLY)

    def close(self) -> None:
        pass

    def __enter__(self) -> "RedshiftExecutor":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
