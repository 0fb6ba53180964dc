from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
import yaml
from dotenv import load_dotenv

load_dotenv()

def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)

def _env_bool(key: str, default: bool = False) -> bool:
    val = os.environ.get(key)
    if val is None:
        return default
    return val.strip().lower() in ("1", "true", "yes", "y", "on")

def _env_list(key: str, default: List[str]) -> List[str]:
    val = os.environ.get(key)
    if not val:
        return default
    return [x.strip() for x in val.split(",") if x.strip()]

@dataclass(frozen=True)
class Settings:
    env: str
    log_level: str
    log_file: str

    # Dataset files (one CSV per table)
    data_dir: str
    delimiter: str
    fallback_encodings: List[str]
    skip_bad_lines: bool

    export_dir: str

    # ------------------------------------------------------------------
    # Store backend (duckdb / postgres / redshift)
    # ------------------------------------------------------------------
    db_type: str
    duckdb_path: str

    pg_host: str
    pg_port: int
    pg_database: str
    pg_user: str
    pg_password: str
    pg_schema: str

    # Redshift Data API (provisioned or serverless), read-only
    aws_region: str
    redshift_database: str
    redshift_cluster_id: str
    redshift_workgroup_name: str
    redshift_db_user: str
    redshift_secret_arn: str

def load_settings(config_dir: Optional[str] = None) -> Settings:
    app_env = _env("APP_ENV", "dev")
    cfg_path = Path(config_dir or _env("CONFIG_DIR", "config")) / f"{app_env}.yaml"
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config not found: {cfg_path}")

    cfg = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}

    app_cfg = cfg.get("app") or {}
    ing_cfg = cfg.get("ingestion") or {}
    exp_cfg = cfg.get("export") or {}

    data_dir = _env("DATA_DIR", str(ing_cfg.get("data_dir", "data")))
    delimiter = _env("DEFAULT_DELIMITER", str(ing_cfg.get("delimiter", ",")))
    fallback_encodings = _env_list(
        "FALLBACK_ENCODINGS", list(ing_cfg.get("fallback_encodings", ["utf-8", "latin-1"]))
    )
    skip_bad_lines = _env_bool("SKIP_BAD_LINES", bool(ing_cfg.get("skip_bad_lines", False)))

    # ------------------------------ Database ------------------------------
    db_cfg = (cfg.get("database") or {})
    db_type = (_env("DB_TYPE", str(db_cfg.get("db_type", "duckdb"))) or "duckdb").strip().lower()
    duckdb_path = _env("DUCKDB_PATH", str(db_cfg.get("duckdb_path", ":memory:"))) or ":memory:"

    pg_cfg = (db_cfg.get("postgres") or {})
    pg_host = _env("PGHOST", str(pg_cfg.get("host", "localhost"))) or "localhost"
    pg_port = int(_env("PGPORT", str(pg_cfg.get("port", 5432))))
    pg_database = _env("PGDATABASE", str(pg_cfg.get("database", "postgres"))) or "postgres"
    pg_user = _env("PGUSER", str(pg_cfg.get("user", "postgres"))) or "postgres"
    # Never read from YAML; credentials only come from the environment.
    pg_password = _env("PGPASSWORD", "") or ""
    pg_schema = _env("PGSCHEMA", str(pg_cfg.get("schema", "public"))) or "public"

    rs_cfg = (db_cfg.get("redshift") or {})
    aws_region = _env("AWS_REGION", str(rs_cfg.get("region", ""))) or ""
    redshift_database = _env("REDSHIFT_DATABASE", str(rs_cfg.get("database", ""))) or ""
    redshift_cluster_id = _env("REDSHIFT_CLUSTER_ID", str(rs_cfg.get("cluster_id", ""))) or ""
    redshift_workgroup_name = _env("REDSHIFT_WORKGROUP_NAME", str(rs_cfg.get("workgroup_name", ""))) or ""
    redshift_db_user = _env("REDSHIFT_DB_USER", str(rs_cfg.get("db_user", ""))) or ""
    redshift_secret_arn = _env("REDSHIFT_SECRET_ARN", str(rs_cfg.get("secret_arn", ""))) or ""

    return Settings(
        env=app_env,
        log_level=_env("LOG_LEVEL", str(app_cfg.get("log_level", "INFO"))),
        log_file=_env("LOG_FILE", str(app_cfg.get("log_file", "logs/reporting.log"))),
        data_dir=data_dir,
        delimiter=delimiter,
        fallback_encodings=fallback_encodings,
        skip_bad_lines=skip_bad_lines,
        export_dir=_env("EXPORT_DIR", str(exp_cfg.get("export_dir", "exports"))),
        db_type=db_type,
        duckdb_path=duckdb_path,
        pg_host=pg_host,
        pg_port=pg_port,
        pg_database=pg_database,
        pg_user=pg_user,
        pg_password=pg_password,
        pg_schema=pg_schema,
        aws_region=aws_region,
        redshift_database=redshift_database,
        redshift_cluster_id=redshift_cluster_id,
        redshift_workgroup_name=redshift_workgroup_name,
        redshift_db_user=redshift_db_user,
        redshift_secret_arn=redshift_secret_arn,
    )
