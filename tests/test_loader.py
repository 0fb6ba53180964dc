from __future__ import annotations

import pandas as pd
import pytest

from ecom_analytics.db.duckdb_store import DuckDBExecutor
from ecom_analytics.exceptions.errors import DataIngestionError, DataLoadError
from ecom_analytics.loader.bulk import create_schema, load_directory, load_frames, prepare_frame

from conftest import CUSTOMERS, DATASET_FILES, ORDERS, PAYMENTS, write_dataset


def test_load_directory_reports_rows_and_sources(registry, dataset_dir):
    with DuckDBExecutor() as store:
        report = load_directory(store, registry, str(dataset_dir))
        assert report.rows_loaded == {
            "customers": 6,
            "products": 3,
            "sellers": 2,
            "orders": 7,
            "order_items": 8,
            "order_reviews": 2,
            "payments": 8,
        }
        assert report.source_files["orders"] == "olist_orders_dataset.csv"
        n = store.execute("SELECT COUNT(*) AS n FROM orders WHERE order_purchase_timestamp IS NULL")
        assert n.iloc[0]["n"] == 1


def test_unmapped_files_are_skipped(registry, tmp_path):
    files = dict(DATASET_FILES)
    files["product_category_name_translation.csv"] = pd.DataFrame({"a": [1]})
    data_dir = write_dataset(tmp_path / "data", files)
    with DuckDBExecutor() as store:
        report = load_directory(store, registry, str(data_dir))
    assert report.skipped_files == ["product_category_name_translation.csv"]


def test_missing_data_dir(registry, tmp_path):
    with DuckDBExecutor() as store:
        with pytest.raises(DataIngestionError):
            load_directory(store, registry, str(tmp_path / "missing"))


def test_orphan_payment_is_rejected(registry):
    orphan = pd.DataFrame(
        [("ghost", 1, "boleto", 1, 10.0)],
        columns=["order_id", "payment_sequential", "payment_type", "payment_installments", "payment_value"],
    )
    with DuckDBExecutor() as store:
        create_schema(store, registry)
        load_frames(store, registry, {"customers": CUSTOMERS, "orders": ORDERS})
        with pytest.raises(DataLoadError):
            load_frames(store, registry, {"payments": orphan})
        n = store.execute("SELECT COUNT(*) AS n FROM payments")
        assert n.iloc[0]["n"] == 0


def test_order_with_unknown_customer_is_rejected(registry):
    with DuckDBExecutor() as store:
        create_schema(store, registry)
        with pytest.raises(DataLoadError):
            load_frames(store, registry, {"orders": ORDERS})


def test_frames_are_loaded_parents_first(registry):
    # dict order deliberately child-first
    with DuckDBExecutor() as store:
        create_schema(store, registry)
        report = load_frames(store, registry, {"payments": PAYMENTS, "orders": ORDERS, "customers": CUSTOMERS})
    assert list(report.rows_loaded) == ["customers", "orders", "payments"]


def test_frames_for_unknown_table(registry):
    with DuckDBExecutor() as store:
        with pytest.raises(DataIngestionError):
            load_frames(store, registry, {"geolocation": pd.DataFrame({"a": [1]})})


def test_prepare_frame_types_and_fills_optional_columns(registry):
    raw = ORDERS.astype(object).rename(columns={"order_id": " ORDER_ID "})
    df = prepare_frame(registry, "orders", raw)
    assert list(df.columns) == registry.columns_for_table("orders")
    assert pd.api.types.is_datetime64_any_dtype(df["order_purchase_timestamp"])
    assert df["order_approved_at"].isna().all()


def test_prepare_frame_turns_bad_timestamps_into_nulls(registry):
    raw = ORDERS.copy()
    raw.loc[1, "order_delivered_customer_date"] = "not a date"
    df = prepare_frame(registry, "orders", raw)
    assert pd.isna(df.loc[1, "order_delivered_customer_date"])
    assert df.loc[0, "order_delivered_customer_date"] == pd.Timestamp("2017-01-25 08:00:00")


def test_prepare_frame_requires_key_columns(registry):
    with pytest.raises(DataIngestionError):
        prepare_frame(registry, "orders", ORDERS.drop(columns=["customer_id"]))


def test_recreate_schema_drops_existing_rows(registry, dataset_dir):
    with DuckDBExecutor() as store:
        load_directory(store, registry, str(dataset_dir))
        create_schema(store, registry, drop_existing=True)
        n = store.execute("SELECT COUNT(*) AS n FROM customers")
        assert n.iloc[0]["n"] == 0


def test_prepare_frame_turns_fractional_integers_into_nulls(registry):
    raw = PAYMENTS.astype(str)
    raw.loc[1, "payment_installments"] = "1.5"
    raw.loc[2, "payment_installments"] = "two"
    df = prepare_frame(registry, "payments", raw)
    assert str(df["payment_installments"].dtype) == "Int64"
    assert pd.isna(df.loc[1, "payment_installments"])
    assert pd.isna(df.loc[2, "payment_installments"])
    assert df.loc[0, "payment_installments"] == 3
    assert df.loc[3, "payment_installments"] == 2


def test_load_directory_replace_reloads_cleanly(registry, dataset_dir):
    with DuckDBExecutor() as store:
        load_directory(store, registry, str(dataset_dir))
        with pytest.raises(DataLoadError):
            load_directory(store, registry, str(dataset_dir))
        report = load_directory(store, registry, str(dataset_dir), replace=True)
        assert report.rows_loaded["orders"] == 7
        n = store.execute("SELECT COUNT(*) AS n FROM orders")
        assert n.iloc[0]["n"] == 7
