from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from ecom_analytics.db.duckdb_store import DuckDBExecutor
from ecom_analytics.loader.bulk import create_schema, load_directory
from ecom_analytics.reports.executor import ReportExecutor
from ecom_analytics.schema.registry import SchemaRegistry

ROOT = Path(__file__).resolve().parents[1]


CUSTOMERS = pd.DataFrame(
    [
        # customer_id, customer_unique_id, zip, city, state
        ("c1", "u1", "01001", "sao paulo", "SP"),
        ("c2", "u1", "01002", "sao paulo", "SP"),
        ("c3", "u3", "20010", "rio de janeiro", "RJ"),
        ("c4", "u4", "30110", "belo horizonte", "MG"),
        ("c5", "u5", "80010", "curitiba", "PR"),
        ("c6", "u6", "90010", "porto alegre", "RS"),  # never ordered
    ],
    columns=["customer_id", "customer_unique_id", "customer_zip_code_prefix", "customer_city", "customer_state"],
)

SELLERS = pd.DataFrame(
    [("s1", "13023", "campinas", "SP"), ("s2", "04195", "sao paulo", "SP")],
    columns=["seller_id", "seller_zip_code_prefix", "seller_city", "seller_state"],
)

PRODUCTS = pd.DataFrame(
    [("p1", "beleza_saude", "500"), ("p2", "esporte_lazer", "1200"), ("p3", None, "300")],
    columns=["product_id", "product_category_name", "product_weight_g"],
)

ORDERS = pd.DataFrame(
    [
        # order_id, customer_id, status, purchase, delivered, estimated
        ("o1", "c1", "delivered", "2017-01-15 08:00:00", "2017-01-25 08:00:00", "2017-01-30 08:00:00"),
        ("o2", "c2", "delivered", "2017-03-10 14:00:00", "2017-03-22 14:00:00", "2017-03-20 14:00:00"),
        ("o3", "c3", "delivered", "2018-02-05 03:00:00", "2018-02-25 03:00:00", "2018-03-01 03:00:00"),
        ("o4", "c4", "shipped", "2018-02-20 20:00:00", None, "2018-03-10 20:00:00"),
        ("o5", "c5", "delivered", "2018-07-01 13:00:00", "2018-07-08 13:00:00", "2018-07-18 13:00:00"),
        ("o6", "c1", "delivered", "2017-10-02 23:00:00", "2017-10-06 23:00:00", "2017-10-16 23:00:00"),
        ("o7", "c3", "created", None, None, None),
    ],
    columns=[
        "order_id",
        "customer_id",
        "order_status",
        "order_purchase_timestamp",
        "order_delivered_customer_date",
        "order_estimated_delivery_date",
    ],
)

ORDER_ITEMS = pd.DataFrame(
    [
        # order_id, item, product, seller, price, freight
        ("o1", 1, "p1", "s1", 80.0, 10.0),
        ("o1", 2, "p2", "s2", 20.0, 10.0),
        ("o2", 1, "p1", "s1", 40.0, 10.0),
        ("o3", 1, "p3", "s1", 150.0, 50.0),
        ("o4", 1, "p2", "s2", 60.0, 20.0),
        ("o5", 1, "p1", "s1", 70.0, 15.0),
        ("o5", 2, "p1", "s1", 10.0, 5.0),
        ("o6", 1, "p2", "s2", 25.0, 5.0),
    ],
    columns=["order_id", "order_item_id", "product_id", "seller_id", "price", "freight_value"],
)

PAYMENTS = pd.DataFrame(
    [
        # order_id, sequential, type, installments, value
        ("o1", 1, "credit_card", 3, 100.0),
        ("o1", 2, "voucher", 1, 20.0),
        ("o2", 1, "boleto", 1, 50.0),
        ("o3", 1, "credit_card", 2, 200.0),
        ("o4", 1, "credit_card", 1, 80.0),
        ("o5", 1, "credit_card", 3, 60.0),
        ("o5", 2, "voucher", 1, 40.0),
        ("o6", 1, "debit_card", 1, 30.0),
    ],
    columns=["order_id", "payment_sequential", "payment_type", "payment_installments", "payment_value"],
)

REVIEWS = pd.DataFrame(
    [("r1", "o1", 5, "2017-01-26 00:00:00"), ("r2", "o3", 4, "2018-02-26 00:00:00")],
    columns=["review_id", "order_id", "review_score", "review_creation_date"],
)

DATASET_FILES = {
    "olist_customers_dataset.csv": CUSTOMERS,
    "olist_sellers_dataset.csv": SELLERS,
    "olist_products_dataset.csv": PRODUCTS,
    "olist_orders_dataset.csv": ORDERS,
    "olist_order_items_dataset.csv": ORDER_ITEMS,
    "olist_order_payments_dataset.csv": PAYMENTS,
    "olist_order_reviews_dataset.csv": REVIEWS,
}


def write_dataset(target: Path, files=None) -> Path:
    target.mkdir(parents=True, exist_ok=True)
    for name, df in (files or DATASET_FILES).items():
        df.to_csv(target / name, index=False)
    return target


@pytest.fixture(scope="session")
def registry() -> SchemaRegistry:
    return SchemaRegistry.load()


@pytest.fixture(scope="session")
def dataset_dir(tmp_path_factory) -> Path:
    return write_dataset(tmp_path_factory.mktemp("olist"))


@pytest.fixture(scope="session")
def store(registry, dataset_dir):
    executor = DuckDBExecutor()
    load_directory(executor, registry, str(dataset_dir))
    yield executor
    executor.close()


@pytest.fixture(scope="session")
def reports(store) -> ReportExecutor:
    return ReportExecutor(store=store)


@pytest.fixture
def empty_store(registry):
    executor = DuckDBExecutor()
    create_schema(executor, registry)
    yield executor
    executor.close()
