from __future__ import annotations

import pytest

from ecom_analytics.db.utils import dialect_for
from ecom_analytics.reports.queries import CATALOG, get_metric


def test_unknown_dialect():
    with pytest.raises(ValueError):
        dialect_for("oracle")


def test_redshift_renders_like_postgres():
    assert dialect_for("redshift").name == "postgres"


@pytest.mark.parametrize("db_type", ["duckdb", "postgres"])
def test_every_metric_renders(db_type):
    d = dialect_for(db_type)
    for metric in CATALOG.values():
        sql = metric.render(d)
        assert sql.lstrip().upper().startswith(("SELECT", "WITH")), metric.name
        assert ";" not in sql


def test_postgres_uses_epoch_extract_and_numeric_round():
    sql = get_metric("delivery-vs-estimate-per-order").render(dialect_for("postgres"))
    assert "EXTRACT(EPOCH FROM (o.order_delivered_customer_date - o.order_estimated_delivery_date))" in sql
    sql = get_metric("revenue-by-state").render(dialect_for("postgres"))
    assert "::numeric(38, 6), 2)" in sql


def test_month_names_per_dialect():
    assert "TO_CHAR(order_purchase_timestamp, 'Mon')" in get_metric("volume-by-month").render(dialect_for("postgres"))
    assert "strftime(order_purchase_timestamp, '%b')" in get_metric("volume-by-month").render(dialect_for("duckdb"))


def test_early_and_late_sign_conventions_differ():
    d = dialect_for("postgres")
    late = get_metric("delivery-vs-estimate-per-order").render(d)
    early = get_metric("top-states-by-early-delivery").render(d)
    assert "(order_estimated_delivery_date - order_delivered_customer_date)" in early
    assert "(o.order_delivered_customer_date - o.order_estimated_delivery_date)" in late


def test_category_revenue_never_joins_order_payments():
    sql = get_metric("top-categories-by-revenue").render(dialect_for("duckdb"))
    assert "payments" not in sql
    assert "oi.price + oi.freight_value" in sql


def test_parameters_are_inlined_as_integers():
    sql = get_metric("volume-by-year").render(dialect_for("duckdb"), first_month="1", last_month="8")
    assert "BETWEEN 1 AND 8" in sql


@pytest.mark.parametrize("metric", ["repeat-purchase-rate", "freight-by-state", "yoy-partial-period-growth"])
def test_redshift_rounding_keeps_the_fraction(metric):
    sql = get_metric(metric).render(dialect_for("redshift"))
    assert "::numeric(38, 6), 2)" in sql
    assert "::numeric, 2)" not in sql
