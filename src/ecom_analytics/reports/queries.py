"""Catalog of reporting metrics over the e-commerce schema.

Each metric is a read-only query assembled from small CTE steps. The steps
that carry money (``order_payment``, ``order_freight``) always collapse to one
row per order *before* any join to a dimension, so a state or category join
cannot fan an order out into several copies of its total.

Two delivery conventions coexist on purpose and must not be unified:
  - ``diff_estimated_delivery_days`` = delivered - estimated (positive = late)
  - ``early_days`` / ``avg_days_early`` = estimated - delivered (positive = early)
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ecom_analytics.db.utils import SqlDialect
from ecom_analytics.exceptions.errors import ReportParameterError, UnknownMetricError

SECONDS_PER_DAY = 86400.0

PURCHASE_TS = "order_purchase_timestamp"
DELIVERED_TS = "order_delivered_customer_date"
ESTIMATED_TS = "order_estimated_delivery_date"


# ----------------------------------------------------------------------------
# Composable steps
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class Cte:
    name: str
    body: str


def with_ctes(ctes: Sequence[Cte], select: str) -> str:
    if not ctes:
        return select.strip()
    parts = [f"{c.name} AS (\n{c.body.strip()}\n)" for c in ctes]
    return "WITH " + ",\n".join(parts) + "\n" + select.strip()


def order_payment() -> Cte:
    """One row per order: all payment rows (installments, vouchers) summed."""
    return Cte(
        "order_payment",
        """
  SELECT order_id, SUM(payment_value) AS order_payment_value
  FROM payments
  GROUP BY order_id
""",
    )


def order_freight() -> Cte:
    """One row per order: freight of every item summed."""
    return Cte(
        "order_freight",
        """
  SELECT order_id, SUM(freight_value) AS order_freight_value
  FROM order_items
  GROUP BY order_id
""",
    )


def order_state() -> Cte:
    return Cte(
        "order_state",
        """
  SELECT o.order_id, c.customer_state
  FROM orders o
  JOIN customers c ON c.customer_id = o.customer_id
""",
    )


def order_delivery(d: SqlDialect) -> Cte:
    """Purchase-to-delivery time in days, for delivered orders only."""
    return Cte(
        "order_delivery",
        f"""
  SELECT
    order_id,
    {d.seconds_between(DELIVERED_TS, PURCHASE_TS)} / {SECONDS_PER_DAY} AS delivery_days
  FROM orders
  WHERE {DELIVERED_TS} IS NOT NULL
    AND {PURCHASE_TS} IS NOT NULL
""",
    )


def order_early(d: SqlDialect) -> Cte:
    # positive means delivered before the estimate
    return Cte(
        "order_early",
        f"""
  SELECT
    order_id,
    {d.seconds_between(ESTIMATED_TS, DELIVERED_TS)} / {SECONDS_PER_DAY} AS early_days
  FROM orders
  WHERE {DELIVERED_TS} IS NOT NULL
    AND {ESTIMATED_TS} IS NOT NULL
""",
    )


def state_average(name: str, source: Cte, value_col: str, out_col: str) -> Cte:
    """Average a per-order value by customer state (requires ``order_state``)."""
    return Cte(
        name,
        f"""
  SELECT os.customer_state AS state,
         AVG(src.{value_col}) AS {out_col}
  FROM {source.name} src
  JOIN order_state os ON os.order_id = src.order_id
  GROUP BY 1
""",
    )


def ranked_states(
    d: SqlDialect,
    source: Cte,
    value_col: str,
    sides: Sequence[Tuple[str, str]],
    per_side: int,
) -> Tuple[Cte, str]:
    """Rank states on the unrounded average, ties broken by state name.

    ``sides`` is a list of (kind label, "DESC"/"ASC"). Returns the ranking CTE and
    the final SELECT producing ``kind, rnk, state, <value_col>``.
    """
    windows = ",\n    ".join(
        f"ROW_NUMBER() OVER (ORDER BY {value_col} {direction}, state) AS rnk_{i}"
        for i, (_, direction) in enumerate(sides)
    )
    ranked = Cte(
        "ranked",
        f"""
  SELECT
    state,
    {value_col},
    {windows}
  FROM {source.name}
  WHERE {value_col} IS NOT NULL
""",
    )
    blocks = [
        f"  SELECT '{kind}' AS kind, rnk_{i} AS rnk, state, {d.round2(value_col)} AS {value_col}, {i} AS sort_block\n"
        f"  FROM ranked\n"
        f"  WHERE rnk_{i} <= {per_side}"
        for i, (kind, _) in enumerate(sides)
    ]
    union = "\n  UNION ALL\n".join(blocks)
    select = f"""
SELECT kind, rnk, state, {value_col}
FROM (
{union}
) u
ORDER BY sort_block, rnk
"""
    return ranked, select


def pct(d: SqlDialect, numerator: str, denominator: str) -> str:
    """Percentage rounded to 2 places; NULL when the denominator is 0 or NULL."""
    return d.round2(f"100.0 * {numerator} / NULLIF({denominator}, 0)")


def _year(expr: str) -> str:
    return f"CAST(EXTRACT(YEAR FROM {expr}) AS INTEGER)"


def _month(expr: str) -> str:
    return f"CAST(EXTRACT(MONTH FROM {expr}) AS INTEGER)"


# ----------------------------------------------------------------------------
# Parameters
# ----------------------------------------------------------------------------

_IDENT_RE = re.compile(r"^[a-z_][a-z0-9_]*$")


@dataclass(frozen=True)
class Param:
    name: str
    default: Any
    kind: str = "int"  # int | choice | identifier
    minimum: Optional[int] = None
    maximum: Optional[int] = None
    choices: Tuple[str, ...] = ()

    def coerce(self, value: Any) -> Any:
        if self.kind == "int":
            try:
                v = int(value)
            except (TypeError, ValueError) as e:
                raise ReportParameterError(f"Parameter '{self.name}' must be an integer, got {value!r}") from e
            if isinstance(value, float) and not float(value).is_integer():
                raise ReportParameterError(f"Parameter '{self.name}' must be an integer, got {value!r}")
            if self.minimum is not None and v < self.minimum:
                raise ReportParameterError(f"Parameter '{self.name}' must be >= {self.minimum}")
            if self.maximum is not None and v > self.maximum:
                raise ReportParameterError(f"Parameter '{self.name}' must be <= {self.maximum}")
            return v
        if self.kind == "choice":
            v = str(value)
            if v not in self.choices:
                raise ReportParameterError(f"Parameter '{self.name}' must be one of {list(self.choices)}")
            return v
        if self.kind == "identifier":
            v = str(value).strip().lower()
            if not _IDENT_RE.match(v):
                raise ReportParameterError(f"Parameter '{self.name}' is not a valid table name: {value!r}")
            return v
        raise ReportParameterError(f"Unsupported parameter kind: {self.kind}")


def _first_month(default: int) -> Param:
    return Param("first_month", default, minimum=1, maximum=12)


def _last_month(default: int) -> Param:
    return Param("last_month", default, minimum=1, maximum=12)


def _check_month_window(p: Dict[str, Any]) -> None:
    if p["first_month"] > p["last_month"]:
        raise ReportParameterError("first_month must not be after last_month")


# ----------------------------------------------------------------------------
# Metrics
# ----------------------------------------------------------------------------

def volume_by_year(d: SqlDialect, first_month: int, last_month: int) -> str:
    return f"""
SELECT
  {_year(PURCHASE_TS)} AS "year",
  COUNT(*) AS orders_count
FROM orders
WHERE {PURCHASE_TS} IS NOT NULL
  AND EXTRACT(MONTH FROM {PURCHASE_TS}) BETWEEN {first_month} AND {last_month}
GROUP BY 1
ORDER BY 1
""".strip()


def volume_by_month(d: SqlDialect) -> str:
    return f"""
SELECT
  {d.month_abbrev(PURCHASE_TS)} AS month_name,
  {_month(PURCHASE_TS)} AS month_num,
  COUNT(*) AS orders_count
FROM orders
WHERE {PURCHASE_TS} IS NOT NULL
GROUP BY 1, 2
ORDER BY month_num
""".strip()


DAYPARTS = (("Dawn", 0, 6), ("Morning", 7, 12), ("Afternoon", 13, 18), ("Night", 19, 23))


def daypart_mix(d: SqlDialect) -> str:
    hour = d.hour_of(PURCHASE_TS)
    whens = "\n      ".join(
        f"WHEN {hour} BETWEEN {lo} AND {hi} THEN '{label}'" for label, lo, hi in DAYPARTS[:-1]
    )
    buckets = Cte(
        "buckets",
        f"""
  SELECT
    CASE
      {whens}
      ELSE '{DAYPARTS[-1][0]}'
    END AS daypart
  FROM orders
  WHERE {PURCHASE_TS} IS NOT NULL
""",
    )
    return with_ctes(
        [buckets],
        """
SELECT daypart, COUNT(*) AS orders_count
FROM buckets
GROUP BY daypart
ORDER BY orders_count DESC, daypart
""",
    )


def volume_by_state_month(d: SqlDialect) -> str:
    return f"""
SELECT
  c.customer_state AS state,
  {d.month_start('o.' + PURCHASE_TS)} AS "month",
  COUNT(*) AS orders_count
FROM orders o
JOIN customers c ON c.customer_id = o.customer_id
WHERE o.{PURCHASE_TS} IS NOT NULL
GROUP BY 1, 2
ORDER BY 1, 2
""".strip()


def customers_by_state(d: SqlDialect) -> str:
    return """
SELECT
  c.customer_state AS state,
  COUNT(DISTINCT o.customer_id) AS unique_customers
FROM orders o
JOIN customers c ON c.customer_id = o.customer_id
GROUP BY 1
ORDER BY unique_customers DESC, state
""".strip()


def yoy_partial_period_growth(
    d: SqlDialect, base_year: int, compare_year: int, first_month: int, last_month: int
) -> str:
    """Payment totals of two years over the same month window, and the % change."""
    year_totals = Cte(
        "year_totals",
        f"""
  SELECT
    {_year('o.' + PURCHASE_TS)} AS yr,
    SUM(op.order_payment_value) AS total_payment_value
  FROM orders o
  JOIN order_payment op ON op.order_id = o.order_id
  WHERE o.{PURCHASE_TS} IS NOT NULL
    AND EXTRACT(YEAR FROM o.{PURCHASE_TS}) IN ({base_year}, {compare_year})
    AND EXTRACT(MONTH FROM o.{PURCHASE_TS}) BETWEEN {first_month} AND {last_month}
  GROUP BY 1
""",
    )
    base = f"(SELECT total_payment_value FROM year_totals WHERE yr = {base_year})"
    compare = f"(SELECT total_payment_value FROM year_totals WHERE yr = {compare_year})"
    growth = d.round2(f"({compare} - {base}) / NULLIF({base}, 0) * 100.0")
    return with_ctes(
        [order_payment(), year_totals],
        f"""
SELECT
  CAST({base_year} AS INTEGER) AS base_year,
  CAST({compare_year} AS INTEGER) AS compare_year,
  {base} AS base_total,
  {compare} AS compare_total,
  {growth} AS pct_increase
""",
    )


def revenue_by_state(d: SqlDialect) -> str:
    # price ~ total payment per order
    return with_ctes(
        [order_payment(), order_state()],
        f"""
SELECT
  os.customer_state AS state,
  SUM(op.order_payment_value) AS total_order_price,
  {d.round2('AVG(op.order_payment_value)')} AS avg_order_price
FROM order_payment op
JOIN order_state os ON os.order_id = op.order_id
GROUP BY 1
ORDER BY total_order_price DESC, state
""",
    )


def freight_by_state(d: SqlDialect) -> str:
    return with_ctes(
        [order_freight(), order_state()],
        f"""
SELECT
  os.customer_state AS state,
  SUM(ofr.order_freight_value) AS total_freight,
  {d.round2('AVG(ofr.order_freight_value)')} AS avg_freight
FROM order_freight ofr
JOIN order_state os ON os.order_id = ofr.order_id
GROUP BY 1
ORDER BY total_freight DESC, state
""",
    )


def delivery_vs_estimate_per_order(d: SqlDialect) -> str:
    return f"""
SELECT
  o.order_id,
  (o.{DELIVERED_TS} - o.{PURCHASE_TS}) AS time_to_deliver_interval,
  {d.seconds_between('o.' + DELIVERED_TS, 'o.' + PURCHASE_TS)} / {SECONDS_PER_DAY} AS time_to_deliver_days,
  (o.{DELIVERED_TS} - o.{ESTIMATED_TS}) AS diff_estimated_delivery_interval,
  {d.seconds_between('o.' + DELIVERED_TS, 'o.' + ESTIMATED_TS)} / {SECONDS_PER_DAY} AS diff_estimated_delivery_days
FROM orders o
WHERE o.{DELIVERED_TS} IS NOT NULL
  AND o.{PURCHASE_TS} IS NOT NULL
  AND o.{ESTIMATED_TS} IS NOT NULL
ORDER BY o.order_id
""".strip()


HIGH_LOW = (("highest", "DESC"), ("lowest", "ASC"))


def top_bottom_states_by_freight(d: SqlDialect, per_side: int) -> str:
    freight = order_freight()
    state_freight = state_average("state_freight", freight, "order_freight_value", "avg_freight")
    ranked, select = ranked_states(d, state_freight, "avg_freight", HIGH_LOW, per_side)
    return with_ctes([freight, order_state(), state_freight, ranked], select)


def top_bottom_states_by_delivery_time(d: SqlDialect, per_side: int) -> str:
    delivery = order_delivery(d)
    state_delivery = state_average("state_delivery", delivery, "delivery_days", "avg_delivery_days")
    ranked, select = ranked_states(d, state_delivery, "avg_delivery_days", HIGH_LOW, per_side)
    return with_ctes([order_state(), delivery, state_delivery, ranked], select)


def top_states_by_early_delivery(d: SqlDialect, per_side: int) -> str:
    early = order_early(d)
    state_early = state_average("state_early", early, "early_days", "avg_days_early")
    ranked, select = ranked_states(
        d, state_early, "avg_days_early", (("fastest_vs_estimate", "DESC"),), per_side
    )
    return with_ctes([order_state(), early, state_early, ranked], select)


def volume_by_payment_type_month(d: SqlDialect) -> str:
    # one order paid by card and voucher counts once per type
    return f"""
SELECT
  {d.month_start('o.' + PURCHASE_TS)} AS "month",
  p.payment_type,
  COUNT(DISTINCT o.order_id) AS orders_count
FROM orders o
JOIN payments p ON p.order_id = o.order_id
WHERE o.{PURCHASE_TS} IS NOT NULL
GROUP BY 1, 2
ORDER BY 1, 2
""".strip()


def volume_by_installments(d: SqlDialect) -> str:
    return """
SELECT
  p.payment_installments,
  COUNT(DISTINCT p.order_id) AS orders_count
FROM payments p
GROUP BY 1
ORDER BY 1
""".strip()


def top_categories_by_revenue(d: SqlDialect, limit: int) -> str:
    """Revenue attributed per item row, so a mixed-category order is split, not copied."""
    item_revenue = Cte(
        "item_revenue",
        """
  SELECT
    pr.product_category_name AS category,
    oi.price + oi.freight_value AS item_revenue
  FROM order_items oi
  JOIN products pr ON pr.product_id = oi.product_id
  WHERE pr.product_category_name IS NOT NULL
""",
    )
    category_revenue = Cte(
        "category_revenue",
        """
  SELECT category, SUM(item_revenue) AS revenue
  FROM item_revenue
  GROUP BY 1
""",
    )
    total = Cte("total", "  SELECT SUM(revenue) AS total_revenue FROM category_revenue")
    return with_ctes(
        [item_revenue, category_revenue, total],
        f"""
SELECT
  cr.category,
  cr.revenue,
  {pct(d, 'cr.revenue', 't.total_revenue')} AS revenue_share_pct
FROM category_revenue cr
CROSS JOIN total t
ORDER BY cr.revenue DESC, cr.category
LIMIT {limit}
""",
    )


def repeat_purchase_rate(d: SqlDialect, customer_key: str) -> str:
    if customer_key == "customer_unique_id":
        body = """
  SELECT c.customer_unique_id AS customer_key, COUNT(*) AS orders_cnt
  FROM orders o
  JOIN customers c ON c.customer_id = o.customer_id
  WHERE c.customer_unique_id IS NOT NULL
  GROUP BY 1
"""
    else:
        body = """
  SELECT customer_id AS customer_key, COUNT(*) AS orders_cnt
  FROM orders
  GROUP BY 1
"""
    repeat = "SUM(CASE WHEN orders_cnt >= 2 THEN 1 ELSE 0 END)"
    return with_ctes(
        [Cte("cust_orders", body)],
        f"""
SELECT
  CAST(COALESCE({repeat}, 0) AS BIGINT) AS repeat_customers,
  COUNT(*) AS total_customers_with_orders,
  {pct(d, repeat, 'COUNT(*)')} AS repeat_rate_pct
FROM cust_orders
""",
    )


def top_cities_by_volume(d: SqlDialect, limit: int) -> str:
    city_orders = Cte(
        "city_orders",
        f"""
  SELECT
    c.customer_city AS city,
    c.customer_state AS state,
    COUNT(*) AS orders_count
  FROM orders o
  JOIN customers c ON c.customer_id = o.customer_id
  WHERE o.{PURCHASE_TS} IS NOT NULL
  GROUP BY 1, 2
""",
    )
    total = Cte("total", "  SELECT SUM(orders_count) AS total_orders FROM city_orders")
    return with_ctes(
        [city_orders, total],
        f"""
SELECT
  co.city,
  co.state,
  co.orders_count,
  {pct(d, 'co.orders_count', 't.total_orders')} AS orders_share_pct
FROM city_orders co
CROSS JOIN total t
ORDER BY co.orders_count DESC, co.city, co.state
LIMIT {limit}
""",
    )


def table_column_types(d: SqlDialect, table: str) -> str:
    return f"""
SELECT
  column_name,
  data_type,
  is_nullable,
  character_maximum_length
FROM information_schema.columns
WHERE table_name = '{table}'
ORDER BY ordinal_position
""".strip()


def purchase_window(d: SqlDialect) -> str:
    return f"""
SELECT
  MIN({PURCHASE_TS}) AS first_order,
  MAX({PURCHASE_TS}) AS last_order
FROM orders
""".strip()


def customer_geography(d: SqlDialect) -> str:
    # only customers who actually placed orders
    return """
SELECT
  COUNT(DISTINCT c.customer_city) AS cities,
  COUNT(DISTINCT c.customer_state) AS states
FROM customers c
JOIN orders o ON o.customer_id = c.customer_id
""".strip()


# ----------------------------------------------------------------------------
# Catalog
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class MetricSpec:
    name: str
    description: str
    columns: Tuple[str, ...]
    builder: Callable[..., str]
    params: Tuple[Param, ...] = ()
    check: Optional[Callable[[Dict[str, Any]], None]] = None
    tags: Tuple[str, ...] = field(default_factory=tuple)

    def resolve_params(self, given: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        given = dict(given or {})
        known = {p.name: p for p in self.params}
        unknown = sorted(set(given) - set(known))
        if unknown:
            raise ReportParameterError(f"Metric '{self.name}' does not accept parameters: {unknown}")
        resolved = {name: p.coerce(given.get(name, p.default)) for name, p in known.items()}
        if self.check:
            self.check(resolved)
        return resolved

    def render(self, dialect: SqlDialect, **params: Any) -> str:
        return self.builder(dialect, **self.resolve_params(params))


def _metric(name, description, columns, builder, params=(), check=None, tags=()) -> MetricSpec:
    return MetricSpec(
        name=name,
        description=description,
        columns=tuple(columns),
        builder=builder,
        params=tuple(params),
        check=check,
        tags=tuple(tags),
    )


_METRICS: List[MetricSpec] = [
    _metric(
        "volume-by-year",
        "Orders per purchase year, optionally restricted to a month window.",
        ["year", "orders_count"],
        volume_by_year,
        [_first_month(1), _last_month(12)],
        _check_month_window,
        ["volume"],
    ),
    _metric(
        "volume-by-month",
        "Seasonality: orders per calendar month across all years.",
        ["month_name", "month_num", "orders_count"],
        volume_by_month,
        tags=["volume"],
    ),
    _metric(
        "daypart-mix",
        "Orders by time of day: Dawn 0-6, Morning 7-12, Afternoon 13-18, Night 19-23.",
        ["daypart", "orders_count"],
        daypart_mix,
        tags=["volume"],
    ),
    _metric(
        "volume-by-state-month",
        "Orders per customer state and month.",
        ["state", "month", "orders_count"],
        volume_by_state_month,
        tags=["volume", "geography"],
    ),
    _metric(
        "customers-by-state",
        "Unique customers who ordered, per state.",
        ["state", "unique_customers"],
        customers_by_state,
        tags=["geography"],
    ),
    _metric(
        "yoy-partial-period-growth",
        "Payment value of two years over the same month window, and the % increase.",
        ["base_year", "compare_year", "base_total", "compare_total", "pct_increase"],
        yoy_partial_period_growth,
        [
            Param("base_year", 2017, minimum=1900, maximum=2999),
            Param("compare_year", 2018, minimum=1900, maximum=2999),
            _first_month(1),
            _last_month(8),
        ],
        _check_month_window,
        ["revenue"],
    ),
    _metric(
        "revenue-by-state",
        "Total and average order price (summed payments) per state.",
        ["state", "total_order_price", "avg_order_price"],
        revenue_by_state,
        tags=["revenue", "geography"],
    ),
    _metric(
        "freight-by-state",
        "Total and average order freight per state.",
        ["state", "total_freight", "avg_freight"],
        freight_by_state,
        tags=["logistics", "geography"],
    ),
    _metric(
        "delivery-vs-estimate-per-order",
        "Per order: purchase-to-delivery time and delivered minus estimated (positive = late).",
        [
            "order_id",
            "time_to_deliver_interval",
            "time_to_deliver_days",
            "diff_estimated_delivery_interval",
            "diff_estimated_delivery_days",
        ],
        delivery_vs_estimate_per_order,
        tags=["logistics"],
    ),
    _metric(
        "top-bottom-states-by-freight",
        "States with the highest and lowest average order freight.",
        ["kind", "rnk", "state", "avg_freight"],
        top_bottom_states_by_freight,
        [Param("per_side", 5, minimum=1)],
        tags=["logistics", "geography"],
    ),
    _metric(
        "top-bottom-states-by-delivery-time",
        "States with the highest and lowest average delivery time in days.",
        ["kind", "rnk", "state", "avg_delivery_days"],
        top_bottom_states_by_delivery_time,
        [Param("per_side", 5, minimum=1)],
        tags=["logistics", "geography"],
    ),
    _metric(
        "top-states-by-early-delivery",
        "States delivering furthest ahead of the estimate (positive = early).",
        ["kind", "rnk", "state", "avg_days_early"],
        top_states_by_early_delivery,
        [Param("per_side", 5, minimum=1)],
        tags=["logistics", "geography"],
    ),
    _metric(
        "volume-by-payment-type-month",
        "Distinct orders per month and payment type.",
        ["month", "payment_type", "orders_count"],
        volume_by_payment_type_month,
        tags=["payments"],
    ),
    _metric(
        "volume-by-installments",
        "Distinct orders per installment count.",
        ["payment_installments", "orders_count"],
        volume_by_installments,
        tags=["payments"],
    ),
    _metric(
        "top-categories-by-revenue",
        "Product categories by item revenue (price + freight) and share of categorised revenue.",
        ["category", "revenue", "revenue_share_pct"],
        top_categories_by_revenue,
        [Param("limit", 10, minimum=1)],
        tags=["revenue"],
    ),
    _metric(
        "repeat-purchase-rate",
        "Customers with two or more orders over customers with any order.",
        ["repeat_customers", "total_customers_with_orders", "repeat_rate_pct"],
        repeat_purchase_rate,
        [Param("customer_key", "customer_id", kind="choice", choices=("customer_id", "customer_unique_id"))],
        tags=["customers"],
    ),
    _metric(
        "top-cities-by-volume",
        "Cities by order count with their share of all orders.",
        ["city", "state", "orders_count", "orders_share_pct"],
        top_cities_by_volume,
        [Param("limit", 10, minimum=1)],
        tags=["volume", "geography"],
    ),
    _metric(
        "table-column-types",
        "Column names and data types of one table, from information_schema.",
        ["column_name", "data_type", "is_nullable", "character_maximum_length"],
        table_column_types,
        [Param("table", "customers", kind="identifier")],
        tags=["exploration"],
    ),
    _metric(
        "purchase-window",
        "Earliest and latest purchase timestamps.",
        ["first_order", "last_order"],
        purchase_window,
        tags=["exploration"],
    ),
    _metric(
        "customer-geography",
        "Distinct cities and states among customers who ordered.",
        ["cities", "states"],
        customer_geography,
        tags=["exploration", "geography"],
    ),
]

CATALOG: Dict[str, MetricSpec] = {m.name: m for m in _METRICS}


def list_metrics() -> List[MetricSpec]:
    return list(_METRICS)


def get_metric(name: str) -> MetricSpec:
    key = (name or "").strip().lower().replace("_", "-")
    if key not in CATALOG:
        raise UnknownMetricError(f"Unknown metric '{name}'. Known: {', '.join(CATALOG)}")
    return CATALOG[key]
