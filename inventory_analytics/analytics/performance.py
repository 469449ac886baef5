"""
Sales Executive Performance Report

Orders and revenue per sales executive, their best-selling products, and a
high / medium / low tier relative to the other executives in the current
(filtered) set.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import polars as pl
import structlog

from inventory_analytics.config import AnalyticsSettings
from inventory_analytics.transformation.aggregations import aggregate_items_by_pair, aggregate_orders
from inventory_analytics.transformation.classifiers import PerformanceTier, assign_performance_tiers
from inventory_analytics.transformation.windows import AnalysisWindow
from .filters import AnalyticsFilters
from .rows import frame_to_rows

logger = structlog.get_logger(__name__)

EXECUTIVE_ROW_DEFAULTS: Dict[str, Any] = {
    "executive_name": "Unnamed",
    "manager_name": "No manager",
    "total_orders": 0,
    "total_amount": 0.0,
    "performance": PerformanceTier.LOW.value,
}

TOP_PRODUCT_DEFAULTS: Dict[str, Any] = {
    "product_name": "Unknown",
    "total_quantity": 0,
    "total_amount": 0.0,
}


@dataclass
class PerformanceReport:
    """Performance view for one filter set"""
    executives: List[Dict[str, Any]] = field(default_factory=list)
    tier_summary: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    tier_counts: Dict[str, int] = field(default_factory=dict)
    chart: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.executives

    def to_dict(self) -> dict:
        return {
            "executives": self.executives,
            "tier_summary": self.tier_summary,
            "tier_counts": self.tier_counts,
            "chart": self.chart,
        }


def filter_orders(
    orders: pl.DataFrame,
    window: AnalysisWindow,
    filters: AnalyticsFilters,
) -> pl.DataFrame:
    """Apply the optional window and status filters to the order population"""
    if filters.window_applied:
        orders = orders.filter(window.filter_expr("created_at"))
    if filters.status:
        orders = orders.filter(pl.col("status") == filters.status)
    return orders


def top_products_by_executive(
    items: pl.DataFrame,
    products: pl.DataFrame,
    limit: int,
    product_id: Optional[str] = None,
) -> pl.DataFrame:
    """
    Best-selling products per executive by quantity, ``limit`` per executive.

    With ``product_id`` only that product is kept, before the per-executive
    limit is taken.
    """
    names = products.select([
        pl.col("id").alias("product_id"),
        pl.col("name").alias("product_name"),
    ])
    pairs = aggregate_items_by_pair(items, "executive_id", "product_id")
    if product_id:
        pairs = pairs.filter(pl.col("product_id") == product_id)
    return (
        pairs
        .join(names, on="product_id", how="left")
        .with_columns(pl.col("product_name").fill_null("Unknown"))
        .sort(["executive_id", "total_quantity", "product_id"], descending=[False, True, False])
        .group_by("executive_id", maintain_order=True)
        .head(limit)
    )


def build_performance_report(
    executives: pl.DataFrame,
    orders: pl.DataFrame,
    items: pl.DataFrame,
    products: pl.DataFrame,
    window: AnalysisWindow,
    filters: Optional[AnalyticsFilters] = None,
    settings: Optional[AnalyticsSettings] = None,
) -> PerformanceReport:
    """
    Build the performance report.

    Every executive appears (zero totals when they have no orders). With a
    product filter, only executives who sold that product remain and their
    top products are narrowed to it. Tiers are recomputed from scratch over
    whichever executives remain.

    Args:
        executives: Executives frame (id, name, manager_name)
        orders: Order population, all time
        items: Line items with ``executive_id`` resolved
        products: Products frame for product names
        window: Analysis window, used when ``filters.window_applied``
        filters: Status / product / window filters
        settings: Tier fractions and top product count
    """
    settings = settings or AnalyticsSettings()
    filters = filters or AnalyticsFilters()

    scoped_orders = filter_orders(orders, window, filters)
    scoped_items = items.join(
        scoped_orders.select(pl.col("id").alias("order_id")),
        on="order_id",
        how="semi",
    )

    totals = aggregate_orders(scoped_orders, key="executive_id", population=executives)
    top_products = top_products_by_executive(
        scoped_items,
        products,
        settings.executive_top_products,
        product_id=filters.product_id,
    )

    if filters.product_id:
        totals = totals.join(top_products.select("executive_id").unique(), on="executive_id", how="semi")

    people = executives.select([
        pl.col("id").alias("executive_id"),
        pl.col("name").alias("executive_name"),
        "manager_name",
    ])
    ranked = assign_performance_tiers(
        totals.join(people, on="executive_id", how="left"),
        score_column="total_orders",
        id_column="executive_id",
        high_fraction=settings.high_tier_fraction,
        medium_fraction=settings.medium_tier_fraction,
    )

    products_by_executive: Dict[str, List[Dict[str, Any]]] = {}
    for row in frame_to_rows(top_products, "executive_product", TOP_PRODUCT_DEFAULTS, id_column="executive_id"):
        executive_id = row.pop("executive_id")
        products_by_executive.setdefault(executive_id, []).append(row)

    rows = frame_to_rows(ranked, "executive", EXECUTIVE_ROW_DEFAULTS, id_column="executive_id")
    for row in rows:
        row["top_products"] = products_by_executive.get(row["executive_id"], [])

    tier_summary = {}
    tier_counts = {}
    for tier in PerformanceTier:
        members = [row for row in rows if row["performance"] == tier.value]
        tier_summary[tier.value] = members[:settings.summary_top_n]
        tier_counts[tier.value] = len(members)

    chart = [
        {
            "executive_id": row["executive_id"],
            "executive_name": row["executive_name"],
            "total_orders": row["total_orders"],
            "total_amount": row["total_amount"],
        }
        for row in rows
    ]

    logger.info(
        "Performance report built",
        executives=len(rows),
        orders=len(scoped_orders),
        status_filter=filters.status,
        product_filter=filters.product_id,
        **{f"{tier}_count": count for tier, count in tier_counts.items()},
    )
    return PerformanceReport(
        executives=rows,
        tier_summary=tier_summary,
        tier_counts=tier_counts,
        chart=chart,
    )
