"""
Aging Stock Report

Which in-stock products have not sold recently, how much inventory value is
tied up in them, and how that value spreads across the aging buckets.
"""

from dataclasses import dataclass, field
import math
from typing import Any, Dict, List, Optional

import polars as pl
import structlog

from inventory_analytics.config import AnalyticsSettings
from inventory_analytics.transformation.aggregations import aggregate_items, resolve_items
from inventory_analytics.transformation.classifiers import (
    AgingSeverity,
    aging_labels,
    aging_thresholds,
)
from inventory_analytics.transformation.metrics import derive_product_metrics
from inventory_analytics.transformation.windows import AnalysisWindow
from .filters import SortState
from .rows import frame_to_rows

logger = structlog.get_logger(__name__)

PRODUCT_ROW_DEFAULTS: Dict[str, Any] = {
    "name": "Unknown Product",
    "stock": 0,
    "total_quantity": 0,
    "total_sales_value": 0.0,
    "order_count": 0,
    "age_days": 0,
    "sales_velocity": 0.0,
    "days_of_inventory": 999,
    "inventory_value": 0.0,
    "category_name": "Uncategorized",
}

PRODUCT_ROW_COLUMNS = [
    "id",
    "name",
    "article_id",
    "category_id",
    "category_name",
    "stock",
    "price",
    "selling_price",
    "last_sale_date",
    "age_days",
    "age_category",
    "aging_status",
    "inventory_value",
    "total_quantity",
    "total_sales_value",
    "order_count",
    "sales_velocity",
    "days_of_inventory",
    "stock_status",
]

SEVERITY_BY_BUCKET = [
    AgingSeverity.RECENT,
    AgingSeverity.MODERATE,
    AgingSeverity.CONCERNING,
    AgingSeverity.CRITICAL,
]


@dataclass
class AgingBucket:
    label: str
    severity: str
    count: int = 0
    value: float = 0.0

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "severity": self.severity,
            "count": self.count,
            "value": self.value,
        }


@dataclass
class AgingReport:
    """Aging view of one window"""
    products: List[Dict[str, Any]] = field(default_factory=list)
    aging_products: List[Dict[str, Any]] = field(default_factory=list)
    aging_categories: List[AgingBucket] = field(default_factory=list)
    total_aging_value: float = 0.0
    oldest_product: Optional[Dict[str, Any]] = None
    average_age: int = 0
    critical_count: int = 0
    critical_products: List[Dict[str, Any]] = field(default_factory=list)
    high_value_products: List[Dict[str, Any]] = field(default_factory=list)
    sort: SortState = field(default_factory=SortState)

    @property
    def is_empty(self) -> bool:
        return not self.products

    def to_dict(self) -> dict:
        return {
            "products": self.products,
            "aging_products": self.aging_products,
            "aging_categories": [bucket.to_dict() for bucket in self.aging_categories],
            "total_aging_value": self.total_aging_value,
            "oldest_product": self.oldest_product,
            "average_age": self.average_age,
            "critical_count": self.critical_count,
            "insights": {
                "critical_products": self.critical_products,
                "high_value_products": self.high_value_products,
            },
            "sort": {"column": self.sort.column, "direction": self.sort.direction.value},
        }


def summarize_buckets(metrics: pl.DataFrame, base_period: int) -> List[AgingBucket]:
    """Count and value per aging bucket; all four buckets are always present"""
    totals = {}
    if not metrics.is_empty():
        grouped = metrics.group_by("age_category").agg([
            pl.len().alias("count"),
            pl.col("inventory_value").sum().alias("value"),
        ])
        totals = {row["age_category"]: row for row in grouped.iter_rows(named=True)}

    buckets = []
    for label, severity in zip(aging_labels(base_period), SEVERITY_BY_BUCKET):
        row = totals.get(label)
        buckets.append(AgingBucket(
            label=label,
            severity=severity.value,
            count=int(row["count"]) if row else 0,
            value=float(row["value"]) if row else 0.0,
        ))
    return buckets


def build_aging_report(
    products: pl.DataFrame,
    items: pl.DataFrame,
    window: AnalysisWindow,
    settings: Optional[AnalyticsSettings] = None,
    categories: Optional[pl.DataFrame] = None,
    sort: Optional[SortState] = None,
) -> AgingReport:
    """
    Build the aging report.

    Only active products with stock are considered. Only items of orders in
    a sale status (delivered / completed by default) count as sales, and
    only inside the window.

    Args:
        products: Normalized products frame
        items: Normalized order items frame (with ``order_status``)
        window: Analysis window
        settings: Thresholds
        categories: Categories frame for name resolution
        sort: Table sort state
    """
    settings = settings or AnalyticsSettings()
    sort = sort or SortState()
    base, _, critical_cut = aging_thresholds(settings.aging_base_period_days)

    in_stock = products.filter((pl.col("stock") > 0) & pl.col("is_active"))
    sales = items.filter(
        window.filter_expr("created_at")
        & pl.col("order_status").is_in(list(settings.sale_statuses))
    )
    aggregates = aggregate_items(resolve_items(sales, in_stock), key="product_id")
    metrics = derive_product_metrics(in_stock, aggregates, window, settings, categories)

    ordered = metrics.sort([sort.frame_column, "id"], descending=[sort.descending, False])
    aging = ordered.filter(pl.col("age_days") > base)
    critical = aging.filter(pl.col("age_days") > critical_cut)

    average_age = 0
    if not aging.is_empty():
        average_age = int(math.floor(aging["age_days"].mean() + 0.5))

    def _rows(frame: pl.DataFrame) -> List[Dict[str, Any]]:
        return frame_to_rows(frame.select(PRODUCT_ROW_COLUMNS), "product", PRODUCT_ROW_DEFAULTS)

    oldest = aging.sort(["age_days", "id"], descending=[True, False]).head(1)
    top_n = settings.summary_top_n

    report = AgingReport(
        products=_rows(ordered),
        aging_products=_rows(aging),
        aging_categories=summarize_buckets(metrics, settings.aging_base_period_days),
        total_aging_value=float(aging["inventory_value"].sum()) if not aging.is_empty() else 0.0,
        oldest_product=_rows(oldest)[0] if not oldest.is_empty() else None,
        average_age=average_age,
        critical_count=len(critical),
        critical_products=_rows(critical.sort(["age_days", "id"], descending=[True, False]).head(top_n)),
        high_value_products=_rows(aging.sort(["inventory_value", "id"], descending=[True, False]).head(top_n)),
        sort=sort,
    )

    logger.info(
        "Aging report built",
        products=len(report.products),
        aging_products=len(report.aging_products),
        critical_count=report.critical_count,
        total_aging_value=round(report.total_aging_value, 2),
    )
    return report
