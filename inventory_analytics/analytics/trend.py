"""
Daily Order Trend

Orders, units and revenue per calendar day inside the window.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import polars as pl
import structlog

from inventory_analytics.transformation.aggregations import line_value_expr
from inventory_analytics.transformation.windows import AnalysisWindow
from .filters import AnalyticsFilters

logger = structlog.get_logger(__name__)


@dataclass
class TrendReport:
    days: List[Dict[str, Any]] = field(default_factory=list)
    total_orders: int = 0
    total_quantity: int = 0
    total_revenue: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.days

    def to_dict(self) -> dict:
        return {
            "days": self.days,
            "total_orders": self.total_orders,
            "total_quantity": self.total_quantity,
            "total_revenue": self.total_revenue,
        }


def build_trend_report(
    orders: pl.DataFrame,
    items: pl.DataFrame,
    window: AnalysisWindow,
    filters: Optional[AnalyticsFilters] = None,
) -> TrendReport:
    """
    Per-day series for in-window orders, sorted by date.

    Orders are counted on the day they were created. Units and revenue come
    from their line items, narrowed to one product when a product filter is
    set. The status filter narrows the orders themselves.
    """
    filters = filters or AnalyticsFilters()

    scoped = orders.filter(window.filter_expr("created_at") & pl.col("created_at").is_not_null())
    if filters.status:
        scoped = scoped.filter(pl.col("status") == filters.status)

    if scoped.is_empty():
        return TrendReport()

    order_days = scoped.select([
        pl.col("id").alias("order_id"),
        pl.col("created_at").dt.date().alias("date"),
    ])

    line_items = items
    if filters.product_id:
        line_items = line_items.filter(pl.col("product_id") == filters.product_id)

    item_totals = (
        line_items.join(order_days, on="order_id", how="inner")
        .group_by("date")
        .agg([
            pl.col("quantity").sum().cast(pl.Int64).alias("quantity"),
            line_value_expr().sum().alias("revenue"),
        ])
    )

    daily = (
        order_days.group_by("date")
        .agg(pl.len().cast(pl.Int64).alias("orders"))
        .join(item_totals, on="date", how="left")
        .with_columns([
            pl.col("quantity").fill_null(0),
            pl.col("revenue").fill_null(0.0),
        ])
        .sort("date")
    )

    days = [
        {
            "date": row["date"].isoformat(),
            "orders": row["orders"],
            "quantity": row["quantity"],
            "revenue": row["revenue"],
        }
        for row in daily.iter_rows(named=True)
    ]

    report = TrendReport(
        days=days,
        total_orders=int(daily["orders"].sum()),
        total_quantity=int(daily["quantity"].sum()),
        total_revenue=float(daily["revenue"].sum()),
    )
    logger.info("Trend report built", days=len(days), total_orders=report.total_orders)
    return report
