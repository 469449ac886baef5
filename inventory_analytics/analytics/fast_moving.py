"""
Fast-Moving Products Report

Top sellers by units sold in the window, with how well their current stock
covers that demand.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import polars as pl
import structlog

from inventory_analytics.config import AnalyticsSettings
from inventory_analytics.transformation.aggregations import aggregate_items, resolve_items
from inventory_analytics.transformation.classifiers import StockStatus
from inventory_analytics.transformation.metrics import derive_product_metrics
from inventory_analytics.transformation.windows import AnalysisWindow
from .aging import PRODUCT_ROW_COLUMNS, PRODUCT_ROW_DEFAULTS
from .rows import frame_to_rows

logger = structlog.get_logger(__name__)


@dataclass
class FastMovingReport:
    """Fast-moving view of one window"""
    products: List[Dict[str, Any]] = field(default_factory=list)
    total_quantity_sold: int = 0
    total_orders: int = 0
    restock_count: int = 0
    restock_products: List[Dict[str, Any]] = field(default_factory=list)
    trending_products: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.products

    def to_dict(self) -> dict:
        return {
            "products": self.products,
            "total_quantity_sold": self.total_quantity_sold,
            "total_orders": self.total_orders,
            "restock_count": self.restock_count,
            "insights": {
                "restock_products": self.restock_products,
                "trending_products": self.trending_products,
            },
        }


def rank_fast_movers(metrics: pl.DataFrame, top_n: int) -> pl.DataFrame:
    """
    Sort every sold product by units sold (desc, ties by id) and keep the
    first ``top_n``. Slicing happens only after the full sort.
    """
    return (
        metrics.filter(pl.col("order_count") > 0)
        .sort(["total_quantity", "id"], descending=[True, False])
        .head(top_n)
    )


def build_fast_moving_report(
    products: pl.DataFrame,
    items: pl.DataFrame,
    orders: pl.DataFrame,
    window: AnalysisWindow,
    settings: Optional[AnalyticsSettings] = None,
    categories: Optional[pl.DataFrame] = None,
    top_n: Optional[int] = None,
) -> FastMovingReport:
    """
    Build the fast-moving report.

    Every in-window line item counts regardless of order status. Items whose
    product is unknown are dropped before aggregation.
    """
    settings = settings or AnalyticsSettings()
    top_n = top_n or settings.fast_moving_top_n

    window_items = items.filter(window.filter_expr("created_at"))
    aggregates = aggregate_items(resolve_items(window_items, products), key="product_id")
    metrics = derive_product_metrics(products, aggregates, window, settings, categories)

    top = rank_fast_movers(metrics, top_n)
    needs_restock = top.filter(pl.col("stock_status") != StockStatus.ADEQUATE.value)
    total_orders = orders.filter(window.filter_expr("created_at")).height

    def _rows(frame: pl.DataFrame) -> List[Dict[str, Any]]:
        return frame_to_rows(frame.select(PRODUCT_ROW_COLUMNS), "product", PRODUCT_ROW_DEFAULTS)

    report = FastMovingReport(
        products=_rows(top),
        total_quantity_sold=int(top["total_quantity"].sum()) if not top.is_empty() else 0,
        total_orders=total_orders,
        restock_count=len(needs_restock),
        restock_products=_rows(needs_restock.head(settings.summary_top_n)),
        trending_products=_rows(top.head(settings.summary_top_n)),
    )

    logger.info(
        "Fast-moving report built",
        products=len(report.products),
        total_quantity_sold=report.total_quantity_sold,
        total_orders=report.total_orders,
    )
    return report
