"""
Derived Product Metrics

Turns per-product sales aggregates into age, velocity, runway and value
metrics. All inputs are normalized frames, so no expression here needs to
coalesce a missing number except where a product simply has no sales.
"""

from typing import Optional

import polars as pl
import structlog

from inventory_analytics.config import AnalyticsSettings
from .classifiers import aging_bucket_exprs, stock_status_expr
from .windows import AnalysisWindow, days_between_expr

logger = structlog.get_logger(__name__)

UNCATEGORIZED = "Uncategorized"


def unit_value_expr() -> pl.Expr:
    """Selling price, falling back to list price, then 0 (zero counts as missing)"""
    selling = pl.col("selling_price")
    price = pl.col("price")
    return (
        pl.when(selling.is_not_null() & (selling != 0)).then(selling)
        .when(price.is_not_null() & (price != 0)).then(price)
        .otherwise(pl.lit(0.0))
    )


def attach_category_names(frame: pl.DataFrame, categories: Optional[pl.DataFrame]) -> pl.DataFrame:
    """Add ``category_name``, using "Uncategorized" for unknown categories"""
    if categories is None or categories.is_empty():
        return frame.with_columns(pl.lit(UNCATEGORIZED).alias("category_name"))

    lookup = categories.select([
        pl.col("id").alias("category_id"),
        pl.col("name").alias("category_name"),
    ]).unique(subset="category_id", keep="first")

    return frame.join(lookup, on="category_id", how="left").with_columns(
        pl.col("category_name").fill_null(UNCATEGORIZED)
    )


def derive_product_metrics(
    products: pl.DataFrame,
    aggregates: pl.DataFrame,
    window: AnalysisWindow,
    settings: Optional[AnalyticsSettings] = None,
    categories: Optional[pl.DataFrame] = None,
) -> pl.DataFrame:
    """
    Compute per-product metrics for one window.

    Adds:
    - total_quantity, total_sales_value, order_count (0 when nothing sold)
    - last_sale_date (null when nothing sold)
    - age_days: whole days from the last sale (or creation) to the window end
    - sales_velocity: units per day over the window
    - days_of_inventory: stock / velocity, or the sentinel when velocity is 0
    - inventory_value: unit value * stock
    - age_category, aging_status, stock_status, category_name

    Args:
        products: Normalized products frame
        aggregates: Output of ``aggregate_items(..., key="product_id")``
        window: The analysis window
        settings: Thresholds (defaults used when omitted)
        categories: Optional categories frame for name resolution
    """
    settings = settings or AnalyticsSettings()

    sales = aggregates.select([
        pl.col("product_id").alias("id"),
        "total_quantity",
        "total_sales_value",
        "order_count",
        pl.col("last_activity_date").alias("last_sale_date"),
    ])

    frame = products.join(sales, on="id", how="left").with_columns([
        pl.col("total_quantity").fill_null(0),
        pl.col("total_sales_value").fill_null(0.0),
        pl.col("order_count").fill_null(0),
    ])

    reference_date = pl.coalesce([
        pl.col("last_sale_date"),
        pl.col("created_at"),
        pl.col("updated_at"),
    ])
    to_date = pl.lit(window.to_date, dtype=pl.Datetime("us"))
    velocity = pl.col("total_quantity").cast(pl.Float64) / window.span_days

    frame = frame.with_columns([
        days_between_expr(to_date, reference_date).fill_null(0).cast(pl.Int64).alias("age_days"),
        velocity.alias("sales_velocity"),
        (unit_value_expr() * pl.col("stock")).alias("inventory_value"),
    ])

    frame = frame.with_columns([
        pl.when(pl.col("sales_velocity") > 0)
        .then(((pl.col("stock") / pl.col("sales_velocity")) + 0.5).floor())
        .otherwise(pl.lit(settings.days_of_inventory_sentinel))
        .cast(pl.Int64)
        .alias("days_of_inventory"),
        *aging_bucket_exprs("age_days", settings.aging_base_period_days),
        stock_status_expr(
            "stock",
            "total_quantity",
            critical_ratio=settings.stock_critical_ratio,
            low_ratio=settings.stock_low_ratio,
        ),
    ])

    frame = attach_category_names(frame, categories)

    missing_reference = frame.filter(reference_date.is_null()).height
    if missing_reference:
        logger.warning("Products without any reference date aged as 0 days", count=missing_reference)

    return frame.sort("id")
