"""
Group-and-Sum Aggregation

Shared reduction used by every report. Line items are grouped by an entity
key (product or sales executive) and reduced with order-independent
operations only (sum, count, max), so the output never depends on the order
rows arrive in. Results are sorted by key before they leave this module.
"""

from typing import Optional

import polars as pl
import structlog

logger = structlog.get_logger(__name__)

AGGREGATE_COLUMNS = [
    "total_quantity",
    "total_sales_value",
    "order_count",
    "last_activity_date",
]


def resolve_items(items: pl.DataFrame, products: pl.DataFrame) -> pl.DataFrame:
    """
    Keep only items whose product resolves to a fetched product.

    Items with a null ``product_id`` or an unknown product are dropped, not
    counted as zero.
    """
    known = products.select(pl.col("id").alias("product_id")).unique()
    resolved = items.filter(pl.col("product_id").is_not_null()).join(
        known, on="product_id", how="semi"
    )
    dropped = len(items) - len(resolved)
    if dropped:
        logger.debug("Unresolved order items dropped", dropped=dropped, kept=len(resolved))
    return resolved


def line_value_expr() -> pl.Expr:
    """quantity * unit_price for one line item"""
    return pl.col("quantity").cast(pl.Float64) * pl.col("unit_price")


def aggregate_items(
    items: pl.DataFrame,
    key: str,
    date_column: str = "created_at",
) -> pl.DataFrame:
    """
    Reduce line items to one accumulator row per entity.

    Args:
        items: Normalized line items (no null quantity / unit_price)
        key: Grouping column, e.g. ``product_id`` or ``executive_id``
        date_column: Column tracked for most recent activity

    Returns:
        DataFrame with ``key`` plus total_quantity, total_sales_value,
        order_count and last_activity_date, sorted by ``key``
    """
    if key not in items.columns:
        raise KeyError(f"Grouping key '{key}' not in items")

    return (
        items.filter(pl.col(key).is_not_null())
        .group_by(key)
        .agg([
            pl.col("quantity").sum().cast(pl.Int64).alias("total_quantity"),
            line_value_expr().sum().alias("total_sales_value"),
            pl.len().cast(pl.Int64).alias("order_count"),
            pl.col(date_column).max().alias("last_activity_date"),
        ])
        .sort(key)
    )


def aggregate_items_by_pair(
    items: pl.DataFrame,
    key: str,
    sub_key: str,
) -> pl.DataFrame:
    """
    Reduce line items per (entity, sub-entity), e.g. per executive and product.
    """
    return (
        items.filter(pl.col(key).is_not_null() & pl.col(sub_key).is_not_null())
        .group_by([key, sub_key])
        .agg([
            pl.col("quantity").sum().cast(pl.Int64).alias("total_quantity"),
            line_value_expr().sum().alias("total_amount"),
        ])
        .sort([key, sub_key])
    )


def aggregate_orders(
    orders: pl.DataFrame,
    key: str = "executive_id",
    population: Optional[pl.DataFrame] = None,
) -> pl.DataFrame:
    """
    Count orders and sum order amounts per entity.

    When ``population`` (a frame with an ``id`` column) is given, every
    entity in it appears in the result, with zero totals if it has no
    orders, and orders for entities outside the population are ignored.
    """
    totals = (
        orders.filter(pl.col(key).is_not_null())
        .group_by(key)
        .agg([
            pl.len().cast(pl.Int64).alias("total_orders"),
            pl.col("total_amount").sum().alias("total_amount"),
        ])
    )

    if population is not None:
        totals = (
            population.select(pl.col("id").alias(key))
            .join(totals, on=key, how="left")
            .with_columns([
                pl.col("total_orders").fill_null(0),
                pl.col("total_amount").fill_null(0.0),
            ])
        )

    return totals.sort(key)
