"""
Classification and Tiering

Two strategies:

- Fixed-threshold bucketing (aging bucket, stock status): a pure function of
  one derived value, evaluated top-down, first match wins. The aging cuts
  are the base period and its 2x / 3x multiples.
- Percentile-rank tiering (executive performance): relative to the peers in
  the current entity set, recomputed from scratch for every set.

Each rule has a scalar form and a polars expression form built from the
same constants.
"""

from enum import Enum
import math
from typing import List, Tuple

import polars as pl
import structlog

logger = structlog.get_logger(__name__)

DEFAULT_AGING_BASE_PERIOD = 15


class AgingSeverity(str, Enum):
    """Qualitative label paired with each aging bucket"""
    RECENT = "Recent"
    MODERATE = "Moderate"
    CONCERNING = "Concerning"
    CRITICAL = "Critical"


class StockStatus(str, Enum):
    """Stock cover relative to units sold in the window"""
    CRITICAL = "Critical"
    LOW = "Low"
    ADEQUATE = "Adequate"


class PerformanceTier(str, Enum):
    """Relative performance of a sales executive among peers"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# =============================================================================
# AGING BUCKETS
# =============================================================================

def aging_thresholds(base_period: int = DEFAULT_AGING_BASE_PERIOD) -> Tuple[int, int, int]:
    """(base, 2 * base, 3 * base)"""
    return base_period, 2 * base_period, 3 * base_period


def aging_labels(base_period: int = DEFAULT_AGING_BASE_PERIOD) -> List[str]:
    """Bucket labels from most recent to oldest, e.g. "0-15 days" ... "45+ days" """
    first, second, third = aging_thresholds(base_period)
    return [
        f"0-{first} days",
        f"{first + 1}-{second} days",
        f"{second + 1}-{third} days",
        f"{third}+ days",
    ]


def aging_bucket(age_days: int, base_period: int = DEFAULT_AGING_BASE_PERIOD) -> Tuple[str, AgingSeverity]:
    """
    Classify an age in days into (bucket label, severity).

    >>> aging_bucket(15)
    ('0-15 days', <AgingSeverity.RECENT: 'Recent'>)
    >>> aging_bucket(46)
    ('45+ days', <AgingSeverity.CRITICAL: 'Critical'>)
    """
    first, second, third = aging_thresholds(base_period)
    recent, moderate, concerning, critical = aging_labels(base_period)

    if age_days > third:
        return critical, AgingSeverity.CRITICAL
    if age_days > second:
        return concerning, AgingSeverity.CONCERNING
    if age_days > first:
        return moderate, AgingSeverity.MODERATE
    return recent, AgingSeverity.RECENT


def aging_bucket_exprs(
    age_column: str = "age_days",
    base_period: int = DEFAULT_AGING_BASE_PERIOD,
) -> List[pl.Expr]:
    """``age_category`` and ``aging_status`` columns for a frame"""
    first, second, third = aging_thresholds(base_period)
    recent, moderate, concerning, critical = aging_labels(base_period)
    age = pl.col(age_column)

    category = (
        pl.when(age > third).then(pl.lit(critical))
        .when(age > second).then(pl.lit(concerning))
        .when(age > first).then(pl.lit(moderate))
        .otherwise(pl.lit(recent))
        .alias("age_category")
    )
    status = (
        pl.when(age > third).then(pl.lit(AgingSeverity.CRITICAL.value))
        .when(age > second).then(pl.lit(AgingSeverity.CONCERNING.value))
        .when(age > first).then(pl.lit(AgingSeverity.MODERATE.value))
        .otherwise(pl.lit(AgingSeverity.RECENT.value))
        .alias("aging_status")
    )
    return [category, status]


# =============================================================================
# STOCK STATUS
# =============================================================================

def stock_status(
    current_stock: float,
    sold_quantity: float,
    critical_ratio: float = 0.25,
    low_ratio: float = 0.5,
) -> StockStatus:
    """Critical below 25% of units sold, Low below 50%, otherwise Adequate"""
    if current_stock < sold_quantity * critical_ratio:
        return StockStatus.CRITICAL
    if current_stock < sold_quantity * low_ratio:
        return StockStatus.LOW
    return StockStatus.ADEQUATE


def stock_status_expr(
    stock_column: str = "stock",
    sold_column: str = "total_quantity",
    critical_ratio: float = 0.25,
    low_ratio: float = 0.5,
) -> pl.Expr:
    stock = pl.col(stock_column)
    sold = pl.col(sold_column)
    return (
        pl.when(stock < sold * critical_ratio).then(pl.lit(StockStatus.CRITICAL.value))
        .when(stock < sold * low_ratio).then(pl.lit(StockStatus.LOW.value))
        .otherwise(pl.lit(StockStatus.ADEQUATE.value))
        .alias("stock_status")
    )


# =============================================================================
# PERCENTILE TIERS
# =============================================================================

def tier_cutoffs(count: int, high_fraction: float = 0.2, medium_fraction: float = 0.5) -> Tuple[int, int]:
    """
    Last rank (1-based) that is still high, and last rank that is still medium.

    For 10 entities: (2, 5).
    """
    # round first so float noise like 3.0000000000000004 does not bump the ceiling
    high_cut = math.ceil(round(count * high_fraction, 9))
    medium_cut = max(high_cut, math.ceil(round(count * medium_fraction, 9)))
    return high_cut, medium_cut


def assign_performance_tiers(
    frame: pl.DataFrame,
    score_column: str = "total_orders",
    id_column: str = "executive_id",
    high_fraction: float = 0.2,
    medium_fraction: float = 0.5,
) -> pl.DataFrame:
    """
    Rank entities by ``score_column`` (descending) and assign tiers.

    Equal scores are ordered by ``id_column`` so the ranking never depends on
    input order. Entities with a zero score are always "low". Returns the
    frame sorted by rank with ``rank`` and ``performance`` columns added.
    """
    if frame.is_empty():
        return frame.with_columns([
            pl.lit(None, dtype=pl.UInt32).alias("rank"),
            pl.lit(None, dtype=pl.Utf8).alias("performance"),
        ])

    high_cut, medium_cut = tier_cutoffs(len(frame), high_fraction, medium_fraction)

    ranked = (
        frame.sort([score_column, id_column], descending=[True, False])
        .with_row_index("rank", offset=1)
    )

    rank = pl.col("rank")
    ranked = ranked.with_columns(
        pl.when(pl.col(score_column) <= 0).then(pl.lit(PerformanceTier.LOW.value))
        .when(rank <= high_cut).then(pl.lit(PerformanceTier.HIGH.value))
        .when(rank <= medium_cut).then(pl.lit(PerformanceTier.MEDIUM.value))
        .otherwise(pl.lit(PerformanceTier.LOW.value))
        .alias("performance")
    )

    logger.debug(
        "Performance tiers assigned",
        entities=len(ranked),
        high_cut=high_cut,
        medium_cut=medium_cut,
    )
    return ranked
