"""
Data Transformation Module
"""
from .aggregations import aggregate_items, aggregate_items_by_pair, aggregate_orders, resolve_items
from .classifiers import (
    AgingSeverity,
    PerformanceTier,
    StockStatus,
    aging_bucket,
    assign_performance_tiers,
    stock_status,
)
from .metrics import derive_product_metrics
from .windows import AnalysisWindow, days_between, parse_window

__all__ = [
    "aggregate_items",
    "aggregate_items_by_pair",
    "aggregate_orders",
    "resolve_items",
    "AgingSeverity",
    "PerformanceTier",
    "StockStatus",
    "aging_bucket",
    "assign_performance_tiers",
    "stock_status",
    "derive_product_metrics",
    "AnalysisWindow",
    "days_between",
    "parse_window",
]
