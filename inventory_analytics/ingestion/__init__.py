"""
Data Ingestion Module

Record normalization lives here; data sources and the windowed fetch are
imported from ``inventory_analytics.ingestion.sources`` and
``inventory_analytics.ingestion.fetch``.
"""
from .records import (
    CategoryRecord,
    ExecutiveRecord,
    OrderItemRecord,
    OrderRecord,
    ProductRecord,
    normalize_rows,
    parse_timestamp,
)

__all__ = [
    "CategoryRecord",
    "ExecutiveRecord",
    "OrderItemRecord",
    "OrderRecord",
    "ProductRecord",
    "normalize_rows",
    "parse_timestamp",
]
