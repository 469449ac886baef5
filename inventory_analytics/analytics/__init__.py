"""
Analytics Reports Module

Aging, fast-moving, performance and trend views, and their export.
"""
from .engine import AnalyticsResult, compute_analytics
from .export import ExportFormat, export_report, export_view
from .filters import AnalyticsFilters, SortState, Tab

__all__ = [
    "AnalyticsResult",
    "compute_analytics",
    "ExportFormat",
    "export_report",
    "export_view",
    "AnalyticsFilters",
    "SortState",
    "Tab",
]
