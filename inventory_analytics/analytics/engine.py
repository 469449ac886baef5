"""
Analytics Engine

``compute_analytics`` is the single entry point from a fetched dataset to
the derived views. It is a pure function: no caching, no hidden state, and
the same dataset, window, filters and settings always give the same result.
"""

from dataclasses import dataclass
import time
from typing import Any, Dict, Optional

import structlog

from inventory_analytics.config import AnalyticsSettings
from inventory_analytics.ingestion.fetch import JoinedDataset
from inventory_analytics.transformation.windows import AnalysisWindow
from .aging import AgingReport, build_aging_report
from .fast_moving import FastMovingReport, build_fast_moving_report
from .filters import AnalyticsFilters, Tab
from .performance import PerformanceReport, build_performance_report
from .trend import TrendReport, build_trend_report

logger = structlog.get_logger(__name__)

EMPTY_MESSAGE = "No data for this period"


@dataclass
class AnalyticsResult:
    """Derived views for one analysis pass; only the requested tab(s) are set"""
    window: AnalysisWindow
    tab: Tab
    filters: AnalyticsFilters
    aging: Optional[AgingReport] = None
    fast_moving: Optional[FastMovingReport] = None
    performance: Optional[PerformanceReport] = None
    trend: Optional[TrendReport] = None
    dropped_items: int = 0

    @property
    def reports(self) -> Dict[str, Any]:
        return {
            name: report
            for name, report in (
                ("aging", self.aging),
                ("fast_moving", self.fast_moving),
                ("performance", self.performance),
                ("trend", self.trend),
            )
            if report is not None
        }

    @property
    def is_empty(self) -> bool:
        return all(report.is_empty for report in self.reports.values())

    @property
    def message(self) -> Optional[str]:
        return EMPTY_MESSAGE if self.is_empty else None

    def to_dict(self) -> dict:
        payload = {
            "tab": self.tab.value,
            "window": self.window.to_dict(),
            "filters": {
                "status": self.filters.status,
                "product": self.filters.product_id,
                "window_applied": self.filters.window_applied,
            },
            "is_empty": self.is_empty,
            "message": self.message,
            "dropped_items": self.dropped_items,
        }
        for name, report in self.reports.items():
            payload[name] = report.to_dict()
        return payload


def compute_analytics(
    dataset: JoinedDataset,
    window: Optional[AnalysisWindow] = None,
    filters: Optional[AnalyticsFilters] = None,
    settings: Optional[AnalyticsSettings] = None,
    tab: Tab = Tab.ALL,
) -> AnalyticsResult:
    """
    Compute the requested view(s) from a joined dataset.

    Args:
        dataset: Output of ``fetch_dataset``
        window: Analysis window (defaults to the dataset's window)
        filters: Status / product / sort / top-N filters
        settings: Thresholds and sizes
        tab: aging, fast_moving, performance, trend or all

    Returns:
        AnalyticsResult with one report per requested view
    """
    start_time = time.time()
    window = window or dataset.window
    filters = filters or AnalyticsFilters()
    settings = settings or AnalyticsSettings()
    tab = Tab(tab)

    wants = {tab} if tab != Tab.ALL else set(Tab) - {Tab.ALL}

    products = dataset.products_frame
    items = dataset.items_frame
    orders = dataset.orders_frame
    categories = dataset.categories_frame

    result = AnalyticsResult(
        window=window,
        tab=tab,
        filters=filters,
        dropped_items=dataset.dropped_items,
    )

    if Tab.AGING in wants:
        result.aging = build_aging_report(
            products, items, window, settings, categories=categories, sort=filters.sort
        )
    if Tab.FAST_MOVING in wants:
        result.fast_moving = build_fast_moving_report(
            products, items, orders, window, settings, categories=categories, top_n=filters.top_n
        )
    if Tab.PERFORMANCE in wants:
        result.performance = build_performance_report(
            dataset.executives_frame, orders, items, products, window, filters, settings
        )
    if Tab.TREND in wants:
        result.trend = build_trend_report(orders, items, window, filters)

    logger.info(
        "Analytics computed",
        tab=tab.value,
        is_empty=result.is_empty,
        dropped_items=dataset.dropped_items,
        duration_ms=round((time.time() - start_time) * 1000, 2),
    )
    return result
