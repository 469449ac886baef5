"""
Analytics Service

One request, one pass: sequential fetches from the data source, then the
synchronous computation. Nothing is cached between calls.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
import time
from typing import Optional, Union

import structlog

from inventory_analytics.analytics.engine import AnalyticsResult, compute_analytics
from inventory_analytics.analytics.export import ExportFormat, export_view
from inventory_analytics.analytics.filters import AnalyticsFilters, Tab
from inventory_analytics.config import AnalyticsSettings
from inventory_analytics.ingestion.fetch import DatasetVariant, fetch_dataset
from inventory_analytics.ingestion.sources import DataSource
from inventory_analytics.transformation.windows import AnalysisWindow, parse_window

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AnalyticsRequest:
    """Everything a user can choose for one analysis pass"""
    window: AnalysisWindow
    tab: Tab = Tab.ALL
    filters: AnalyticsFilters = field(default_factory=AnalyticsFilters)

    @classmethod
    def from_params(
        cls,
        from_param: Optional[str] = None,
        to_param: Optional[str] = None,
        tab: Optional[str] = None,
        status: Optional[str] = None,
        product: Optional[str] = None,
        sort: Optional[str] = None,
        direction: Optional[str] = None,
        top_n: Optional[int] = None,
        now: Optional[datetime] = None,
        default_days: int = 30,
    ) -> "AnalyticsRequest":
        """
        Build a request from raw user input. Malformed values are replaced by
        defaults, so this never fails.
        """
        window = parse_window(from_param, to_param, now=now, default_days=default_days)
        filters = AnalyticsFilters.parse(
            status=status,
            product=product,
            sort=sort,
            direction=direction,
            top_n=top_n,
            window_applied=bool(from_param or to_param),
        )
        return cls(window=window, tab=Tab.parse(tab), filters=filters)


class AnalyticsService:
    """
    Runs analysis passes against a data source.

    Example:
        service = AnalyticsService(InMemoryDataSource(...))
        result = await service.run(AnalyticsRequest.from_params(tab="aging"))
    """

    def __init__(self, source: DataSource, settings: Optional[AnalyticsSettings] = None):
        self.source = source
        self.settings = settings or AnalyticsSettings()

    def request(self, **params) -> AnalyticsRequest:
        """``AnalyticsRequest.from_params`` using the configured default window"""
        params.setdefault("default_days", self.settings.default_window_days)
        return AnalyticsRequest.from_params(**params)

    async def run(self, request: AnalyticsRequest) -> AnalyticsResult:
        """
        Fetch and compute one pass.

        Raises:
            FetchError: If any fetch fails; no partial result is produced
        """
        start_time = time.time()
        dataset = await fetch_dataset(
            self.source,
            request.window,
            DatasetVariant(request.tab.value),
            sale_statuses=self.settings.sale_statuses,
        )
        result = compute_analytics(
            dataset,
            window=request.window,
            filters=request.filters,
            settings=self.settings,
            tab=request.tab,
        )
        logger.info(
            "Analysis pass completed",
            tab=request.tab.value,
            source=self.source.name,
            is_empty=result.is_empty,
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        return result

    async def export(
        self,
        request: AnalyticsRequest,
        view: str,
        output_dir: Union[str, Path],
        fmt: ExportFormat = ExportFormat.CSV,
    ) -> Path:
        """Run the pass for ``view`` and write its table to ``output_dir``"""
        view_request = AnalyticsRequest(window=request.window, tab=Tab.parse(view), filters=request.filters)
        result = await self.run(view_request)
        return export_view(result, view, output_dir, fmt)
