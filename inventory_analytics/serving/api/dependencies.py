"""
API Dependencies

The data source and service are injected per request so tests (and
offline deployments) can swap the database for another source with
``app.dependency_overrides[get_data_source]``.
"""

from typing import Optional

from fastapi import Depends, Query
import structlog

from inventory_analytics.config import get_settings
from inventory_analytics.database.connection import get_session_factory
from inventory_analytics.exceptions import FetchError
from inventory_analytics.ingestion.sources import DataSource, SQLAlchemyDataSource
from inventory_analytics.service import AnalyticsService

logger = structlog.get_logger(__name__)


def get_data_source() -> DataSource:
    """Database backed data source"""
    settings = get_settings()
    try:
        factory = get_session_factory()
    except RuntimeError as e:
        raise FetchError(str(e), source="database") from e
    return SQLAlchemyDataSource(factory, page_size=settings.analytics.fetch_page_size)


def get_analytics_service(source: DataSource = Depends(get_data_source)) -> AnalyticsService:
    return AnalyticsService(source, get_settings().analytics)


class AnalyticsQuery:
    """Common query parameters of the analytics endpoints"""

    def __init__(
        self,
        from_: Optional[str] = Query(None, alias="from", description="Window start (ISO-8601)"),
        to: Optional[str] = Query(None, description="Window end (ISO-8601)"),
        status: Optional[str] = Query(None, description="Order status filter, or 'all'"),
        product: Optional[str] = Query(None, description="Product id filter, or 'all'"),
        sort: Optional[str] = Query(None, description="sales_quantity, age_days or inventory_value"),
        direction: Optional[str] = Query(None, description="asc or desc"),
        top_n: Optional[str] = Query(None, description="Number of fast movers to return"),
    ):
        self.from_ = from_
        self.to = to
        self.status = status
        self.product = product
        self.sort = sort
        self.direction = direction
        self.top_n = top_n

    def parsed_top_n(self) -> Optional[int]:
        if self.top_n is None or not self.top_n.strip():
            return None
        try:
            return int(self.top_n)
        except ValueError:
            logger.warning("Ignoring malformed top_n", top_n=self.top_n)
            return None

    def params(self, tab: Optional[str] = None) -> dict:
        return {
            "from_param": self.from_,
            "to_param": self.to,
            "tab": tab,
            "status": self.status,
            "product": self.product,
            "sort": self.sort,
            "direction": self.direction,
            "top_n": self.parsed_top_n(),
        }
