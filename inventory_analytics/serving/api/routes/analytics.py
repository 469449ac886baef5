"""
Analytics API Endpoints

REST API for the aging stock, fast-moving products, sales executive
performance and order trend views.
"""

from datetime import date, datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse
from pydantic import BaseModel
import structlog

from inventory_analytics.analytics.export import ExportFormat, VIEW_COLUMNS
from inventory_analytics.analytics.filters import Tab
from inventory_analytics.config import get_settings
from inventory_analytics.service import AnalyticsService
from inventory_analytics.serving.api.dependencies import AnalyticsQuery, get_analytics_service

router = APIRouter()
logger = structlog.get_logger(__name__)

MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


class WindowInfo(BaseModel):
    from_date: datetime
    to_date: datetime
    span_days: int


class FilterInfo(BaseModel):
    status: Optional[str] = None
    product: Optional[str] = None
    window_applied: bool = False


class ProductMetrics(BaseModel):
    """One product row of the aging / fast-moving tables"""
    id: str
    name: str
    article_id: Optional[str] = None
    category_id: Optional[str] = None
    category_name: str
    stock: int
    price: Optional[float] = None
    selling_price: Optional[float] = None
    last_sale_date: Optional[datetime] = None
    age_days: int
    age_category: str
    aging_status: str
    inventory_value: float
    total_quantity: int
    total_sales_value: float
    order_count: int
    sales_velocity: float
    days_of_inventory: int
    stock_status: str


class AgingBucketInfo(BaseModel):
    label: str
    severity: str
    count: int
    value: float


class AgingInsights(BaseModel):
    critical_products: List[ProductMetrics]
    high_value_products: List[ProductMetrics]


class SortInfo(BaseModel):
    column: str
    direction: str


class AgingReportResponse(BaseModel):
    products: List[ProductMetrics]
    aging_products: List[ProductMetrics]
    aging_categories: List[AgingBucketInfo]
    total_aging_value: float
    oldest_product: Optional[ProductMetrics] = None
    average_age: int
    critical_count: int
    insights: AgingInsights
    sort: SortInfo


class FastMovingInsights(BaseModel):
    restock_products: List[ProductMetrics]
    trending_products: List[ProductMetrics]


class FastMovingReportResponse(BaseModel):
    products: List[ProductMetrics]
    total_quantity_sold: int
    total_orders: int
    restock_count: int
    insights: FastMovingInsights


class TopProduct(BaseModel):
    product_id: str
    product_name: str
    total_quantity: int
    total_amount: float


class ExecutivePerformance(BaseModel):
    """One sales executive with their tier"""
    executive_id: str
    executive_name: str
    manager_name: str
    total_orders: int
    total_amount: float
    rank: int
    performance: str
    top_products: List[TopProduct]


class ChartPoint(BaseModel):
    executive_id: str
    executive_name: str
    total_orders: int
    total_amount: float


class PerformanceReportResponse(BaseModel):
    executives: List[ExecutivePerformance]
    tier_summary: Dict[str, List[ExecutivePerformance]]
    tier_counts: Dict[str, int]
    chart: List[ChartPoint]


class TrendPoint(BaseModel):
    date: date
    orders: int
    quantity: int
    revenue: float


class TrendReportResponse(BaseModel):
    days: List[TrendPoint]
    total_orders: int
    total_quantity: int
    total_revenue: float


class AnalyticsResponse(BaseModel):
    """Result of one analysis pass; only the requested views are set"""
    tab: str
    window: WindowInfo
    filters: FilterInfo
    is_empty: bool
    message: Optional[str] = None
    dropped_items: int = 0
    aging: Optional[AgingReportResponse] = None
    fast_moving: Optional[FastMovingReportResponse] = None
    performance: Optional[PerformanceReportResponse] = None
    trend: Optional[TrendReportResponse] = None


async def _run(service: AnalyticsService, query: AnalyticsQuery, tab: str) -> AnalyticsResponse:
    request = service.request(**query.params(tab=tab))
    result = await service.run(request)
    return AnalyticsResponse(**result.to_dict())


@router.get("/aging", response_model=AnalyticsResponse)
async def get_aging_stock(
    query: AnalyticsQuery = Depends(),
    service: AnalyticsService = Depends(get_analytics_service),
) -> AnalyticsResponse:
    """
    Aging stock: in-stock products by days since last sale, with bucket
    totals and insights. Sortable by sales_quantity, age_days or
    inventory_value.
    """
    return await _run(service, query, Tab.AGING.value)


@router.get("/fast-moving", response_model=AnalyticsResponse)
async def get_fast_moving_products(
    query: AnalyticsQuery = Depends(),
    service: AnalyticsService = Depends(get_analytics_service),
) -> AnalyticsResponse:
    """Top products by units sold in the window"""
    return await _run(service, query, Tab.FAST_MOVING.value)


@router.get("/performance", response_model=AnalyticsResponse)
async def get_executive_performance(
    query: AnalyticsQuery = Depends(),
    service: AnalyticsService = Depends(get_analytics_service),
) -> AnalyticsResponse:
    """
    Sales executive performance tiers. Without ``from``/``to`` all orders
    count; ``status`` and ``product`` narrow the set before tiering.
    """
    return await _run(service, query, Tab.PERFORMANCE.value)


@router.get("/trend", response_model=AnalyticsResponse)
async def get_order_trend(
    query: AnalyticsQuery = Depends(),
    service: AnalyticsService = Depends(get_analytics_service),
) -> AnalyticsResponse:
    """Daily orders, units and revenue in the window"""
    return await _run(service, query, Tab.TREND.value)


@router.get("/overview", response_model=AnalyticsResponse)
async def get_overview(
    tab: Optional[str] = Query("all", description="aging, fast_moving, performance, trend or all"),
    query: AnalyticsQuery = Depends(),
    service: AnalyticsService = Depends(get_analytics_service),
) -> AnalyticsResponse:
    """Any view, or all of them, in one pass"""
    return await _run(service, query, tab)


@router.get("/export/{view}")
async def export_view(
    view: str,
    format: Optional[str] = Query(None, description="csv or xlsx"),
    query: AnalyticsQuery = Depends(),
    service: AnalyticsService = Depends(get_analytics_service),
) -> FileResponse:
    """Download a view's table as CSV or XLSX"""
    settings = get_settings()
    view_key = view.replace("-", "_")
    if view_key not in VIEW_COLUMNS:
        raise HTTPException(status_code=404, detail=f"Unknown view '{view}'")

    try:
        fmt = ExportFormat((format or settings.export.default_format).lower())
    except ValueError:
        logger.warning("Unknown export format, using default", format=format)
        fmt = ExportFormat(settings.export.default_format)

    request = service.request(**query.params(tab=view_key))
    path = await service.export(request, view_key, settings.export.output_dir, fmt)

    return FileResponse(path, filename=path.name, media_type=MEDIA_TYPES[fmt])
