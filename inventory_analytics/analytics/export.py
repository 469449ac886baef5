"""
Report Export

Writes the on-screen column set of a view to CSV or XLSX. Metrics keep full
precision everywhere else; currency is rounded to 2 decimals only here.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import polars as pl
import structlog

from inventory_analytics.transformation.windows import AnalysisWindow
from .engine import AnalyticsResult

logger = structlog.get_logger(__name__)


class ExportFormat(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"


@dataclass(frozen=True)
class ExportColumn:
    header: str
    key: Union[str, Callable[[Dict[str, Any]], Any]]
    dtype: pl.DataType
    currency: bool = False

    def value(self, row: Dict[str, Any]) -> Any:
        if callable(self.key):
            return self.key(row)
        return row.get(self.key)


def _top_products_text(row: Dict[str, Any]) -> str:
    return "; ".join(
        f"{product['product_name']} ({product['total_quantity']})"
        for product in row.get("top_products") or []
    )


VIEW_COLUMNS: Dict[str, List[ExportColumn]] = {
    "aging": [
        ExportColumn("Product", "name", pl.Utf8),
        ExportColumn("Article", "article_id", pl.Utf8),
        ExportColumn("Category", "category_name", pl.Utf8),
        ExportColumn("Stock", "stock", pl.Int64),
        ExportColumn("Age (days)", "age_days", pl.Int64),
        ExportColumn("Aging Category", "age_category", pl.Utf8),
        ExportColumn("Inventory Value", "inventory_value", pl.Float64, currency=True),
        ExportColumn("Units Sold", "total_quantity", pl.Int64),
        ExportColumn("Sales Velocity", "sales_velocity", pl.Float64, currency=True),
        ExportColumn("Days of Inventory", "days_of_inventory", pl.Int64),
    ],
    "fast_moving": [
        ExportColumn("Product", "name", pl.Utf8),
        ExportColumn("Article", "article_id", pl.Utf8),
        ExportColumn("Category", "category_name", pl.Utf8),
        ExportColumn("Stock", "stock", pl.Int64),
        ExportColumn("Units Sold", "total_quantity", pl.Int64),
        ExportColumn("Orders", "order_count", pl.Int64),
        ExportColumn("Sales Value", "total_sales_value", pl.Float64, currency=True),
        ExportColumn("Stock Status", "stock_status", pl.Utf8),
    ],
    "performance": [
        ExportColumn("Rank", "rank", pl.Int64),
        ExportColumn("Executive", "executive_name", pl.Utf8),
        ExportColumn("Manager", "manager_name", pl.Utf8),
        ExportColumn("Total Orders", "total_orders", pl.Int64),
        ExportColumn("Total Amount", "total_amount", pl.Float64, currency=True),
        ExportColumn("Performance", "performance", pl.Utf8),
        ExportColumn("Top Products", _top_products_text, pl.Utf8),
    ],
    "trend": [
        ExportColumn("Date", "date", pl.Utf8),
        ExportColumn("Orders", "orders", pl.Int64),
        ExportColumn("Quantity", "quantity", pl.Int64),
        ExportColumn("Revenue", "revenue", pl.Float64, currency=True),
    ],
}

VIEW_TITLES = {
    "aging": "Aging_Stock",
    "fast_moving": "Fast_Moving_Products",
    "performance": "Sales_Executive_Performance",
    "trend": "Order_Trend",
}


def view_rows(result: AnalyticsResult, view: str) -> List[Dict[str, Any]]:
    """The table rows a view shows on screen"""
    if view == "aging" and result.aging is not None:
        return result.aging.products
    if view == "fast_moving" and result.fast_moving is not None:
        return result.fast_moving.products
    if view == "performance" and result.performance is not None:
        return result.performance.executives
    if view == "trend" and result.trend is not None:
        return result.trend.days
    raise KeyError(f"View '{view}' not present in result")


def export_frame(rows: Sequence[Dict[str, Any]], columns: Sequence[ExportColumn]) -> pl.DataFrame:
    """Project rows onto the export columns, rounding currency to 2 dp"""
    frame = pl.DataFrame(
        {column.header: [column.value(row) for row in rows] for column in columns},
        schema={column.header: column.dtype for column in columns},
    )
    currency = [column.header for column in columns if column.currency]
    if currency:
        frame = frame.with_columns([pl.col(header).round(2) for header in currency])
    return frame


def export_filename(
    view: str,
    fmt: ExportFormat,
    window: Optional[AnalysisWindow] = None,
    status: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    ``<View>_Export_<yyyyMMdd_HHmm>[_from_<yyyyMMdd>][_to_<yyyyMMdd>][_<status>].<ext>``
    """
    now = now or datetime.now()
    name = f"{VIEW_TITLES.get(view, view)}_Export_{now.strftime('%Y%m%d_%H%M')}"
    if window is not None:
        name += f"_from_{window.from_date.strftime('%Y%m%d')}"
        name += f"_to_{window.to_date.strftime('%Y%m%d')}"
    if status:
        name += f"_{status}"
    return f"{name}.{ExportFormat(fmt).value}"


def export_report(
    rows: Sequence[Dict[str, Any]],
    columns: Sequence[ExportColumn],
    path: Union[str, Path],
    fmt: ExportFormat = ExportFormat.CSV,
    sheet_name: str = "Report",
) -> Path:
    """
    Write rows to ``path`` as CSV or XLSX.

    Returns:
        The written path
    """
    fmt = ExportFormat(fmt)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    frame = export_frame(rows, columns)
    if fmt == ExportFormat.CSV:
        frame.write_csv(path)
    else:
        frame.write_excel(workbook=path, worksheet=sheet_name)

    logger.info("Report exported", path=str(path), format=fmt.value, rows=len(frame))
    return path


def export_view(
    result: AnalyticsResult,
    view: str,
    output_dir: Union[str, Path],
    fmt: ExportFormat = ExportFormat.CSV,
    now: Optional[datetime] = None,
) -> Path:
    """Export one view of ``result`` into ``output_dir`` with a generated filename"""
    if view not in VIEW_COLUMNS:
        raise KeyError(f"Unknown export view '{view}'")

    filename = export_filename(view, fmt, result.window, result.filters.status, now=now)
    return export_report(
        view_rows(result, view),
        VIEW_COLUMNS[view],
        Path(output_dir) / filename,
        fmt=fmt,
        sheet_name=VIEW_TITLES[view].replace("_", " ")[:31],
    )
