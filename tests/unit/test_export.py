"""
Unit Tests - Report Export
"""
from datetime import datetime

import polars as pl

from inventory_analytics.analytics import ExportFormat, Tab, compute_analytics, export_view
from inventory_analytics.analytics.export import (
    VIEW_COLUMNS,
    export_filename,
    export_frame,
    export_report,
)
from inventory_analytics.transformation.windows import AnalysisWindow

EXPORT_TIME = datetime(2024, 4, 2, 9, 5)


class TestExportFilename:
    """Tests for generated export file names"""

    def test_with_window_and_status(self):
        window = AnalysisWindow(datetime(2024, 3, 1), datetime(2024, 3, 31, 12))

        name = export_filename("aging", ExportFormat.CSV, window, "delivered", now=EXPORT_TIME)

        assert name == "Aging_Stock_Export_20240402_0905_from_20240301_to_20240331_delivered.csv"

    def test_minimal(self):
        name = export_filename("performance", ExportFormat.XLSX, now=EXPORT_TIME)

        assert name == "Sales_Executive_Performance_Export_20240402_0905.xlsx"


class TestExportFrame:
    """Tests for column projection"""

    def test_currency_rounded(self):
        """Currency columns get 2 decimals; other columns keep their values"""
        rows = [{"date": "2024-03-10", "orders": 1, "quantity": 2, "revenue": 12.3456}]

        frame = export_frame(rows, VIEW_COLUMNS["trend"])

        assert frame.columns == ["Date", "Orders", "Quantity", "Revenue"]
        assert frame["Revenue"].to_list() == [12.35]
        assert frame["Quantity"].to_list() == [2]

    def test_empty_rows_keep_headers(self):
        frame = export_frame([], VIEW_COLUMNS["fast_moving"])

        assert frame.is_empty()
        assert frame.columns[0] == "Product"

    def test_top_products_flattened(self):
        rows = [{
            "rank": 1,
            "executive_name": "Asha",
            "manager_name": "Maya",
            "total_orders": 3,
            "total_amount": 600.0,
            "performance": "high",
            "top_products": [
                {"product_name": "Fast Seller", "total_quantity": 10},
                {"product_name": "Steady Seller", "total_quantity": 5},
            ],
        }]

        frame = export_frame(rows, VIEW_COLUMNS["performance"])

        assert frame["Top Products"].to_list() == ["Fast Seller (10); Steady Seller (5)"]


class TestExportReport:
    """Tests for writing files"""

    def test_csv_headers(self, dataset, window, tmp_path):
        """The aging table is written with its on-screen headers"""
        result = compute_analytics(dataset, window, tab=Tab.AGING)

        path = export_view(result, "aging", tmp_path / "out", ExportFormat.CSV, now=EXPORT_TIME)
        written = pl.read_csv(path)

        assert path.parent == tmp_path / "out"
        assert written.columns == [
            "Product", "Article", "Category", "Stock", "Age (days)", "Aging Category",
            "Inventory Value", "Units Sold", "Sales Velocity", "Days of Inventory",
        ]
        assert written["Product"].to_list() == ["Old Stock", "Steady Seller", "Fast Seller"]
        assert written["Days of Inventory"].to_list() == [999, 1500, 12]

    def test_xlsx_written(self, dataset, window, tmp_path):
        result = compute_analytics(dataset, window, tab=Tab.FAST_MOVING)

        path = export_view(result, "fast_moving", tmp_path, ExportFormat.XLSX, now=EXPORT_TIME)

        assert path.suffix == ".xlsx"
        assert path.stat().st_size > 0

    def test_export_report_creates_directory(self, tmp_path):
        target = tmp_path / "nested" / "trend.csv"

        path = export_report([], VIEW_COLUMNS["trend"], target)

        assert path.exists()
        assert path.read_text().strip() == "Date,Orders,Quantity,Revenue"
