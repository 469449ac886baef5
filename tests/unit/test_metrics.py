"""
Unit Tests - Derived Product Metrics
"""
from datetime import datetime, timedelta

import polars as pl

from inventory_analytics.config import AnalyticsSettings
from inventory_analytics.ingestion.records import (
    CATEGORY_SCHEMA,
    ORDER_ITEM_SCHEMA,
    PRODUCT_SCHEMA,
    CategoryRecord,
    ProductRecord,
    records_to_frame,
)
from inventory_analytics.transformation.aggregations import aggregate_items
from inventory_analytics.transformation.metrics import derive_product_metrics
from inventory_analytics.transformation.windows import AnalysisWindow


def product_frame(*rows):
    return records_to_frame([ProductRecord.from_row(row) for row in rows], PRODUCT_SCHEMA)


def empty_aggregates():
    return aggregate_items(pl.DataFrame(schema=ORDER_ITEM_SCHEMA), "product_id")


class TestDeriveProductMetrics:
    """Tests for derive_product_metrics"""

    def test_aging_scenario(self, window):
        """Unsold for 50 days, 5 units at 100: worth 500 and critical"""
        created = window.to_date - timedelta(days=50)
        products = product_frame({"id": "p", "stock": 5, "price": 100, "created_at": created})

        row = derive_product_metrics(products, empty_aggregates(), window).row(0, named=True)

        assert row["age_days"] == 50
        assert row["inventory_value"] == 500.0
        assert row["age_category"] == "45+ days"
        assert row["aging_status"] == "Critical"
        assert row["total_quantity"] == 0
        assert row["last_sale_date"] is None

    def test_days_of_inventory_sentinel(self, window, analytics_settings):
        """Zero velocity gives the sentinel"""
        products = product_frame({"id": "p", "stock": 5, "price": 1, "created_at": window.from_date})

        row = derive_product_metrics(products, empty_aggregates(), window).row(0, named=True)

        assert row["sales_velocity"] == 0.0
        assert row["days_of_inventory"] == analytics_settings.days_of_inventory_sentinel == 999

    def test_velocity_and_runway(self, window, items_df, products_df):
        """Fast seller: 10 units over 30 days with 4 in stock"""
        aggregates = aggregate_items(items_df.filter(window.filter_expr()), "product_id")

        metrics = derive_product_metrics(products_df, aggregates, window)
        p2 = metrics.filter(pl.col("id") == "p2").row(0, named=True)

        assert p2["total_quantity"] == 10
        assert p2["total_sales_value"] == 500.0
        assert abs(p2["sales_velocity"] - 10 / 30) < 1e-9
        # 4 / 0.333 = 12.0
        assert p2["days_of_inventory"] == 12
        assert p2["age_days"] == 6
        assert p2["stock_status"] == "Low"
        assert p2["inventory_value"] == 240.0

    def test_zero_width_window(self):
        """A single-instant window divides by one day"""
        ts = datetime(2024, 3, 1)
        window = AnalysisWindow(ts, ts)
        items = pl.DataFrame(
            {"id": ["i"], "order_id": ["o"], "product_id": ["p"], "quantity": [4], "unit_price": [1.0],
             "created_at": [ts], "order_status": ["delivered"]},
            schema=ORDER_ITEM_SCHEMA,
        )
        products = product_frame({"id": "p", "stock": 8, "price": 1, "created_at": ts})

        row = derive_product_metrics(products, aggregate_items(items, "product_id"), window).row(0, named=True)

        assert row["sales_velocity"] == 4.0
        assert row["days_of_inventory"] == 2

    def test_selling_price_zero_falls_back(self, window):
        """A zero selling price counts as missing"""
        products = product_frame(
            {"id": "a", "stock": 2, "price": 20, "selling_price": 0, "created_at": window.to_date},
            {"id": "b", "stock": 2, "price": 20, "selling_price": 30, "created_at": window.to_date},
            {"id": "c", "stock": 2, "created_at": window.to_date},
        )

        metrics = derive_product_metrics(products, empty_aggregates(), window)

        assert metrics["inventory_value"].to_list() == [40.0, 60.0, 0.0]

    def test_category_names(self, window):
        """Known categories resolve; unknown ones are Uncategorized"""
        products = product_frame(
            {"id": "a", "category_id": "c1", "created_at": window.to_date},
            {"id": "b", "category_id": "zz", "created_at": window.to_date},
            {"id": "c", "created_at": window.to_date},
        )
        categories = records_to_frame([CategoryRecord.from_row({"id": "c1", "name": "Hardware"})], CATEGORY_SCHEMA)

        metrics = derive_product_metrics(products, empty_aggregates(), window, categories=categories)

        assert metrics["category_name"].to_list() == ["Hardware", "Uncategorized", "Uncategorized"]

    def test_custom_settings(self, window):
        """The aging base period comes from settings"""
        settings = AnalyticsSettings(aging_base_period_days=10)
        created = window.to_date - timedelta(days=25)
        products = product_frame({"id": "p", "created_at": created})

        row = derive_product_metrics(products, empty_aggregates(), window, settings).row(0, named=True)

        assert row["age_category"] == "21-30 days"
        assert row["aging_status"] == "Concerning"
