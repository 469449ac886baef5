"""
Unit Tests - Group-and-Sum Aggregation
"""
from datetime import datetime

import polars as pl
import pytest

from inventory_analytics.ingestion.records import ORDER_ITEM_SCHEMA
from inventory_analytics.transformation.aggregations import (
    aggregate_items,
    aggregate_items_by_pair,
    aggregate_orders,
    resolve_items,
)


def make_items(rows):
    columns = {name: [row.get(name) for row in rows] for name in ORDER_ITEM_SCHEMA}
    return pl.DataFrame(columns, schema=ORDER_ITEM_SCHEMA)


class TestAggregateItems:
    """Tests for aggregate_items"""

    def test_fast_mover_scenario(self):
        """3 + 7 units at 50 is 10 units worth 500"""
        items = make_items([
            {"id": "1", "product_id": "P", "quantity": 3, "unit_price": 50.0, "created_at": datetime(2024, 3, 1)},
            {"id": "2", "product_id": "P", "quantity": 7, "unit_price": 50.0, "created_at": datetime(2024, 3, 5)},
        ])

        result = aggregate_items(items, "product_id").row(0, named=True)

        assert result["total_quantity"] == 10
        assert result["total_sales_value"] == 500.0
        assert result["order_count"] == 2
        assert result["last_activity_date"] == datetime(2024, 3, 5)

    def test_order_independent(self, items_df):
        """Shuffled input gives the same aggregate"""
        forward = aggregate_items(items_df, "product_id")
        backward = aggregate_items(items_df.reverse(), "product_id")
        shuffled = aggregate_items(items_df.sample(fraction=1.0, shuffle=True, seed=7), "product_id")

        assert forward.equals(backward)
        assert forward.equals(shuffled)

    def test_null_quantity_counts_as_zero(self):
        """A normalized null quantity adds 0 units but still counts the line"""
        items = make_items([
            {"id": "1", "product_id": "P", "quantity": 0, "unit_price": 0.0, "created_at": datetime(2024, 3, 1)},
            {"id": "2", "product_id": "P", "quantity": 2, "unit_price": 5.0, "created_at": datetime(2024, 3, 2)},
        ])

        result = aggregate_items(items, "product_id").row(0, named=True)

        assert result["total_quantity"] == 2
        assert result["total_sales_value"] == 10.0
        assert result["order_count"] == 2

    def test_null_key_excluded(self, items_df):
        """Items without a product never form a group"""
        result = aggregate_items(items_df, "product_id")

        assert None not in result["product_id"].to_list()

    def test_unknown_key_raises(self, items_df):
        """Grouping by a missing column is a programming error"""
        with pytest.raises(KeyError):
            aggregate_items(items_df, "executive_id")


class TestResolveItems:
    """Tests for resolve_items"""

    def test_drops_unresolved(self, items_df, products_df):
        """Null and unknown product ids are dropped"""
        resolved = resolve_items(items_df, products_df)

        assert sorted(resolved["id"].to_list()) == ["i1", "i2", "i3", "i4", "i5"]


class TestAggregateOrders:
    """Tests for per-executive order totals"""

    def test_population_fills_zeros(self):
        """Executives without orders appear with zero totals"""
        orders = pl.DataFrame({
            "id": ["o1", "o2", "o3"],
            "executive_id": ["e1", "e1", "x"],
            "total_amount": [10.0, 5.0, 99.0],
        })
        population = pl.DataFrame({"id": ["e1", "e2"]})

        result = aggregate_orders(orders, population=population)

        assert result["executive_id"].to_list() == ["e1", "e2"]
        assert result["total_orders"].to_list() == [2, 0]
        assert result["total_amount"].to_list() == [15.0, 0.0]

    def test_pair_aggregation(self):
        """Per executive and product"""
        items = pl.DataFrame({
            "executive_id": ["e1", "e1", "e2"],
            "product_id": ["p1", "p1", "p1"],
            "quantity": [1, 2, 5],
            "unit_price": [10.0, 10.0, 1.0],
        })

        result = aggregate_items_by_pair(items, "executive_id", "product_id")

        assert result.rows() == [("e1", "p1", 3, 30.0), ("e2", "p1", 5, 5.0)]
