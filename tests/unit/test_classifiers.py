"""
Unit Tests - Classification and Tiering
"""
import polars as pl
import pytest

from inventory_analytics.transformation.classifiers import (
    AgingSeverity,
    PerformanceTier,
    StockStatus,
    aging_bucket,
    aging_bucket_exprs,
    aging_labels,
    assign_performance_tiers,
    stock_status,
    stock_status_expr,
    tier_cutoffs,
)


class TestAgingBucket:
    """Tests for the fixed-threshold aging buckets"""

    @pytest.mark.parametrize("age,label,severity", [
        (0, "0-15 days", AgingSeverity.RECENT),
        (15, "0-15 days", AgingSeverity.RECENT),
        (16, "16-30 days", AgingSeverity.MODERATE),
        (30, "16-30 days", AgingSeverity.MODERATE),
        (31, "31-45 days", AgingSeverity.CONCERNING),
        (45, "31-45 days", AgingSeverity.CONCERNING),
        (46, "45+ days", AgingSeverity.CRITICAL),
        (400, "45+ days", AgingSeverity.CRITICAL),
    ])
    def test_boundaries(self, age, label, severity):
        """Each cut is inclusive on the lower bucket"""
        assert aging_bucket(age) == (label, severity)

    def test_expression_matches_scalar(self):
        """Frame classification agrees with the scalar rule"""
        ages = [0, 15, 16, 30, 31, 45, 46, 90]
        df = pl.DataFrame({"age_days": ages}).with_columns(aging_bucket_exprs())

        expected = [aging_bucket(age) for age in ages]
        assert df["age_category"].to_list() == [label for label, _ in expected]
        assert df["aging_status"].to_list() == [severity.value for _, severity in expected]

    def test_custom_base_period(self):
        """Cuts scale with the base period"""
        assert aging_labels(10) == ["0-10 days", "11-20 days", "21-30 days", "30+ days"]
        assert aging_bucket(21, base_period=10)[1] == AgingSeverity.CONCERNING


class TestStockStatus:
    """Tests for stock cover classification"""

    @pytest.mark.parametrize("stock,sold,expected", [
        (2, 10, StockStatus.CRITICAL),
        (2.5, 10, StockStatus.LOW),
        (4, 10, StockStatus.LOW),
        (5, 10, StockStatus.ADEQUATE),
        (0, 0, StockStatus.ADEQUATE),
    ])
    def test_thresholds(self, stock, sold, expected):
        """Critical under 25% of units sold, Low under 50%"""
        assert stock_status(stock, sold) == expected

    def test_expression_matches_scalar(self):
        """Frame classification agrees with the scalar rule"""
        df = pl.DataFrame({"stock": [2, 4, 5, 0], "total_quantity": [10, 10, 10, 0]})

        result = df.select(stock_status_expr())

        assert result["stock_status"].to_list() == ["Critical", "Low", "Adequate", "Adequate"]


class TestPerformanceTiers:
    """Tests for percentile-rank tiering"""

    def test_cutoffs_for_ten(self):
        """Top 20% high, next 30% medium"""
        assert tier_cutoffs(10) == (2, 5)
        assert tier_cutoffs(15) == (3, 8)
        assert tier_cutoffs(1) == (1, 1)

    def test_ten_entities(self):
        """10 entities give 2 high, 3 medium and 5 low"""
        frame = pl.DataFrame({
            "executive_id": [f"e{i:02d}" for i in range(10)],
            "total_orders": [10, 9, 8, 7, 6, 5, 4, 3, 2, 1],
        })

        result = assign_performance_tiers(frame)
        counts = dict(result.group_by("performance").len().rows())

        assert counts == {"high": 2, "medium": 3, "low": 5}
        assert result["rank"].to_list() == list(range(1, 11))
        assert result.head(2)["executive_id"].to_list() == ["e00", "e01"]

    def test_ties_broken_by_id(self):
        """Equal scores rank by id so input order never matters"""
        frame = pl.DataFrame({"executive_id": ["b", "a", "c"], "total_orders": [5, 5, 5]})

        forward = assign_performance_tiers(frame)
        reverse = assign_performance_tiers(frame.reverse())

        assert forward["executive_id"].to_list() == ["a", "b", "c"]
        assert forward.equals(reverse)
        assert forward["performance"].to_list() == ["high", "medium", "low"]

    def test_zero_orders_are_low(self):
        """An executive with no orders is never promoted"""
        frame = pl.DataFrame({"executive_id": ["a", "b"], "total_orders": [0, 0]})

        result = assign_performance_tiers(frame)

        assert result["performance"].to_list() == [PerformanceTier.LOW.value] * 2

    def test_empty_frame(self):
        """No entities, no tiers"""
        frame = pl.DataFrame(schema={"executive_id": pl.Utf8, "total_orders": pl.Int64})

        result = assign_performance_tiers(frame)

        assert result.is_empty()
        assert "performance" in result.columns
        assert "rank" in result.columns
