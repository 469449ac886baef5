"""
Unit Tests - Analysis Windows
"""
from datetime import datetime, timedelta, timezone

import polars as pl
import pytest

from inventory_analytics.exceptions import MalformedInputError
from inventory_analytics.transformation.windows import (
    AnalysisWindow,
    days_between,
    days_between_expr,
    parse_date_param,
    parse_window,
    utc_now,
)


class TestDaysBetween:
    """Tests for whole-day truncation"""

    def test_truncates_partial_days(self):
        """36 hours is 1 day"""
        assert days_between(datetime(2024, 1, 2, 12), datetime(2024, 1, 1)) == 1

    def test_same_instant(self):
        """Zero difference"""
        ts = datetime(2024, 1, 1, 8)
        assert days_between(ts, ts) == 0

    def test_negative_truncates_toward_zero(self):
        """-36 hours is -1 day, not -2"""
        assert days_between(datetime(2024, 1, 1), datetime(2024, 1, 2, 12)) == -1

    def test_expression_matches_scalar(self):
        """Vectorised form agrees with the scalar form"""
        later = datetime(2024, 3, 31, 12)
        earlier = [datetime(2024, 1, 1), datetime(2024, 3, 25), datetime(2024, 3, 31, 11)]
        df = pl.DataFrame({"earlier": earlier}, schema={"earlier": pl.Datetime("us")})

        result = df.select(
            days_between_expr(pl.lit(later, dtype=pl.Datetime("us")), pl.col("earlier")).alias("days")
        )

        assert result["days"].to_list() == [days_between(later, e) for e in earlier]


class TestAnalysisWindow:
    """Tests for AnalysisWindow"""

    def test_reversed_bounds_are_swapped(self):
        """from > to is clamped by swapping"""
        window = AnalysisWindow(from_date=datetime(2024, 2, 1), to_date=datetime(2024, 1, 1))

        assert window.from_date == datetime(2024, 1, 1)
        assert window.to_date == datetime(2024, 2, 1)

    def test_zero_width_span_is_one(self):
        """Velocity divisor never drops below 1"""
        ts = datetime(2024, 1, 1)
        assert AnalysisWindow(ts, ts).span_days == 1

    def test_span_days(self, window):
        """March 1 to March 31 noon is 30 whole days"""
        assert window.span_days == 30

    def test_contains_is_inclusive(self, window):
        """Both ends are inside"""
        assert window.contains(window.from_date)
        assert window.contains(window.to_date)
        assert not window.contains(window.to_date + timedelta(seconds=1))
        assert not window.contains(None)

    def test_filter_expr(self, window):
        """Frame filter agrees with contains"""
        df = pl.DataFrame(
            {"created_at": [datetime(2024, 2, 29), datetime(2024, 3, 1), datetime(2024, 3, 31, 12)]},
            schema={"created_at": pl.Datetime("us")},
        )

        assert len(df.filter(window.filter_expr())) == 2

    def test_trailing(self, now):
        """Trailing window ends at now"""
        window = AnalysisWindow.trailing(7, now=now)

        assert window.to_date == now
        assert window.span_days == 7

    def test_trailing_defaults_to_naive_utc(self):
        """Without ``now`` the window ends at the current UTC time, tz-naive"""
        before = datetime.now(timezone.utc).replace(tzinfo=None)

        window = AnalysisWindow.trailing(7)

        assert window.to_date.tzinfo is None
        assert before <= window.to_date <= utc_now()


class TestParseWindow:
    """Tests for lenient window parsing"""

    def test_valid_params(self, now):
        """ISO strings are used as given"""
        window = parse_window("2024-03-01", "2024-03-15T00:00:00Z", now=now)

        assert window.from_date == datetime(2024, 3, 1)
        assert window.to_date == datetime(2024, 3, 15)

    def test_defaults(self, now):
        """No params means the last 30 days"""
        window = parse_window(None, None, now=now)

        assert window.to_date == now
        assert window.from_date == now - timedelta(days=30)

    def test_malformed_falls_back(self, now):
        """Garbage never raises"""
        window = parse_window("not-a-date", "also-bad", now=now)

        assert window.to_date == now
        assert window.from_date == now - timedelta(days=30)

    def test_reversed_params_swap(self, now):
        """from after to is swapped, not rejected"""
        window = parse_window("2024-03-20", "2024-03-10", now=now)

        assert window.from_date == datetime(2024, 3, 10)
        assert window.to_date == datetime(2024, 3, 20)

    def test_timezone_offsets_normalized(self, now):
        """Offsets are converted to naive UTC"""
        window = parse_window("2024-03-01T02:00:00+02:00", None, now=now)

        assert window.from_date == datetime(2024, 3, 1)

    def test_strict_parser_raises(self):
        """The strict parser reports the bad parameter"""
        with pytest.raises(MalformedInputError) as exc_info:
            parse_date_param("31/03/2024", "from")

        assert exc_info.value.parameter == "from"
        assert parse_date_param("", "from") is None
