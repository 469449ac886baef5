"""
Analysis Windows

The inclusive ``[from_date, to_date]`` range bounding one analysis pass,
and the canonical whole-day difference used by every report.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import polars as pl
import structlog

from inventory_analytics.exceptions import MalformedInputError
from inventory_analytics.ingestion.records import parse_timestamp

logger = structlog.get_logger(__name__)

ONE_DAY = timedelta(days=1)
DEFAULT_WINDOW_DAYS = 30


def utc_now() -> datetime:
    """Current time as a naive UTC datetime"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def days_between(later: datetime, earlier: datetime) -> int:
    """
    Whole days from ``earlier`` to ``later``, truncated toward zero.

    ``days_between_expr`` is the vectorised form and must agree with this.
    """
    return int((later - earlier) / ONE_DAY)


def days_between_expr(later: pl.Expr, earlier: pl.Expr) -> pl.Expr:
    """Polars counterpart of ``days_between`` (integer days, truncated)"""
    return (later - earlier).dt.total_days()


@dataclass(frozen=True)
class AnalysisWindow:
    """Inclusive time window; a reversed pair is swapped on construction"""
    from_date: datetime
    to_date: datetime

    def __post_init__(self):
        if self.from_date > self.to_date:
            logger.info(
                "Window bounds reversed, swapping",
                from_date=self.from_date.isoformat(),
                to_date=self.to_date.isoformat(),
            )
            start, end = self.to_date, self.from_date
            object.__setattr__(self, "from_date", start)
            object.__setattr__(self, "to_date", end)

    @classmethod
    def trailing(cls, days: int = DEFAULT_WINDOW_DAYS, now: Optional[datetime] = None) -> "AnalysisWindow":
        """Window of ``days`` ending at ``now``"""
        end = now or utc_now()
        return cls(from_date=end - timedelta(days=days), to_date=end)

    @property
    def span_days(self) -> int:
        """Divisor for per-day rates; never below 1"""
        return max(1, days_between(self.to_date, self.from_date))

    def contains(self, ts: Optional[datetime]) -> bool:
        if ts is None:
            return False
        return self.from_date <= ts <= self.to_date

    def filter_expr(self, column: str = "created_at") -> pl.Expr:
        """Inclusive membership test for a datetime column"""
        return pl.col(column).is_between(self.from_date, self.to_date, closed="both")

    def to_dict(self) -> dict:
        return {
            "from_date": self.from_date.isoformat(),
            "to_date": self.to_date.isoformat(),
            "span_days": self.span_days,
        }


def parse_date_param(value: Optional[str], parameter: str) -> Optional[datetime]:
    """
    Strictly parse one ISO-8601 date parameter.

    Returns None when the parameter is absent.

    Raises:
        MalformedInputError: If the value is present but not a valid timestamp
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    parsed = parse_timestamp(value)
    if parsed is None:
        raise MalformedInputError(
            f"Invalid '{parameter}' date parameter: {value!r}",
            parameter=parameter,
            value=str(value),
        )
    return parsed


def parse_window(
    from_param: Optional[str] = None,
    to_param: Optional[str] = None,
    now: Optional[datetime] = None,
    default_days: int = DEFAULT_WINDOW_DAYS,
) -> AnalysisWindow:
    """
    Build a window from user supplied ISO strings.

    A missing or malformed ``to`` falls back to ``now``; a missing or
    malformed ``from`` falls back to ``default_days`` before ``to``. This
    never raises.
    """
    to_date = now or utc_now()
    try:
        parsed_to = parse_date_param(to_param, "to")
        if parsed_to is not None:
            to_date = parsed_to
    except MalformedInputError as e:
        logger.warning("Falling back to default window end", parameter=e.parameter, value=e.value)

    from_date = to_date - timedelta(days=default_days)
    try:
        parsed_from = parse_date_param(from_param, "from")
        if parsed_from is not None:
            from_date = parsed_from
    except MalformedInputError as e:
        logger.warning("Falling back to default window start", parameter=e.parameter, value=e.value)

    return AnalysisWindow(from_date=from_date, to_date=to_date)
