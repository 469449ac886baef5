"""
Report Filters and Sorting

User supplied knobs for one analysis pass. Everything here is validated
leniently: unknown values fall back to defaults and are logged, because a
bad filter should never break the page.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)


class Tab(str, Enum):
    """Which derived view(s) to compute"""
    AGING = "aging"
    FAST_MOVING = "fast_moving"
    PERFORMANCE = "performance"
    TREND = "trend"
    ALL = "all"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Tab":
        if value is None:
            return cls.ALL
        normalized = str(value).strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            logger.warning("Unknown tab, using all", tab=value)
            return cls.ALL


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortDirection":
        return SortDirection.DESC if self == SortDirection.ASC else SortDirection.ASC


# user facing sort key -> metrics column
AGING_SORT_COLUMNS = {
    "sales_quantity": "total_quantity",
    "age_days": "age_days",
    "inventory_value": "inventory_value",
}
DEFAULT_AGING_SORT = "sales_quantity"


@dataclass(frozen=True)
class SortState:
    """
    Sort column and direction for the aging tables.

    Clicking the current column flips the direction; clicking another column
    selects it ascending.
    """
    column: str = DEFAULT_AGING_SORT
    direction: SortDirection = SortDirection.ASC

    @classmethod
    def parse(cls, column: Optional[str] = None, direction: Optional[str] = None) -> "SortState":
        sort_column = DEFAULT_AGING_SORT
        if column:
            if column in AGING_SORT_COLUMNS:
                sort_column = column
            else:
                logger.warning("Unknown sort column, using default", column=column)

        sort_direction = SortDirection.ASC
        if direction:
            try:
                sort_direction = SortDirection(str(direction).lower())
            except ValueError:
                logger.warning("Unknown sort direction, using asc", direction=direction)

        return cls(column=sort_column, direction=sort_direction)

    def toggle(self, column: str) -> "SortState":
        if column == self.column:
            return replace(self, direction=self.direction.flipped())
        return SortState(column=column, direction=SortDirection.ASC)

    @property
    def frame_column(self) -> str:
        return AGING_SORT_COLUMNS[self.column]

    @property
    def descending(self) -> bool:
        return self.direction == SortDirection.DESC


@dataclass(frozen=True)
class AnalyticsFilters:
    """
    Optional filters applied on top of the analysis window.

    ``status`` and ``product_id`` narrow the performance and trend views;
    ``window_applied`` restricts the performance view to the window instead
    of all time.
    """
    status: Optional[str] = None
    product_id: Optional[str] = None
    sort: SortState = SortState()
    top_n: Optional[int] = None
    window_applied: bool = False

    @classmethod
    def parse(
        cls,
        status: Optional[str] = None,
        product: Optional[str] = None,
        sort: Optional[str] = None,
        direction: Optional[str] = None,
        top_n: Optional[int] = None,
        window_applied: bool = False,
    ) -> "AnalyticsFilters":
        """Build filters from raw request values; "all" and blanks mean no filter"""
        def _clean(value: Optional[str]) -> Optional[str]:
            if value is None:
                return None
            text = str(value).strip()
            if not text or text.lower() == "all":
                return None
            return text

        clean_status = _clean(status)
        if top_n is not None and top_n < 1:
            logger.warning("Ignoring non-positive top_n", top_n=top_n)
            top_n = None

        return cls(
            status=clean_status.lower() if clean_status else None,
            product_id=_clean(product),
            sort=SortState.parse(sort, direction),
            top_n=top_n,
            window_applied=window_applied,
        )
