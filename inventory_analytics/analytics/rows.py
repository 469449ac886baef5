"""
Frame to row conversion for report output.
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping

import polars as pl
import structlog

logger = structlog.get_logger(__name__)


def _clean_value(value: Any, default: Any) -> Any:
    if value is None:
        return default
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, float) and value != value:
        raise ValueError("NaN value")
    return value


def frame_to_rows(
    frame: pl.DataFrame,
    entity: str,
    defaults: Mapping[str, Any],
    id_column: str = "id",
) -> List[Dict[str, Any]]:
    """
    Convert a metrics frame into plain dict rows.

    A row that cannot be converted is logged and replaced by its defaults so
    one bad entity never fails the report. Datetimes become ISO strings.
    """
    rows = []
    for raw in frame.iter_rows(named=True):
        row = {}
        for column, value in raw.items():
            try:
                row[column] = _clean_value(value, defaults.get(column))
            except (TypeError, ValueError) as e:
                logger.warning(
                    "Metric conversion failed, using default",
                    entity=entity,
                    entity_id=raw.get(id_column),
                    column=column,
                    error=str(e),
                )
                row[column] = defaults.get(column)
        rows.append(row)
    return rows
