"""
Record Normalization

Typed records for the rows the engine consumes, and the single ingestion
step that normalizes them. After ``from_row`` every numeric field is a real
number (missing quantities and prices become 0) and every timestamp is a
naive UTC ``datetime``, so later stages never coalesce nulls themselves.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type, TypeVar
import math

import polars as pl
import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


# =============================================================================
# SCALAR COERCION
# =============================================================================

def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp into a naive UTC datetime.

    Accepts ``datetime``, ``date`` and ISO-8601 strings (a trailing ``Z`` is
    understood). Returns None for anything unparsable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """Coerce a numeric-ish value to float; missing or invalid -> default"""
    if value is None or isinstance(value, bool):
        return default
    try:
        if isinstance(value, (int, float, Decimal)):
            result = float(value)
        else:
            result = float(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError, TypeError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def to_int(value: Any, default: int = 0) -> int:
    """Coerce a numeric-ish value to int; missing or invalid -> default"""
    result = to_float(value, default=None)
    if result is None:
        return default
    return int(result)


def to_bool(value: Any) -> bool:
    """Interpret a flag column; only explicit truthy values count as True"""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ("1", "true", "t", "yes", "y")


def to_id(value: Any) -> Optional[str]:
    """Normalize a key to its string form; blank keys become None"""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _nested(row: Mapping[str, Any], key: str, field_name: str) -> Any:
    """Read ``row[key][field_name]`` from embedded relation objects"""
    related = row.get(key)
    if isinstance(related, Mapping):
        return related.get(field_name)
    return None


# =============================================================================
# RECORDS
# =============================================================================

@dataclass(frozen=True)
class OrderRecord:
    """An order placed through a sales executive"""
    id: str
    executive_id: Optional[str]
    manager_id: Optional[str]
    status: str
    total_amount: float
    created_at: Optional[datetime]

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "OrderRecord":
        status = row.get("status")
        return cls(
            id=to_id(row.get("id")),
            executive_id=to_id(row.get("executive_id", row.get("sales_executive_id"))),
            manager_id=to_id(row.get("manager_id", row.get("sales_manager_id"))),
            status=str(status).strip().lower() if status else "",
            total_amount=to_float(row.get("total_amount")),
            created_at=parse_timestamp(row.get("created_at")),
        )


@dataclass(frozen=True)
class OrderItemRecord:
    """
    An order line item.

    ``order_status`` is the parent order's status when the store returns it
    alongside the item (either flat or as an embedded ``orders`` object).
    """
    id: str
    order_id: Optional[str]
    product_id: Optional[str]
    quantity: int
    unit_price: float
    created_at: Optional[datetime]
    order_status: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "OrderItemRecord":
        status = row.get("order_status") or _nested(row, "orders", "status")
        return cls(
            id=to_id(row.get("id")),
            order_id=to_id(row.get("order_id")),
            product_id=to_id(row.get("product_id")),
            quantity=to_int(row.get("quantity")),
            unit_price=to_float(row.get("unit_price")),
            created_at=parse_timestamp(row.get("created_at")),
            order_status=str(status).strip().lower() if status else None,
        )


@dataclass(frozen=True)
class ProductRecord:
    """A catalog product with its current stock"""
    id: str
    name: str
    article_id: Optional[str]
    stock: int
    price: Optional[float]
    selling_price: Optional[float]
    category_id: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    is_active: bool = True

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ProductRecord":
        return cls(
            id=to_id(row.get("id")),
            name=row.get("name") or "Unknown Product",
            article_id=to_id(row.get("article_id")),
            stock=to_int(row.get("stock")),
            price=to_float(row.get("price"), default=None),
            selling_price=to_float(row.get("selling_price"), default=None),
            category_id=to_id(row.get("category_id")),
            created_at=parse_timestamp(row.get("created_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
            is_active=to_bool(row.get("isactive", row.get("is_active", True))),
        )


@dataclass(frozen=True)
class CategoryRecord:
    """A product category"""
    id: str
    name: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CategoryRecord":
        return cls(
            id=to_id(row.get("id")),
            name=row.get("name") or "Unnamed Category",
        )


@dataclass(frozen=True)
class ExecutiveRecord:
    """A sales executive and the name of their manager"""
    id: str
    name: str
    manager_id: Optional[str]
    manager_name: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ExecutiveRecord":
        manager_name = row.get("manager_name") or _nested(row, "sales_managers", "name")
        return cls(
            id=to_id(row.get("id")),
            name=row.get("name") or "Unnamed",
            manager_id=to_id(row.get("manager_id")),
            manager_name=manager_name or "No manager",
        )


# =============================================================================
# FRAME SCHEMAS
# =============================================================================

ORDER_SCHEMA: Dict[str, pl.DataType] = {
    "id": pl.Utf8,
    "executive_id": pl.Utf8,
    "manager_id": pl.Utf8,
    "status": pl.Utf8,
    "total_amount": pl.Float64,
    "created_at": pl.Datetime("us"),
}

ORDER_ITEM_SCHEMA: Dict[str, pl.DataType] = {
    "id": pl.Utf8,
    "order_id": pl.Utf8,
    "product_id": pl.Utf8,
    "quantity": pl.Int64,
    "unit_price": pl.Float64,
    "created_at": pl.Datetime("us"),
    "order_status": pl.Utf8,
}

PRODUCT_SCHEMA: Dict[str, pl.DataType] = {
    "id": pl.Utf8,
    "name": pl.Utf8,
    "article_id": pl.Utf8,
    "stock": pl.Int64,
    "price": pl.Float64,
    "selling_price": pl.Float64,
    "category_id": pl.Utf8,
    "created_at": pl.Datetime("us"),
    "updated_at": pl.Datetime("us"),
    "is_active": pl.Boolean,
}

CATEGORY_SCHEMA: Dict[str, pl.DataType] = {
    "id": pl.Utf8,
    "name": pl.Utf8,
}

EXECUTIVE_SCHEMA: Dict[str, pl.DataType] = {
    "id": pl.Utf8,
    "name": pl.Utf8,
    "manager_id": pl.Utf8,
    "manager_name": pl.Utf8,
}


def normalize_rows(record_type: Type[T], rows: Iterable[Mapping[str, Any]]) -> List[T]:
    """
    Convert raw store rows into records, skipping rows without a primary key.
    """
    records = []
    skipped = 0
    for row in rows or []:
        record = record_type.from_row(row)
        if record.id is None:
            skipped += 1
            continue
        records.append(record)

    if skipped:
        logger.warning(
            "Rows without primary key skipped",
            record_type=record_type.__name__,
            skipped=skipped,
        )
    return records


def records_to_frame(records: Iterable[Any], schema: Dict[str, pl.DataType]) -> pl.DataFrame:
    """Build a DataFrame with an explicit schema from a list of records"""
    records = list(records)
    return pl.DataFrame(
        {name: [getattr(record, name) for record in records] for name in schema},
        schema=schema,
    )

