"""
Data Sources

The engine only needs "give me rows matching these filters". A data source
answers that with plain dict rows; normalization happens afterwards in
``records``. Two implementations are provided:

- SQLAlchemyDataSource: async reads against the relational store, paginated
- InMemoryDataSource: rows held in memory (fixtures, tests, offline replay)

Any failure inside a source surfaces as ``FetchError``.
"""

from abc import ABC, abstractmethod
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import structlog
from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from inventory_analytics.database.models import (
    Category,
    Order,
    OrderItem,
    Product,
    SalesExecutive,
    SalesManager,
)
from inventory_analytics.exceptions import FetchError
from inventory_analytics.ingestion.records import parse_timestamp, to_bool, to_int
from inventory_analytics.transformation.windows import AnalysisWindow

logger = structlog.get_logger(__name__)

Row = Dict[str, Any]


class DataSource(ABC):
    """Read-only access to the rows the analytics engine consumes"""

    name: str = "datasource"

    @abstractmethod
    async def fetch_order_items(
        self,
        window: Optional[AnalysisWindow] = None,
        statuses: Optional[Sequence[str]] = None,
    ) -> List[Row]:
        """
        Order items created inside ``window`` (all items when None), each with
        its parent ``order_status``. When ``statuses`` is given only items of
        orders in one of those statuses are returned.
        """

    @abstractmethod
    async def fetch_products(
        self,
        product_ids: Optional[Sequence[str]] = None,
        in_stock_only: bool = False,
    ) -> List[Row]:
        """Products by id, or all (active, in-stock when ``in_stock_only``) products"""

    @abstractmethod
    async def fetch_orders(
        self,
        window: Optional[AnalysisWindow] = None,
        status: Optional[str] = None,
    ) -> List[Row]:
        """Orders created inside ``window`` (all orders when None), optionally by status"""

    @abstractmethod
    async def fetch_categories(self, category_ids: Optional[Sequence[str]] = None) -> List[Row]:
        """Categories by id (all when None)"""

    @abstractmethod
    async def fetch_executives(self) -> List[Row]:
        """All sales executives with ``manager_name``"""


# =============================================================================
# IN-MEMORY
# =============================================================================

class InMemoryDataSource(DataSource):
    """
    Data source over in-memory row lists.

    Example:
        source = InMemoryDataSource(products=[...], order_items=[...])
        items = await source.fetch_order_items(window)
    """

    name = "memory"

    def __init__(
        self,
        orders: Optional[Iterable[Row]] = None,
        order_items: Optional[Iterable[Row]] = None,
        products: Optional[Iterable[Row]] = None,
        categories: Optional[Iterable[Row]] = None,
        executives: Optional[Iterable[Row]] = None,
    ):
        self.orders = list(orders or [])
        self.order_items = list(order_items or [])
        self.products = list(products or [])
        self.categories = list(categories or [])
        self.executives = list(executives or [])

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "InMemoryDataSource":
        """
        Load a JSON document with optional ``orders``, ``order_items``,
        ``products``, ``categories`` and ``executives`` arrays.
        """
        try:
            with open(path, "r", encoding="utf-8") as fh:
                payload = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            raise FetchError(f"Could not read dataset file {path}: {e}", source=cls.name) from e

        return cls(
            orders=payload.get("orders"),
            order_items=payload.get("order_items"),
            products=payload.get("products"),
            categories=payload.get("categories"),
            executives=payload.get("executives"),
        )

    @staticmethod
    def _in_window(row: Row, window: Optional[AnalysisWindow]) -> bool:
        if window is None:
            return True
        return window.contains(parse_timestamp(row.get("created_at")))

    async def fetch_order_items(
        self,
        window: Optional[AnalysisWindow] = None,
        statuses: Optional[Sequence[str]] = None,
    ) -> List[Row]:
        order_statuses = {str(o.get("id")): o.get("status") for o in self.orders}
        wanted = {s.lower() for s in statuses} if statuses is not None else None
        rows = []
        for item in self.order_items:
            if not self._in_window(item, window):
                continue
            row = dict(item)
            if "order_status" not in row and str(item.get("order_id")) in order_statuses:
                row["order_status"] = order_statuses[str(item.get("order_id"))]
            if wanted is not None and str(row.get("order_status") or "").lower() not in wanted:
                continue
            rows.append(row)
        return rows

    async def fetch_products(
        self,
        product_ids: Optional[Sequence[str]] = None,
        in_stock_only: bool = False,
    ) -> List[Row]:
        wanted = {str(pid) for pid in product_ids} if product_ids is not None else None
        rows = []
        for product in self.products:
            if wanted is not None and str(product.get("id")) not in wanted:
                continue
            if in_stock_only:
                if not to_bool(product.get("isactive", product.get("is_active", True))):
                    continue
                if to_int(product.get("stock")) <= 0:
                    continue
            rows.append(dict(product))
        return rows

    async def fetch_orders(
        self,
        window: Optional[AnalysisWindow] = None,
        status: Optional[str] = None,
    ) -> List[Row]:
        return [
            dict(order)
            for order in self.orders
            if self._in_window(order, window) and (status is None or order.get("status") == status)
        ]

    async def fetch_categories(self, category_ids: Optional[Sequence[str]] = None) -> List[Row]:
        wanted = {str(cid) for cid in category_ids} if category_ids is not None else None
        return [
            dict(category)
            for category in self.categories
            if wanted is None or str(category.get("id")) in wanted
        ]

    async def fetch_executives(self) -> List[Row]:
        return [dict(executive) for executive in self.executives]


# =============================================================================
# SQLALCHEMY
# =============================================================================

def _chunks(values: Sequence[str], size: int) -> Iterable[Sequence[str]]:
    for start in range(0, len(values), size):
        yield values[start:start + size]


class SQLAlchemyDataSource(DataSource):
    """
    Async SQLAlchemy data source.

    Reads in ``page_size`` batches ordered by primary key so large tables are
    never pulled in one statement.
    """

    name = "database"

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        page_size: int = 1000,
    ):
        self.session_factory = session_factory
        self.page_size = page_size

    async def _fetch_all(self, stmt: Select, table: str) -> List[Any]:
        """Run ``stmt`` page by page and return every result row"""
        rows: List[Any] = []
        offset = 0
        try:
            async with self.session_factory() as session:
                while True:
                    result = await session.execute(stmt.limit(self.page_size).offset(offset))
                    batch = result.all()
                    rows.extend(batch)
                    if len(batch) < self.page_size:
                        break
                    offset += self.page_size
        except (SQLAlchemyError, OSError) as e:
            logger.error("Fetch failed", table=table, error=str(e), error_type=type(e).__name__)
            raise FetchError(f"Error fetching {table}: {e}", source=table) from e

        logger.debug("Fetched rows", table=table, rows=len(rows))
        return rows

    @staticmethod
    def _window_clause(column, window: Optional[AnalysisWindow]):
        if window is None:
            return []
        return [column >= window.from_date, column <= window.to_date]

    async def fetch_order_items(
        self,
        window: Optional[AnalysisWindow] = None,
        statuses: Optional[Sequence[str]] = None,
    ) -> List[Row]:
        stmt = (
            select(OrderItem, Order.status)
            .outerjoin(Order, OrderItem.order_id == Order.id)
            .where(*self._window_clause(OrderItem.created_at, window))
            .order_by(OrderItem.id)
        )
        if statuses is not None:
            stmt = stmt.where(Order.status.in_(list(statuses)))
        rows = await self._fetch_all(stmt, "order_items")
        return [
            {
                "id": item.id,
                "order_id": item.order_id,
                "product_id": item.product_id,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "created_at": item.created_at,
                "order_status": status,
            }
            for item, status in rows
        ]

    @staticmethod
    def _product_row(product: Product) -> Row:
        return {
            "id": product.id,
            "name": product.name,
            "article_id": product.article_id,
            "stock": product.stock,
            "price": product.price,
            "selling_price": product.selling_price,
            "category_id": product.category_id,
            "created_at": product.created_at,
            "updated_at": product.updated_at,
            "isactive": product.isactive,
        }

    async def fetch_products(
        self,
        product_ids: Optional[Sequence[str]] = None,
        in_stock_only: bool = False,
    ) -> List[Row]:
        base = select(Product).order_by(Product.id)
        if in_stock_only:
            base = base.where(Product.stock > 0, Product.isactive.is_(True))

        if product_ids is None:
            rows = await self._fetch_all(base, "products")
        else:
            ids = sorted({str(pid) for pid in product_ids})
            rows = []
            for chunk in _chunks(ids, self.page_size):
                rows.extend(await self._fetch_all(base.where(Product.id.in_(chunk)), "products"))

        return [self._product_row(product) for (product,) in rows]

    async def fetch_orders(
        self,
        window: Optional[AnalysisWindow] = None,
        status: Optional[str] = None,
    ) -> List[Row]:
        stmt = select(Order).where(*self._window_clause(Order.created_at, window)).order_by(Order.id)
        if status is not None:
            stmt = stmt.where(Order.status == status)

        rows = await self._fetch_all(stmt, "orders")
        return [
            {
                "id": order.id,
                "executive_id": order.sales_executive_id,
                "manager_id": order.sales_manager_id,
                "status": order.status,
                "total_amount": order.total_amount,
                "created_at": order.created_at,
            }
            for (order,) in rows
        ]

    async def fetch_categories(self, category_ids: Optional[Sequence[str]] = None) -> List[Row]:
        base = select(Category).order_by(Category.id)
        if category_ids is None:
            rows = await self._fetch_all(base, "categories")
        else:
            ids = sorted({str(cid) for cid in category_ids})
            rows = []
            for chunk in _chunks(ids, self.page_size):
                rows.extend(await self._fetch_all(base.where(Category.id.in_(chunk)), "categories"))

        return [{"id": category.id, "name": category.name} for (category,) in rows]

    async def fetch_executives(self) -> List[Row]:
        stmt = (
            select(SalesExecutive, SalesManager.name)
            .outerjoin(SalesManager, SalesExecutive.manager_id == SalesManager.id)
            .order_by(SalesExecutive.id)
        )
        rows = await self._fetch_all(stmt, "sales_executives")
        return [
            {
                "id": executive.id,
                "name": executive.name,
                "manager_id": executive.manager_id,
                "manager_name": manager_name,
            }
            for executive, manager_name in rows
        ]
