"""
Test Suite Configuration
"""
from datetime import datetime
from typing import Any, Dict, List

import polars as pl
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from inventory_analytics.config import AnalyticsSettings
from inventory_analytics.database.models import Base
from inventory_analytics.ingestion.fetch import DatasetVariant, JoinedDataset
from inventory_analytics.ingestion.records import (
    ORDER_ITEM_SCHEMA,
    PRODUCT_SCHEMA,
    CategoryRecord,
    ExecutiveRecord,
    OrderItemRecord,
    OrderRecord,
    ProductRecord,
    normalize_rows,
    records_to_frame,
)
from inventory_analytics.ingestion.sources import InMemoryDataSource
from inventory_analytics.transformation.windows import AnalysisWindow


@pytest.fixture
def now() -> datetime:
    """Fixed 'current time' for every test"""
    return datetime(2024, 3, 31, 12, 0, 0)


@pytest.fixture
def window(now) -> AnalysisWindow:
    """March 2024 up to noon on the 31st (span of 30 days)"""
    return AnalysisWindow(from_date=datetime(2024, 3, 1), to_date=now)


@pytest.fixture
def analytics_settings() -> AnalyticsSettings:
    return AnalyticsSettings()


@pytest.fixture
def raw_rows() -> Dict[str, List[Dict[str, Any]]]:
    """
    A small store:

    - p1 never sold, created 90 days before the window end
    - p2 sold 3 + 7 units at 50 in the window, low on stock
    - p3 sold 2 units (delivered) and 1 unit (pending) in the window
    - p4 inactive, p5 out of stock
    - one item without product, one item for a missing product
    """
    return {
        "products": [
            {"id": "p1", "name": "Old Stock", "article_id": "A-1", "stock": 5, "price": 100,
             "selling_price": None, "category_id": "c1", "isactive": True,
             "created_at": "2024-01-01T00:00:00Z", "updated_at": "2024-01-05T00:00:00Z"},
            {"id": "p2", "name": "Fast Seller", "article_id": "A-2", "stock": 4, "price": 50,
             "selling_price": 60, "category_id": "c2", "isactive": True,
             "created_at": "2023-12-01T00:00:00Z"},
            {"id": "p3", "name": "Steady Seller", "article_id": "A-3", "stock": 100, "price": "20.00",
             "selling_price": 0, "category_id": "c-unknown", "isactive": True,
             "created_at": "2023-11-01T00:00:00Z"},
            {"id": "p4", "name": "Retired", "article_id": "A-4", "stock": 10, "price": 10,
             "category_id": "c1", "isactive": False, "created_at": "2023-01-01T00:00:00Z"},
            {"id": "p5", "name": "Sold Out", "article_id": "A-5", "stock": 0, "price": 10,
             "category_id": "c1", "isactive": True, "created_at": "2023-01-01T00:00:00Z"},
        ],
        "categories": [
            {"id": "c1", "name": "Hardware"},
            {"id": "c2", "name": "Paint"},
        ],
        "orders": [
            {"id": "o1", "sales_executive_id": "e1", "sales_manager_id": "m1", "status": "delivered",
             "total_amount": 150, "created_at": "2024-03-20T10:00:00Z"},
            {"id": "o2", "sales_executive_id": "e1", "sales_manager_id": "m1", "status": "completed",
             "total_amount": 350, "created_at": "2024-03-25T00:00:00Z"},
            {"id": "o3", "sales_executive_id": "e2", "sales_manager_id": None, "status": "delivered",
             "total_amount": 40, "created_at": "2024-03-10T00:00:00Z"},
            {"id": "o4", "sales_executive_id": "e2", "sales_manager_id": None, "status": "pending",
             "total_amount": 20, "created_at": "2024-03-28T09:00:00Z"},
            {"id": "o5", "sales_executive_id": "e1", "sales_manager_id": "m1", "status": "delivered",
             "total_amount": 100, "created_at": "2024-01-15T00:00:00Z"},
        ],
        "order_items": [
            {"id": "i1", "order_id": "o1", "product_id": "p2", "quantity": 3, "unit_price": 50,
             "created_at": "2024-03-20T10:00:00Z"},
            {"id": "i2", "order_id": "o2", "product_id": "p2", "quantity": 7, "unit_price": "50",
             "created_at": "2024-03-25T00:00:00Z"},
            {"id": "i3", "order_id": "o3", "product_id": "p3", "quantity": 2, "unit_price": 20,
             "created_at": "2024-03-10T00:00:00Z"},
            {"id": "i4", "order_id": "o4", "product_id": "p3", "quantity": 1, "unit_price": 20,
             "created_at": "2024-03-28T09:00:00Z"},
            {"id": "i5", "order_id": "o5", "product_id": "p3", "quantity": 5, "unit_price": 20,
             "created_at": "2024-01-15T00:00:00Z"},
            {"id": "i6", "order_id": "o1", "product_id": None, "quantity": 1, "unit_price": 10,
             "created_at": "2024-03-20T10:00:00Z"},
            {"id": "i7", "order_id": "o3", "product_id": "p-missing", "quantity": 4, "unit_price": 10,
             "created_at": "2024-03-10T00:00:00Z"},
        ],
        "executives": [
            {"id": "e1", "name": "Asha", "manager_id": "m1", "sales_managers": {"name": "Maya"}},
            {"id": "e2", "name": "Ben", "manager_id": None, "sales_managers": None},
            {"id": "e3", "name": "Chen", "manager_id": "m1", "manager_name": "Maya"},
        ],
    }


@pytest.fixture
def memory_source(raw_rows) -> InMemoryDataSource:
    return InMemoryDataSource(**raw_rows)


@pytest.fixture
def products_df(raw_rows) -> pl.DataFrame:
    """Normalized products frame"""
    return records_to_frame(normalize_rows(ProductRecord, raw_rows["products"]), PRODUCT_SCHEMA)


@pytest.fixture
def items_df(raw_rows) -> pl.DataFrame:
    """Normalized items frame with the parent order status attached"""
    statuses = {order["id"]: order["status"] for order in raw_rows["orders"]}
    rows = [dict(item, order_status=statuses.get(item["order_id"])) for item in raw_rows["order_items"]]
    return records_to_frame(normalize_rows(OrderItemRecord, rows), ORDER_ITEM_SCHEMA)


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """File backed SQLite engine with the schema created"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'analytics.db'}",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
def dataset(raw_rows, window) -> JoinedDataset:
    """Everything joined the way an all-views fetch would return it"""
    products = {p.id: p for p in normalize_rows(ProductRecord, raw_rows["products"])}
    orders = {o.id: o for o in normalize_rows(OrderRecord, raw_rows["orders"])}
    statuses = {order_id: order.status for order_id, order in orders.items()}
    items = normalize_rows(
        OrderItemRecord,
        [dict(item, order_status=statuses.get(item["order_id"])) for item in raw_rows["order_items"]],
    )
    resolved = [item for item in items if item.product_id in products]

    return JoinedDataset(
        window=window,
        variant=DatasetVariant.ALL,
        products=products,
        categories={c.id: c for c in normalize_rows(CategoryRecord, raw_rows["categories"])},
        orders=orders,
        executives={e.id: e for e in normalize_rows(ExecutiveRecord, raw_rows["executives"])},
        items=resolved,
        dropped_items=len(items) - len(resolved),
    )
