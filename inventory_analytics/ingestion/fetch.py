"""
Windowed Fetch and Join

Pulls every row one analysis pass needs from a data source, normalizes it
once, and resolves foreign keys through in-memory id maps. The result is a
``JoinedDataset``: a complete, immutable snapshot for the pass. A failure in
any fetch aborts the whole pass; partial datasets are never returned.
"""

from dataclasses import dataclass, field
from enum import Enum
import time
from typing import Dict, List, Optional, Sequence

import polars as pl
import structlog

from inventory_analytics.exceptions import FetchError
from inventory_analytics.ingestion.records import (
    CATEGORY_SCHEMA,
    EXECUTIVE_SCHEMA,
    ORDER_ITEM_SCHEMA,
    ORDER_SCHEMA,
    PRODUCT_SCHEMA,
    CategoryRecord,
    ExecutiveRecord,
    OrderItemRecord,
    OrderRecord,
    ProductRecord,
    normalize_rows,
    records_to_frame,
)
from inventory_analytics.ingestion.sources import DataSource
from inventory_analytics.transformation.windows import AnalysisWindow

logger = structlog.get_logger(__name__)


class DatasetVariant(str, Enum):
    """Which report(s) a dataset is fetched for"""
    AGING = "aging"
    FAST_MOVING = "fast_moving"
    PERFORMANCE = "performance"
    TREND = "trend"
    ALL = "all"


@dataclass(frozen=True)
class JoinedDataset:
    """
    Normalized rows for one analysis pass, keyed by id.

    ``items`` only holds line items whose product resolved; the rest are
    counted in ``dropped_items``. For the performance variant orders and
    items cover all time (the baseline population), otherwise the window.
    """
    window: AnalysisWindow
    variant: DatasetVariant
    products: Dict[str, ProductRecord] = field(default_factory=dict)
    categories: Dict[str, CategoryRecord] = field(default_factory=dict)
    orders: Dict[str, OrderRecord] = field(default_factory=dict)
    executives: Dict[str, ExecutiveRecord] = field(default_factory=dict)
    items: List[OrderItemRecord] = field(default_factory=list)
    dropped_items: int = 0

    @property
    def products_frame(self) -> pl.DataFrame:
        return records_to_frame(self.products.values(), PRODUCT_SCHEMA)

    @property
    def categories_frame(self) -> pl.DataFrame:
        return records_to_frame(self.categories.values(), CATEGORY_SCHEMA)

    @property
    def orders_frame(self) -> pl.DataFrame:
        return records_to_frame(self.orders.values(), ORDER_SCHEMA)

    @property
    def executives_frame(self) -> pl.DataFrame:
        return records_to_frame(self.executives.values(), EXECUTIVE_SCHEMA)

    @property
    def items_frame(self) -> pl.DataFrame:
        """Line items with ``executive_id`` resolved through the parent order"""
        frame = records_to_frame(self.items, ORDER_ITEM_SCHEMA)
        executive_ids = [
            self.orders[item.order_id].executive_id if item.order_id in self.orders else None
            for item in self.items
        ]
        return frame.with_columns(pl.Series("executive_id", executive_ids, dtype=pl.Utf8))

    @property
    def is_empty(self) -> bool:
        return not (self.products or self.items or self.orders or self.executives)

    def summary(self) -> dict:
        return {
            "variant": self.variant.value,
            "products": len(self.products),
            "categories": len(self.categories),
            "orders": len(self.orders),
            "executives": len(self.executives),
            "items": len(self.items),
            "dropped_items": self.dropped_items,
        }


def _index(records: Sequence) -> Dict[str, object]:
    return {record.id: record for record in records}


async def fetch_dataset(
    source: DataSource,
    window: AnalysisWindow,
    variant: DatasetVariant = DatasetVariant.ALL,
    sale_statuses: Optional[Sequence[str]] = None,
) -> JoinedDataset:
    """
    Fetch and join everything one pass of ``variant`` needs.

    - aging: active in-stock products, in-window items (only items of
      ``sale_statuses`` orders when given)
    - fast_moving: in-window items, their products, in-window orders
    - performance: all orders, all items, all executives, item products
    - trend: in-window orders, items and their products
    - all: the union, with all products so every view can filter locally

    Raises:
        FetchError: If any underlying fetch fails
    """
    variant = DatasetVariant(variant)
    start_time = time.time()
    all_time = variant in (DatasetVariant.PERFORMANCE, DatasetVariant.ALL)
    item_window: Optional[AnalysisWindow] = None if all_time else window

    try:
        item_statuses = sale_statuses if variant == DatasetVariant.AGING else None
        items = normalize_rows(
            OrderItemRecord,
            await source.fetch_order_items(item_window, statuses=item_statuses),
        )

        if variant == DatasetVariant.AGING:
            products = normalize_rows(ProductRecord, await source.fetch_products(in_stock_only=True))
        elif variant == DatasetVariant.ALL:
            products = normalize_rows(ProductRecord, await source.fetch_products())
        else:
            product_ids = sorted({item.product_id for item in items if item.product_id})
            products = normalize_rows(ProductRecord, await source.fetch_products(product_ids))

        orders: List[OrderRecord] = []
        if variant != DatasetVariant.AGING:
            orders = normalize_rows(OrderRecord, await source.fetch_orders(item_window))

        executives: List[ExecutiveRecord] = []
        if all_time:
            executives = normalize_rows(ExecutiveRecord, await source.fetch_executives())

        categories: List[CategoryRecord] = []
        category_ids = sorted({p.category_id for p in products if p.category_id})
        if category_ids:
            categories = normalize_rows(CategoryRecord, await source.fetch_categories(category_ids))
    except FetchError:
        raise
    except Exception as e:
        logger.error(
            "Dataset fetch failed",
            variant=variant.value,
            source=source.name,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise FetchError(f"Dataset fetch failed: {e}", source=source.name) from e

    product_map = _index(products)

    resolved = [item for item in items if item.product_id in product_map]
    dropped = len(items) - len(resolved)

    dataset = JoinedDataset(
        window=window,
        variant=variant,
        products=product_map,
        categories=_index(categories),
        orders=_index(orders),
        executives=_index(executives),
        items=resolved,
        dropped_items=dropped,
    )

    logger.info(
        "Dataset fetched",
        source=source.name,
        duration_ms=round((time.time() - start_time) * 1000, 2),
        **dataset.summary(),
    )
    return dataset
