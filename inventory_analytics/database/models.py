"""
Database Models - Dashboard Store

Read models for the tables the analytics engine consumes. The schema
itself is owned by the hosted backend; these mappings only describe the
columns the engine reads:

Transactional Tables:
- orders: Customer orders placed through sales executives
- order_items: Order line items

Catalog / People Tables:
- products: Product catalog with stock and pricing
- categories: Product categories
- sales_executives: Field sales executives
- sales_managers: Managers the executives report to
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List
import uuid

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _uuid_str() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# ENUMERATIONS
# =============================================================================

class OrderStatus(str, Enum):
    """Order status enumeration"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REMINDER = "reminder"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# =============================================================================
# CATALOG / PEOPLE TABLES
# =============================================================================

class Category(Base):
    """Product category"""
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    name: Mapped[Optional[str]] = mapped_column(String(200))

    products: Mapped[List["Product"]] = relationship(back_populates="category")


class Product(Base):
    """
    Product Catalog Table

    Stores catalog entries with current stock and pricing.
    """
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    article_id: Mapped[Optional[str]] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(Text)
    brand: Mapped[Optional[str]] = mapped_column(String(100))

    # Inventory and pricing
    stock: Mapped[Optional[int]] = mapped_column(Integer, default=0)
    price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    selling_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))

    category_id: Mapped[Optional[str]] = mapped_column(ForeignKey("categories.id"))
    isactive: Mapped[bool] = mapped_column(Boolean, default=True)

    # Audit
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    category: Mapped[Optional[Category]] = relationship(back_populates="products")

    __table_args__ = (
        Index("ix_products_category", "category_id"),
        Index("ix_products_active_stock", "isactive", "stock"),
    )


class SalesManager(Base):
    """Area sales manager"""
    __tablename__ = "sales_managers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    name: Mapped[Optional[str]] = mapped_column(String(200))
    phone: Mapped[Optional[str]] = mapped_column(String(30))

    executives: Mapped[List["SalesExecutive"]] = relationship(back_populates="manager")


class SalesExecutive(Base):
    """Field sales executive"""
    __tablename__ = "sales_executives"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    name: Mapped[Optional[str]] = mapped_column(String(200))
    phone: Mapped[Optional[str]] = mapped_column(String(30))
    manager_id: Mapped[Optional[str]] = mapped_column(ForeignKey("sales_managers.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    manager: Mapped[Optional[SalesManager]] = relationship(back_populates="executives")


# =============================================================================
# TRANSACTIONAL TABLES
# =============================================================================

class Order(Base):
    """
    Orders Table

    One row per customer order. Status values follow ``OrderStatus`` but are
    stored as plain strings since the backend may add new ones.
    """
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    sales_executive_id: Mapped[Optional[str]] = mapped_column(ForeignKey("sales_executives.id"))
    sales_manager_id: Mapped[Optional[str]] = mapped_column(ForeignKey("sales_managers.id"))
    status: Mapped[str] = mapped_column(String(32), default=OrderStatus.PENDING.value)
    total_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    items: Mapped[List["OrderItem"]] = relationship(back_populates="order")

    __table_args__ = (
        Index("ix_orders_created_at", "created_at"),
        Index("ix_orders_executive", "sales_executive_id"),
        Index("ix_orders_status", "status"),
    )


class OrderItem(Base):
    """Order line items"""
    __tablename__ = "order_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), nullable=False)
    product_id: Mapped[Optional[str]] = mapped_column(ForeignKey("products.id"))
    quantity: Mapped[Optional[int]] = mapped_column(Integer)
    unit_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    order: Mapped[Order] = relationship(back_populates="items")

    __table_args__ = (
        Index("ix_order_items_created_at", "created_at"),
        Index("ix_order_items_product", "product_id"),
        Index("ix_order_items_order", "order_id"),
    )
