"""SQLAlchemy Core tables of the point-of-sale store."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    TypeDecorator,
)

from posreconcile.domain.types import DataType

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _utcnow() -> datetime:
    return datetime.now(UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

category_table = Table(
    "categories",
    metadata,
    Column("id", String, primary_key=True),
    Column("name", String, nullable=False),
    Column("description", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False, default=_utcnow),
)

product_table = Table(
    "products",
    metadata,
    Column("id", String, primary_key=True),
    Column("name", String, nullable=False),
    Column("barcode", String, nullable=True),
    Column("category_id", String, ForeignKey("categories.id"), nullable=True),
    Column("price", Float, nullable=False),
    Column("cost", Float, nullable=True),
    Column("quantity", Integer, nullable=False, default=0),
    Column("min_stock", Integer, nullable=False, default=10),
    Column("created_at", UTCDateTime(), nullable=False, default=_utcnow),
)

customer_table = Table(
    "customers",
    metadata,
    Column("id", String, primary_key=True),
    Column("name", String, nullable=False),
    Column("phone", String, nullable=True),
    Column("email", String, nullable=True),
    Column("address", String, nullable=True),
    Column("total_spent", Float, nullable=False, default=0),
    Column("visit_count", Integer, nullable=False, default=0),
    Column("created_at", UTCDateTime(), nullable=False, default=_utcnow),
)

sale_table = Table(
    "sales",
    metadata,
    Column("id", String, primary_key=True),
    Column("total", Float, nullable=False),
    Column("payment_method", String, nullable=False),
    Column("note", String, nullable=True),
    Column("customer_id", String, ForeignKey("customers.id"), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False, default=_utcnow),
)

sale_item_table = Table(
    "sale_items",
    metadata,
    Column("id", String, primary_key=True),
    Column("sale_id", String, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False),
    Column("product_id", String, ForeignKey("products.id"), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("price", Float, nullable=False),
    Column("cost", Float, nullable=True),
    Column("discount", Float, nullable=False, default=0),
    Column("subtotal", Float, nullable=True),
)

expense_table = Table(
    "expenses",
    metadata,
    Column("id", String, primary_key=True),
    Column("category_id", String, nullable=True),
    Column("amount", Float, nullable=False),
    Column("description", String, nullable=True),
    Column("date", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False, default=_utcnow),
)

stock_movement_table = Table(
    "stock_movements",
    metadata,
    Column("id", String, primary_key=True),
    Column("product_id", String, ForeignKey("products.id"), nullable=False),
    Column("movement_type", String, nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("reason", String, nullable=True),
    Column("reference_number", String, nullable=True),
    Column("unit_cost", Float, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False, default=_utcnow),
)

bulk_pricing_table = Table(
    "bulk_pricing",
    metadata,
    Column("id", String, primary_key=True),
    Column(
        "product_id",
        String,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("min_quantity", Integer, nullable=False),
    Column("bulk_price", Float, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False, default=_utcnow),
)

TABLE_BY_DATA_TYPE: Final[Mapping[DataType, Table]] = MappingProxyType(
    {
        DataType.PRODUCTS: product_table,
        DataType.CUSTOMERS: customer_table,
        DataType.CATEGORIES: category_table,
        DataType.SALES: sale_table,
        DataType.EXPENSES: expense_table,
        DataType.STOCK_MOVEMENTS: stock_movement_table,
        DataType.BULK_PRICING: bulk_pricing_table,
    }
)


def create_all_tables(engine: Engine) -> None:
    """Create every store table that does not exist yet."""

    log.debug("Ensuring store tables exist on %s", engine.url.render_as_string(hide_password=True))
    metadata.create_all(engine, checkfirst=True)
