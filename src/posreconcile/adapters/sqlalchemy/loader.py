"""Existing-state loader reading the store through SQLAlchemy sessions."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from posreconcile.domain.ports import ExistingStateUnavailableError, RecordPage
from posreconcile.domain.types import DataType

from .engine import session_factory as managed_session_factory
from .tables import TABLE_BY_DATA_TYPE, bulk_pricing_table, sale_item_table

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from sqlalchemy import Select, Table
    from sqlalchemy.engine import Engine

    from posreconcile.domain.types import Record

log = logging.getLogger(__name__)


class SqlAlchemyExistingStateLoader:
    """Read-only ``ExistingStateLoader`` over the SQLAlchemy store.

    Every call opens its own short-lived session in a worker thread, so
    concurrent calls never share a connection checkout. Rows come back as
    plain dicts keyed by column name, ordered by ``created_at`` then ``id``.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self.session_factory = session_factory or managed_session_factory()

    @classmethod
    def from_engine(cls, engine: Engine) -> SqlAlchemyExistingStateLoader:
        return cls(sessionmaker(bind=engine, expire_on_commit=False))

    async def fetch_records(self, data_type: DataType) -> Sequence[Record]:
        table = TABLE_BY_DATA_TYPE[data_type]
        return await asyncio.to_thread(
            self._read, data_type, lambda session: _fetch_all(session, table)
        )

    async def fetch_page(
        self,
        data_type: DataType,
        *,
        page: int,
        page_size: int,
    ) -> RecordPage:
        if page < 1 or page_size < 1:
            raise ValueError(f"page and page_size must be >= 1, got {page}/{page_size}")
        table = TABLE_BY_DATA_TYPE[data_type]
        result = await asyncio.to_thread(
            self._read,
            data_type,
            lambda session: _fetch_page(session, table, page=page, page_size=page_size),
        )
        log.debug(
            "Read %s page %s from store (%s rows, has_more=%s)",
            data_type,
            page,
            len(result.records),
            result.has_more,
        )
        return result

    async def fetch_bulk_pricing(self, product_id: str) -> Sequence[Record]:
        stmt = (
            select(bulk_pricing_table)
            .where(bulk_pricing_table.c.product_id == product_id)
            .order_by(bulk_pricing_table.c.min_quantity, bulk_pricing_table.c.id)
        )
        return await asyncio.to_thread(
            self._read, DataType.BULK_PRICING, lambda session: _rows(session, stmt)
        )

    def _read[T](self, data_type: DataType, operation: Callable[[Session], T]) -> T:
        try:
            with self.session_factory() as session:
                return operation(session)
        except SQLAlchemyError as exc:
            log.error("Reading %s from the store failed: %s", data_type, exc)
            raise ExistingStateUnavailableError(
                f"Could not read existing {data_type} from the store", data_type=data_type
            ) from exc


def _ordered(table: Table) -> Select[tuple[object, ...]]:
    return select(table).order_by(table.c.created_at, table.c.id)


def _fetch_all(session: Session, table: Table) -> list[dict[str, object]]:
    records = _rows(session, _ordered(table))
    if table is TABLE_BY_DATA_TYPE[DataType.SALES]:
        _attach_sale_items(session, records)
    return records


def _fetch_page(session: Session, table: Table, *, page: int, page_size: int) -> RecordPage:
    stmt = _ordered(table).limit(page_size + 1).offset((page - 1) * page_size)
    records = _rows(session, stmt)
    has_more = len(records) > page_size
    records = records[:page_size]
    if table is TABLE_BY_DATA_TYPE[DataType.SALES]:
        _attach_sale_items(session, records)
    return RecordPage(records=tuple(records), has_more=has_more)


def _attach_sale_items(session: Session, sales: list[dict[str, object]]) -> None:
    if not sales:
        return
    items_by_sale: dict[object, list[Record]] = {sale["id"]: [] for sale in sales}
    stmt = (
        select(sale_item_table)
        .where(sale_item_table.c.sale_id.in_(list(items_by_sale)))
        .order_by(sale_item_table.c.sale_id, sale_item_table.c.id)
    )
    for item in _rows(session, stmt):
        items_by_sale[item["sale_id"]].append(item)
    for sale in sales:
        sale["items"] = items_by_sale[sale["id"]]


def _rows(session: Session, stmt: Select[tuple[object, ...]]) -> list[dict[str, object]]:
    return [_to_record(row) for row in session.execute(stmt).mappings()]


def _to_record(row: Mapping[str, object]) -> dict[str, object]:
    return {
        key: value.isoformat() if isinstance(value, datetime) else value
        for key, value in row.items()
    }
