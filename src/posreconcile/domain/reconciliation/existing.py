"""Snapshot of the persisted records a reconciliation pass compares against.

Loading goes through the ``ExistingStateLoader`` port only. Paginated types
are read page by page until the store reports no more rows; bulk pricing
tiers are looked up per existing product. Loader failures are not handled
here, so they reach the caller unchanged.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from posreconcile.domain.types import DATA_TYPES, PAGINATED_TYPES, DataType

from .identity import collect_identifiers, record_identifier

if TYPE_CHECKING:
    from collections.abc import Iterable

    from posreconcile.domain.ports import ExistingStateLoader
    from posreconcile.domain.types import Record

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExistingState:
    """Existing records per data type, read once per pass."""

    records_by_type: Mapping[DataType, tuple[Record, ...]] = field(
        default_factory=dict[DataType, tuple["Record", ...]]
    )

    def records(self, data_type: DataType) -> tuple[Record, ...]:
        return self.records_by_type.get(data_type, ())

    def identifiers(self, data_type: DataType) -> set[str]:
        return collect_identifiers(self.records(data_type))


async def load_existing_state(
    loader: ExistingStateLoader,
    data_types: Iterable[DataType],
    *,
    page_size: int,
    concurrent: bool = True,
) -> ExistingState:
    """Fetch the existing records of ``data_types``.

    With ``concurrent`` the per-type reads are awaited together; the result
    does not depend on the order in which they complete.
    """

    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")

    requested = set(data_types)
    plain_types = [
        data_type
        for data_type in DATA_TYPES
        if data_type is not DataType.BULK_PRICING
        and (data_type in requested or _needed_for_bulk_pricing(data_type, requested))
    ]

    if concurrent:
        results = await asyncio.gather(
            *(_load_records(loader, data_type, page_size=page_size) for data_type in plain_types)
        )
    else:
        results = [
            await _load_records(loader, data_type, page_size=page_size)
            for data_type in plain_types
        ]
    records_by_type = dict(zip(plain_types, results, strict=True))

    if DataType.BULK_PRICING in requested:
        records_by_type[DataType.BULK_PRICING] = await _load_bulk_pricing(
            loader, records_by_type[DataType.PRODUCTS]
        )

    log.debug(
        "Loaded existing state: %s",
        ", ".join(f"{data_type}={len(records)}" for data_type, records in records_by_type.items()),
    )
    return ExistingState(records_by_type=records_by_type)


def _needed_for_bulk_pricing(data_type: DataType, requested: set[DataType]) -> bool:
    return data_type is DataType.PRODUCTS and DataType.BULK_PRICING in requested


async def _load_records(
    loader: ExistingStateLoader,
    data_type: DataType,
    *,
    page_size: int,
) -> tuple[Record, ...]:
    if data_type not in PAGINATED_TYPES:
        return tuple(await loader.fetch_records(data_type))

    records: list[Record] = []
    page = 1
    while True:
        result = await loader.fetch_page(data_type, page=page, page_size=page_size)
        records.extend(result.records)
        log.debug("Fetched %s page %s (%s rows)", data_type, page, len(result.records))
        if not result.has_more:
            break
        page += 1
    return tuple(records)


async def _load_bulk_pricing(
    loader: ExistingStateLoader,
    products: tuple[Record, ...],
) -> tuple[Record, ...]:
    tiers: list[Record] = []
    for product in products:
        product_id = record_identifier(product)
        if product_id is None:
            continue
        tiers.extend(await loader.fetch_bulk_pricing(product_id))
    return tuple(tiers)
