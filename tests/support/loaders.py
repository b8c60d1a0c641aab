"""In-memory fakes of the existing-state loader port."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from posreconcile.domain.ports import ExistingStateUnavailableError, RecordPage
from posreconcile.domain.types import DataType

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from posreconcile.domain.types import Record


@dataclass
class InMemoryExistingStateLoader:
    """Serve fixed records per type and remember every call made."""

    records: Mapping[DataType, Sequence[Record]] = field(default_factory=dict)
    calls: list[tuple[str, object]] = field(default_factory=list)

    async def fetch_records(self, data_type: DataType) -> Sequence[Record]:
        self.calls.append(("records", data_type))
        return list(self.records.get(data_type, ()))

    async def fetch_page(
        self,
        data_type: DataType,
        *,
        page: int,
        page_size: int,
    ) -> RecordPage:
        self.calls.append(("page", (data_type, page, page_size)))
        rows = list(self.records.get(data_type, ()))
        start = (page - 1) * page_size
        chunk = rows[start : start + page_size]
        return RecordPage(records=tuple(chunk), has_more=start + page_size < len(rows))

    async def fetch_bulk_pricing(self, product_id: str) -> Sequence[Record]:
        self.calls.append(("bulk_pricing", product_id))
        return [
            tier
            for tier in self.records.get(DataType.BULK_PRICING, ())
            if tier.get("product_id") == product_id
        ]

    def requested_types(self) -> set[DataType]:
        requested: set[DataType] = set()
        for kind, argument in self.calls:
            if kind == "records":
                requested.add(argument)  # type: ignore[arg-type]
            elif kind == "page":
                requested.add(argument[0])  # type: ignore[index]
        return requested


@dataclass
class FailingExistingStateLoader:
    """Fail every read, as a store that went away would."""

    error: Exception = field(
        default_factory=lambda: ExistingStateUnavailableError("store offline")
    )

    async def fetch_records(self, data_type: DataType) -> Sequence[Record]:
        raise self.error

    async def fetch_page(
        self,
        data_type: DataType,
        *,
        page: int,
        page_size: int,
    ) -> RecordPage:
        raise self.error

    async def fetch_bulk_pricing(self, product_id: str) -> Sequence[Record]:
        raise self.error
