"""Read-only port onto the persisted point-of-sale records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from posreconcile.domain.types import DataType, Record


class ExistingStateUnavailableError(RuntimeError):
    """Raised when the store cannot be read; distinct from "no conflicts"."""

    def __init__(self, message: str, *, data_type: DataType | None = None) -> None:
        super().__init__(message)
        self.data_type = data_type


@dataclass(slots=True, frozen=True)
class RecordPage:
    """One page of persisted records."""

    records: Sequence[Record] = field(default_factory=tuple)
    has_more: bool = False


@runtime_checkable
class ExistingStateLoader(Protocol):
    """Async accessor for the current records of each data type."""

    async def fetch_records(self, data_type: DataType) -> Sequence[Record]: ...

    async def fetch_page(
        self,
        data_type: DataType,
        *,
        page: int,
        page_size: int,
    ) -> RecordPage: ...

    async def fetch_bulk_pricing(self, product_id: str) -> Sequence[Record]: ...
