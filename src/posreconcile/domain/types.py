"""Closed universe of importable record types."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any, Final


class DataType(StrEnum):
    """Record category of an import section; values are the payload keys."""

    PRODUCTS = "products"
    CUSTOMERS = "customers"
    CATEGORIES = "categories"
    SALES = "sales"
    EXPENSES = "expenses"
    STOCK_MOVEMENTS = "stockMovements"
    BULK_PRICING = "bulkPricing"


DATA_TYPES: Final[tuple[DataType, ...]] = tuple(DataType)

# Types the store serves page by page.
PAGINATED_TYPES: Final[frozenset[DataType]] = frozenset(
    {DataType.SALES, DataType.EXPENSES, DataType.STOCK_MOVEMENTS}
)

type Record = Mapping[str, Any]


def parse_data_type(key: object) -> DataType | None:
    """Return the data type for a payload key, or ``None`` for unknown keys."""

    if not isinstance(key, str):
        return None
    try:
        return DataType(key)
    except ValueError:
        return None
