"""Pure domain layer: record types, ports and the reconciliation core."""

from __future__ import annotations

from .types import DATA_TYPES, PAGINATED_TYPES, DataType, Record, parse_data_type

__all__ = [
    "DATA_TYPES",
    "PAGINATED_TYPES",
    "DataType",
    "Record",
    "parse_data_type",
]
