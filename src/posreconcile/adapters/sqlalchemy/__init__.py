"""SQLAlchemy adapter package for the point-of-sale store."""

from __future__ import annotations

from .engine import (
    StartupError,
    configured_engine,
    create_store_engine,
    is_started,
    shutdown,
    startup,
    verify_store_schema,
)
from .loader import SqlAlchemyExistingStateLoader
from .tables import TABLE_BY_DATA_TYPE, create_all_tables, metadata

__all__ = [
    "TABLE_BY_DATA_TYPE",
    "SqlAlchemyExistingStateLoader",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "create_store_engine",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
    "verify_store_schema",
]
