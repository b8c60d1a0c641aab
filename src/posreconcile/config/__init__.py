"""Application configuration helpers."""

from __future__ import annotations

from .env import env_bool, env_int, env_str
from .errors import ConfigurationError
from .logging import configure_logging
from .reconciliation import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_SAMPLE_SIZE,
    ReconciliationConfig,
    get_reconciliation_config,
)
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_SAMPLE_SIZE",
    "ConfigurationError",
    "DatabaseConfig",
    "ReconciliationConfig",
    "StorageConfig",
    "configure_logging",
    "env_bool",
    "env_int",
    "env_str",
    "get_database_config",
    "get_reconciliation_config",
    "get_storage_config",
]
