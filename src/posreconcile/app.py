"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from posreconcile.adapters.import_file import load_import_file
from posreconcile.adapters.sqlalchemy import SqlAlchemyExistingStateLoader, startup
from posreconcile.config import get_database_config, get_reconciliation_config
from posreconcile.domain.reconciliation import (
    ConflictAggregator,
    PayloadLayout,
    validate_data_type_availability,
)

if TYPE_CHECKING:
    from pathlib import Path

    from posreconcile.config import ReconciliationConfig
    from posreconcile.domain.ports import ExistingStateLoader
    from posreconcile.domain.reconciliation import (
        ConflictSummary,
        ImportPreview,
        ValidationResult,
    )

log = getLogger(__name__)


def check_import_file(
    path: Path,
    *,
    layout: PayloadLayout | str = PayloadLayout.ENVELOPE,
) -> ValidationResult:
    """Report which data sections of an import file are usable."""

    return validate_data_type_availability(load_import_file(path), layout=layout)


def detect_file_conflicts(
    path: Path,
    *,
    layout: PayloadLayout | str = PayloadLayout.ENVELOPE,
    loader: ExistingStateLoader | None = None,
    config: ReconciliationConfig | None = None,
) -> ConflictSummary:
    """Reconcile an import file against the configured store."""

    payload = load_import_file(path)
    aggregator = _build_aggregator(loader=loader, config=config)
    return aggregator.detect_all_conflicts_sync(payload, layout=layout)


def preview_file(
    path: Path,
    *,
    layout: PayloadLayout | str = PayloadLayout.ENVELOPE,
    loader: ExistingStateLoader | None = None,
    config: ReconciliationConfig | None = None,
) -> ImportPreview:
    """Build the pre-import preview of an import file."""

    payload = load_import_file(path)
    aggregator = _build_aggregator(loader=loader, config=config)
    return aggregator.preview_import_sync(payload, layout=layout)


def _build_aggregator(
    *,
    loader: ExistingStateLoader | None,
    config: ReconciliationConfig | None,
) -> ConflictAggregator:
    effective_config = config or get_reconciliation_config()
    if loader is None:
        database = get_database_config()
        startup(database_uri=database.uri, force=True)
        loader = SqlAlchemyExistingStateLoader()
    log.debug(
        "Reconciling with page_size=%s, concurrent_loads=%s",
        effective_config.page_size,
        effective_config.concurrent_loads,
    )
    return ConflictAggregator(loader=loader, config=effective_config)
