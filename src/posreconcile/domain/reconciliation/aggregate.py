"""Full reconciliation pass across every data type of an import payload."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from posreconcile.config.reconciliation import ReconciliationConfig
from posreconcile.domain.types import DATA_TYPES

from .contracts import ConflictRecord, ConflictSummary, ImportPreview
from .detect import detect_conflicts
from .existing import ExistingState, load_existing_state
from .identity import collect_identifiers
from .payload import PayloadLayout, extract_sections, validate_data_type_availability
from .rules import referenced_types

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from posreconcile.domain.ports import ExistingStateLoader
    from posreconcile.domain.types import DataType

log = logging.getLogger(__name__)


def build_summary(
    sections: Mapping[DataType, Sequence[object]],
    state: ExistingState,
) -> ConflictSummary:
    """Run the detector for every section and merge the results.

    Types without a section contribute an empty list, so the summary always
    covers every data type.
    """

    conflicts_by_type: dict[DataType, tuple[ConflictRecord, ...]] = {
        data_type: () for data_type in DATA_TYPES
    }
    for data_type, records in sections.items():
        known_references = {
            target: state.identifiers(target) | collect_identifiers(sections.get(target, ()))
            for target in referenced_types(data_type)
        }
        conflicts_by_type[data_type] = tuple(
            detect_conflicts(
                data_type,
                records,
                state.records(data_type),
                known_references=known_references,
            )
        )
    return ConflictSummary(conflicts_by_type)


@dataclass(slots=True)
class ConflictAggregator:
    """Reconcile import payloads against the store behind ``loader``.

    The ``*_sync`` variants wrap the coroutines with ``asyncio.run`` for
    callers without an event loop.
    """

    loader: ExistingStateLoader
    config: ReconciliationConfig = field(default_factory=ReconciliationConfig)

    async def detect_all_conflicts(
        self,
        payload: object,
        *,
        layout: PayloadLayout | str = PayloadLayout.ENVELOPE,
    ) -> ConflictSummary:
        sections = extract_sections(payload, layout=layout).section_lists()
        if not sections:
            log.info("No usable import sections; nothing to reconcile")
            return ConflictSummary.empty()

        needed = set(sections)
        for data_type in sections:
            needed |= referenced_types(data_type)

        log.info(
            "Starting conflict detection: sections=%s",
            ", ".join(f"{data_type}={len(records)}" for data_type, records in sections.items()),
        )
        state = await load_existing_state(
            self.loader,
            needed,
            page_size=self.config.page_size,
            concurrent=self.config.concurrent_loads,
        )
        summary = build_summary(sections, state)

        statistics = summary.conflict_statistics
        log.info(
            "Finished conflict detection: total=%s (%s)",
            summary.total_conflicts,
            ", ".join(
                f"{data_type}={statistics[data_type].total}"
                for data_type in DATA_TYPES
                if statistics[data_type].total
            )
            or "clean",
        )
        return summary

    def detect_all_conflicts_sync(
        self,
        payload: object,
        *,
        layout: PayloadLayout | str = PayloadLayout.ENVELOPE,
    ) -> ConflictSummary:
        return asyncio.run(self.detect_all_conflicts(payload, layout=layout))

    async def preview_import(
        self,
        payload: object,
        *,
        layout: PayloadLayout | str = PayloadLayout.ENVELOPE,
    ) -> ImportPreview:
        """Combine section counts, samples, validation and conflicts."""

        sections = extract_sections(payload, layout=layout).section_lists()
        validation = validate_data_type_availability(payload, layout=layout)
        conflict_summary = await self.detect_all_conflicts(payload, layout=layout)
        sample_size = self.config.sample_size
        return ImportPreview(
            record_counts={data_type: len(records) for data_type, records in sections.items()},
            sample_data={
                data_type: tuple(records[:sample_size]) for data_type, records in sections.items()
            },
            validation=validation,
            conflict_summary=conflict_summary,
        )

    def preview_import_sync(
        self,
        payload: object,
        *,
        layout: PayloadLayout | str = PayloadLayout.ENVELOPE,
    ) -> ImportPreview:
        return asyncio.run(self.preview_import(payload, layout=layout))


async def detect_all_conflicts(
    payload: object,
    *,
    loader: ExistingStateLoader,
    layout: PayloadLayout | str = PayloadLayout.ENVELOPE,
    config: ReconciliationConfig | None = None,
) -> ConflictSummary:
    """Reconcile ``payload`` against ``loader`` in one call."""

    aggregator = ConflictAggregator(loader=loader, config=config or ReconciliationConfig())
    return await aggregator.detect_all_conflicts(payload, layout=layout)
