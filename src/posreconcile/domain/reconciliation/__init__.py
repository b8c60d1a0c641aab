"""Bulk-import reconciliation core.

Flow of one pass:
1) ``payload``: find the data-type sections and report corrupted ones
2) ``existing``: read the current records of the involved types via the
   ``ExistingStateLoader`` port
3) ``detect``: classify every incoming record of one type
4) ``aggregate``: merge per-type results into a ``ConflictSummary``

Nothing in this package writes to the store.
"""

from __future__ import annotations

from .aggregate import ConflictAggregator, build_summary, detect_all_conflicts
from .contracts import (
    ConflictRecord,
    ConflictSummary,
    ConflictType,
    ImportPreview,
    MatchedBy,
    TypeStatistics,
    ValidationResult,
)
from .detect import detect_conflicts
from .existing import ExistingState, load_existing_state
from .payload import (
    PayloadLayout,
    availability_feedback,
    extract_sections,
    validate_data_type_availability,
)
from .rules import RULES, FieldKind, FieldRules, RecordRules, ReferenceRule

__all__ = [
    "RULES",
    "ConflictAggregator",
    "ConflictRecord",
    "ConflictSummary",
    "ConflictType",
    "ExistingState",
    "FieldKind",
    "FieldRules",
    "ImportPreview",
    "MatchedBy",
    "PayloadLayout",
    "RecordRules",
    "ReferenceRule",
    "TypeStatistics",
    "ValidationResult",
    "availability_feedback",
    "build_summary",
    "detect_all_conflicts",
    "detect_conflicts",
    "extract_sections",
    "load_existing_state",
    "validate_data_type_availability",
]
