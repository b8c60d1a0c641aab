"""Result types produced by the reconciliation core.

This module intentionally holds only:
- the closed conflict taxonomy (``ConflictType`` / ``MatchedBy``)
- the immutable per-record and aggregated result dataclasses
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from posreconcile.domain.types import DATA_TYPES, DataType

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from posreconcile.domain.types import Record


class ConflictType(StrEnum):
    """Outcome attached to an incoming record that did not pass clean."""

    DUPLICATE = "duplicate"
    VALIDATION_FAILED = "validation_failed"
    REFERENCE_MISSING = "reference_missing"


class MatchedBy(StrEnum):
    """Identity strategy that produced a duplicate classification."""

    UUID = "uuid"
    NAME = "name"


@dataclass(frozen=True, slots=True, kw_only=True)
class ConflictRecord:
    """One incoming record paired with its classification."""

    data_type: DataType
    record: object
    conflict_type: ConflictType
    matched_by: MatchedBy | None = None
    existing_match_id: str | None = None
    existing_record: Record | None = None
    index: int = 0
    field_name: str | None = None
    message: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.data_type, DataType):
            raise TypeError(f"Unknown data type: {self.data_type!r}")
        if not isinstance(self.conflict_type, ConflictType):
            raise TypeError(f"Unknown conflict type: {self.conflict_type!r}")
        if self.matched_by is not None and not isinstance(self.matched_by, MatchedBy):
            raise TypeError(f"Unknown match strategy: {self.matched_by!r}")

        if self.conflict_type is ConflictType.DUPLICATE:
            if self.matched_by is None:
                raise ValueError("Duplicate conflicts must state how they were matched")
            return
        if self.matched_by is not None:
            raise ValueError(f"matched_by is only valid for duplicates, not {self.conflict_type}")
        if self.existing_match_id is not None or self.existing_record is not None:
            raise ValueError(
                f"Existing match details are only valid for duplicates, not {self.conflict_type}"
            )

    def to_dict(self) -> dict[str, object]:
        return {
            "dataType": self.data_type.value,
            "conflictType": self.conflict_type.value,
            "matchedBy": self.matched_by.value if self.matched_by else None,
            "existingMatchId": self.existing_match_id,
            "index": self.index,
            "field": self.field_name,
            "message": self.message,
            "record": self.record,
        }


@dataclass(frozen=True, slots=True)
class TypeStatistics:
    """Per-conflict-type counts for one data type."""

    duplicate: int = 0
    validation_failed: int = 0
    reference_missing: int = 0

    @property
    def total(self) -> int:
        return self.duplicate + self.validation_failed + self.reference_missing

    @classmethod
    def from_conflicts(cls, conflicts: Iterable[ConflictRecord]) -> TypeStatistics:
        counts = Counter(conflict.conflict_type for conflict in conflicts)
        return cls(
            duplicate=counts[ConflictType.DUPLICATE],
            validation_failed=counts[ConflictType.VALIDATION_FAILED],
            reference_missing=counts[ConflictType.REFERENCE_MISSING],
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            ConflictType.DUPLICATE.value: self.duplicate,
            ConflictType.VALIDATION_FAILED.value: self.validation_failed,
            ConflictType.REFERENCE_MISSING.value: self.reference_missing,
        }


@dataclass(frozen=True, slots=True)
class ConflictSummary:
    """Aggregated result of one reconciliation pass.

    ``conflicts_by_type`` always holds every data type; totals and statistics
    are derived from it so they cannot drift apart.
    """

    conflicts_by_type: Mapping[DataType, tuple[ConflictRecord, ...]]

    def __post_init__(self) -> None:
        keys = set(self.conflicts_by_type)
        if keys != set(DATA_TYPES):
            missing = sorted(set(DATA_TYPES) - keys)
            extra = sorted(str(key) for key in keys - set(DATA_TYPES))
            raise ValueError(
                f"Summary must cover every data type: missing={missing}, extra={extra}"
            )
        for data_type, conflicts in self.conflicts_by_type.items():
            for conflict in conflicts:
                if conflict.data_type is not data_type:
                    raise ValueError(
                        f"{conflict.data_type} conflict filed under {data_type} in summary"
                    )

    @classmethod
    def empty(cls) -> ConflictSummary:
        return cls({data_type: () for data_type in DATA_TYPES})

    @property
    def total_conflicts(self) -> int:
        return sum(len(conflicts) for conflicts in self.conflicts_by_type.values())

    @property
    def has_conflicts(self) -> bool:
        return self.total_conflicts > 0

    @property
    def conflict_statistics(self) -> dict[DataType, TypeStatistics]:
        return {
            data_type: TypeStatistics.from_conflicts(self.conflicts_by_type[data_type])
            for data_type in DATA_TYPES
        }

    def all_conflicts(self) -> tuple[ConflictRecord, ...]:
        """Return every conflict, grouped in data-type order then input order."""

        return tuple(
            conflict for data_type in DATA_TYPES for conflict in self.conflicts_by_type[data_type]
        )

    def to_dict(self) -> dict[str, object]:
        statistics = self.conflict_statistics
        return {
            "hasConflicts": self.has_conflicts,
            "totalConflicts": self.total_conflicts,
            "conflictsByType": {
                data_type.value: [
                    conflict.to_dict() for conflict in self.conflicts_by_type[data_type]
                ]
                for data_type in DATA_TYPES
            },
            "conflictStatistics": {
                data_type.value: statistics[data_type].to_dict() for data_type in DATA_TYPES
            },
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class ValidationResult:
    """Outcome of inspecting which payload sections are usable."""

    available_types: tuple[DataType, ...] = ()
    detailed_counts: Mapping[DataType, int] = field(default_factory=dict[DataType, int])
    corrupted_sections: tuple[DataType, ...] = ()
    message: str | None = None
    validation_errors: tuple[str, ...] = ()
    unknown_sections: tuple[str, ...] = ()
    identifier_warnings: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        overlap = set(self.available_types) & set(self.corrupted_sections)
        if overlap:
            raise ValueError(f"Sections cannot be both available and corrupted: {sorted(overlap)}")

    @property
    def is_valid(self) -> bool:
        return bool(self.available_types)

    def to_dict(self) -> dict[str, object]:
        return {
            "isValid": self.is_valid,
            "availableTypes": [data_type.value for data_type in self.available_types],
            "detailedCounts": {
                data_type.value: count for data_type, count in self.detailed_counts.items()
            },
            "corruptedSections": [data_type.value for data_type in self.corrupted_sections],
            "message": self.message,
            "validationErrors": list(self.validation_errors),
            "unknownSections": list(self.unknown_sections),
            "identifierWarnings": list(self.identifier_warnings),
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class ImportPreview:
    """Everything a review screen needs before an import is confirmed."""

    record_counts: Mapping[DataType, int]
    sample_data: Mapping[DataType, tuple[object, ...]]
    validation: ValidationResult
    conflict_summary: ConflictSummary

    @property
    def conflicts(self) -> tuple[ConflictRecord, ...]:
        return self.conflict_summary.all_conflicts()

    def to_dict(self) -> dict[str, object]:
        return {
            "recordCounts": {
                data_type.value: count for data_type, count in self.record_counts.items()
            },
            "sampleData": {
                data_type.value: list(records) for data_type, records in self.sample_data.items()
            },
            "validation": self.validation.to_dict(),
            "conflictSummary": self.conflict_summary.to_dict(),
        }
