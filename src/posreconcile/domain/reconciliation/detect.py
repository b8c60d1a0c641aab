"""Per-type conflict detection.

Every incoming record runs through one priority pipeline; the first rule
that applies decides the outcome and later rules are not consulted:

1) validation: not an object, a required field missing/blank, or a value of
   the wrong kind -> ``validation_failed``
2) identifier equal to an existing record's -> ``duplicate`` by uuid
3) a label field equal (case-insensitive) to an existing record's ->
   ``duplicate`` by name
4) a reference to an identifier unknown to both the store and the batch ->
   ``reference_missing``
5) otherwise the record is clean

Which fields are required, labels or references comes from ``rules.RULES``.
Bad incoming data never raises here.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from .contracts import ConflictRecord, ConflictType, MatchedBy
from .identity import (
    IdentityIndex,
    identifier_value,
    is_blank,
    matches_kind,
    record_identifier,
)
from .payload import is_section_list
from .rules import IDENTIFIER_FIELD, RULES, FieldKind, FieldRules, RecordRules, ReferenceRule

if TYPE_CHECKING:
    from collections.abc import AbstractSet, Iterable

    from posreconcile.domain.types import DataType, Record

log = logging.getLogger(__name__)

type KnownReferences = Mapping[DataType, AbstractSet[str]]
type Problem = tuple[str | None, str]

_KIND_NAMES = {FieldKind.NUMBER: "a number", FieldKind.TEXT: "text"}


def detect_conflicts(
    data_type: DataType,
    incoming_records: Iterable[object],
    existing_records: Iterable[object],
    *,
    known_references: KnownReferences | None = None,
) -> list[ConflictRecord]:
    """Classify ``incoming_records`` of one type against the existing ones.

    ``known_references`` maps each referenced type to the identifiers that
    exist in the store or in the same import batch. References to a type
    missing from the mapping are not checked.
    """

    rules = RULES[data_type]
    index = IdentityIndex.build(existing_records, label_fields=rules.label_fields)
    references = known_references or {}

    conflicts: list[ConflictRecord] = []
    for position, record in enumerate(incoming_records):
        conflict = _classify(
            data_type,
            record,
            position=position,
            rules=rules,
            index=index,
            known_references=references,
        )
        if conflict is None:
            continue
        log.debug(
            "Classified %s[%s] as %s (%s)",
            data_type,
            position,
            conflict.conflict_type,
            conflict.message,
        )
        conflicts.append(conflict)
    return conflicts


def _classify(
    data_type: DataType,
    record: object,
    *,
    position: int,
    rules: RecordRules,
    index: IdentityIndex,
    known_references: KnownReferences,
) -> ConflictRecord | None:
    if not isinstance(record, Mapping):
        return ConflictRecord(
            data_type=data_type,
            record=record,
            conflict_type=ConflictType.VALIDATION_FAILED,
            index=position,
            message=f"{data_type} at index {position} is not an object",
        )

    problem = _validation_problem(record, rules)
    if problem is not None:
        field_name, reason = problem
        return ConflictRecord(
            data_type=data_type,
            record=record,
            conflict_type=ConflictType.VALIDATION_FAILED,
            index=position,
            field_name=field_name,
            message=f"{data_type} at index {position} has {reason}",
        )

    duplicate = _duplicate_conflict(data_type, record, position=position, rules=rules, index=index)
    if duplicate is not None:
        return duplicate

    return _reference_conflict(
        data_type,
        record,
        position=position,
        rules=rules,
        known_references=known_references,
    )


def _validation_problem(record: Record, rules: RecordRules) -> Problem | None:
    problem = _field_problem(record, rules.fields)
    if problem is not None:
        return problem

    for container, item_rules in rules.nested.items():
        items = record.get(container)
        if items is None:
            continue
        if not is_section_list(items):
            return container, f"invalid data types: {container} is not an array"
        for item_index, item in enumerate(items):
            prefix = f"{container}[{item_index}]"
            if not isinstance(item, Mapping):
                return prefix, f"invalid data types: {prefix} is not an object"
            problem = _field_problem(item, item_rules, prefix=f"{prefix}.")
            if problem is not None:
                return problem
    return None


def _field_problem(record: Record, rules: FieldRules, *, prefix: str = "") -> Problem | None:
    missing = [name for name in rules.required if is_blank(record.get(name))]
    if missing:
        names = ", ".join(f"{prefix}{name}" for name in missing)
        return f"{prefix}{missing[0]}", f"missing required fields: {names}"

    for name, kind in rules.kinds.items():
        value = record.get(name)
        if value is None or matches_kind(value, kind):
            continue
        reason = f"invalid data types: {prefix}{name} must be {_KIND_NAMES[kind]}"
        return f"{prefix}{name}", reason
    return None


def _duplicate_conflict(
    data_type: DataType,
    record: Record,
    *,
    position: int,
    rules: RecordRules,
    index: IdentityIndex,
) -> ConflictRecord | None:
    existing = index.match_identifier(record)
    if existing is not None:
        identifier = record_identifier(record)
        return ConflictRecord(
            data_type=data_type,
            record=record,
            conflict_type=ConflictType.DUPLICATE,
            matched_by=MatchedBy.UUID,
            existing_match_id=identifier,
            existing_record=existing,
            index=position,
            field_name=IDENTIFIER_FIELD,
            message=f'{data_type} with ID "{identifier}" already exists',
        )

    label_match = index.match_label(record)
    if label_match is None:
        return None
    label_field, existing = label_match
    value = record.get(label_field)
    if label_field == "name":
        message = f'{rules.noun} "{value}" already exists'
    else:
        message = f'{rules.noun} with {label_field} "{value}" already exists'
    return ConflictRecord(
        data_type=data_type,
        record=record,
        conflict_type=ConflictType.DUPLICATE,
        matched_by=MatchedBy.NAME,
        existing_match_id=record_identifier(existing),
        existing_record=existing,
        index=position,
        field_name=label_field,
        message=message,
    )


def _reference_conflict(
    data_type: DataType,
    record: Record,
    *,
    position: int,
    rules: RecordRules,
    known_references: KnownReferences,
) -> ConflictRecord | None:
    for reference in rules.references:
        known = known_references.get(reference.target)
        if known is None:
            continue
        dangling = _dangling_reference(record, reference, known)
        if dangling is None:
            continue
        field_name, value = dangling
        target_noun = RULES[reference.target].noun
        return ConflictRecord(
            data_type=data_type,
            record=record,
            conflict_type=ConflictType.REFERENCE_MISSING,
            index=position,
            field_name=field_name,
            message=f'{target_noun} with ID "{value}" not found',
        )
    return None


def _dangling_reference(
    record: Record,
    reference: ReferenceRule,
    known: AbstractSet[str],
) -> tuple[str, object] | None:
    """Return the first field path and value of ``reference`` not in ``known``."""

    if reference.container is None:
        value = record.get(reference.field_name)
        if _is_known(value, known):
            return None
        return reference.field_name, value

    items = record.get(reference.container)
    if not is_section_list(items):
        return None
    for item_index, item in enumerate(items):
        if not isinstance(item, Mapping):
            continue
        value = item.get(reference.field_name)
        if not _is_known(value, known):
            return f"{reference.container}[{item_index}].{reference.field_name}", value
    return None


def _is_known(value: object, known: AbstractSet[str]) -> bool:
    if is_blank(value):
        # optional references may be left empty
        return True
    identifier = identifier_value(value)
    return identifier is not None and identifier in known
