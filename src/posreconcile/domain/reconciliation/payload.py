"""Payload inspection: which data-type sections are usable.

Both entry points of the engine read sections through ``extract_sections`` so
they always agree on the payload shape:

- ``PayloadLayout.ENVELOPE`` (default): sections nested under the ``data``
  key, as written by the export service::

      {"version": "2.0", "dataType": "all", "data": {"products": [...]}}

- ``PayloadLayout.SECTIONS``: sections given as top-level keys::

      {"products": [...], "customers": [...]}
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final

from posreconcile.domain.types import DATA_TYPES, DataType, parse_data_type

from .contracts import ValidationResult
from .identity import is_blank, is_uuid4
from .rules import IDENTIFIER_FIELD, RULES

log = logging.getLogger(__name__)

DATA_CONTAINER_KEY: Final[str] = "data"


class PayloadLayout(StrEnum):
    ENVELOPE = "envelope"
    SECTIONS = "sections"


@dataclass(frozen=True, slots=True)
class PayloadSections:
    """Raw section container of a payload, or the reason there is none."""

    sections: Mapping[object, object] = field(default_factory=dict[object, object])
    defect: str | None = None

    def section_lists(self) -> dict[DataType, list[object]]:
        """Return the well-formed sections in ``DATA_TYPES`` order."""

        lists: dict[DataType, list[object]] = {}
        for data_type in DATA_TYPES:
            value = self.sections.get(data_type.value)
            if is_section_list(value):
                lists[data_type] = list(value)
        return lists


def is_section_list(value: object) -> bool:
    return isinstance(value, list | tuple)


def extract_sections(
    payload: object,
    *,
    layout: PayloadLayout | str = PayloadLayout.ENVELOPE,
) -> PayloadSections:
    """Locate the section container of ``payload`` for the given layout."""

    resolved_layout = PayloadLayout(layout)
    if payload is None:
        return PayloadSections(defect="Import data is empty or null")
    if not isinstance(payload, Mapping):
        return PayloadSections(defect="Import data is not a JSON object")
    if resolved_layout is PayloadLayout.SECTIONS:
        return PayloadSections(sections=payload)

    container = payload.get(DATA_CONTAINER_KEY)
    if container is None:
        return PayloadSections(
            defect=(
                "Import data does not contain a valid data structure "
                f"(missing \"{DATA_CONTAINER_KEY}\" field)"
            )
        )
    if not isinstance(container, Mapping):
        return PayloadSections(defect=f'Import data "{DATA_CONTAINER_KEY}" field is not an object')
    return PayloadSections(sections=container)


def validate_data_type_availability(
    payload: object,
    *,
    layout: PayloadLayout | str = PayloadLayout.ENVELOPE,
) -> ValidationResult:
    """Report available, corrupted and unknown sections of ``payload``.

    A section is available when its value is a list and corrupted when the key
    is present with any other value. Neither case stops the other sections
    from being inspected.
    """

    extracted = extract_sections(payload, layout=layout)
    if extracted.defect is not None:
        log.warning("Import data rejected: %s", extracted.defect)
        return ValidationResult(message=extracted.defect, validation_errors=(extracted.defect,))

    present: set[DataType] = set()
    corrupted: set[DataType] = set()
    unknown: list[str] = []
    errors: list[str] = []
    for key, value in extracted.sections.items():
        data_type = parse_data_type(key)
        if data_type is None:
            unknown.append(str(key))
            continue
        if is_section_list(value):
            present.add(data_type)
            continue
        corrupted.add(data_type)
        errors.append(f'Data section "{key}" is not an array (found {_json_kind(value)})')
        log.warning("Corrupted import section %s (found %s)", key, _json_kind(value))

    lists = extracted.section_lists()
    available_types = tuple(data_type for data_type in DATA_TYPES if data_type in present)
    corrupted_sections = tuple(data_type for data_type in DATA_TYPES if data_type in corrupted)
    return ValidationResult(
        available_types=available_types,
        detailed_counts={data_type: len(lists[data_type]) for data_type in available_types},
        corrupted_sections=corrupted_sections,
        message=_availability_message(available_types, corrupted_sections),
        validation_errors=tuple(errors),
        unknown_sections=tuple(unknown),
        identifier_warnings=tuple(identifier_warnings(lists)),
    )


def _availability_message(
    available_types: tuple[DataType, ...],
    corrupted_sections: tuple[DataType, ...],
) -> str | None:
    corrupted_list = ", ".join(corrupted_sections)
    if not available_types:
        if corrupted_sections:
            return f"Import data contains only corrupted data sections: {corrupted_list}"
        return "Import data does not contain any valid data"
    if corrupted_sections:
        return f"Some data sections are corrupted and will be skipped: {corrupted_list}"
    return None


def _json_kind(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def identifier_warnings(lists: Mapping[DataType, list[object]]) -> list[str]:
    """Flag identifiers that are not UUID v4 strings.

    These never affect classification; stores migrated from integer ids still
    import, the warnings only tell the user which records carry legacy ids.
    """

    warnings: list[str] = []
    for data_type, records in lists.items():
        rules = RULES[data_type]
        top_level_fields = (IDENTIFIER_FIELD,) + tuple(
            reference.field_name for reference in rules.references if reference.container is None
        )
        for index, record in enumerate(records):
            if not isinstance(record, Mapping):
                continue
            prefix = f"{data_type} {index}"
            warnings.extend(_field_warnings(record, top_level_fields, prefix=prefix))
            for reference in rules.references:
                if reference.container is None:
                    continue
                items = record.get(reference.container)
                if not is_section_list(items):
                    continue
                for item_index, item in enumerate(items):
                    if isinstance(item, Mapping):
                        warnings.extend(
                            _field_warnings(
                                item,
                                (IDENTIFIER_FIELD, reference.field_name),
                                prefix=f"{prefix}, {reference.container}[{item_index}]",
                            )
                        )
    return warnings


def _field_warnings(
    record: Mapping[object, object],
    field_names: tuple[str, ...],
    *,
    prefix: str,
) -> list[str]:
    warnings: list[str] = []
    for field_name in dict.fromkeys(field_names):
        value = record.get(field_name)
        if is_blank(value) or is_uuid4(value):
            continue
        warnings.append(f"{prefix}: Invalid UUID format for {field_name}: {value}")
    return warnings


def availability_feedback(result: ValidationResult) -> str:
    """Render a ready-to-display summary of a validation result."""

    if not result.is_valid:
        return result.message or "Import data validation failed"
    counts = ", ".join(
        f"{data_type} ({result.detailed_counts.get(data_type, 0)} records)"
        for data_type in result.available_types
    )
    lines = ["Import data is ready for import.", f"Available data: {counts}"]
    if result.message:
        lines.append(result.message)
    return "\n".join(lines)
