"""Identity keys and value checks shared by the normalizer and detector."""

from __future__ import annotations

import math
import re
import unicodedata
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .rules import IDENTIFIER_FIELD, FieldKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from posreconcile.domain.types import Record

_UUID4_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_blank(value: object) -> bool:
    """Return whether a field value counts as absent."""

    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def is_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return not (isinstance(value, float) and math.isnan(value))


def matches_kind(value: object, kind: FieldKind) -> bool:
    if kind is FieldKind.NUMBER:
        return is_number(value)
    return isinstance(value, str)


def is_uuid4(value: object) -> bool:
    return isinstance(value, str) and _UUID4_RE.match(value) is not None


def identifier_value(value: object) -> str | None:
    """Return the comparable form of an identifier, or ``None`` when unusable.

    Legacy exports carry integer ids, so those compare by their string form.
    """

    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return None


def record_identifier(record: Record) -> str | None:
    return identifier_value(record.get(IDENTIFIER_FIELD))


def normalize_label(value: object) -> str | None:
    """Normalize a name-like value for case-insensitive exact comparison."""

    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str) or not value.strip():
        return None
    return unicodedata.normalize("NFKC", value).casefold()


def collect_identifiers(records: Iterable[object]) -> set[str]:
    """Return the identifiers of every mapping in ``records``."""

    identifiers: set[str] = set()
    for record in records:
        if not isinstance(record, Mapping):
            continue
        identifier = record_identifier(record)
        if identifier is not None:
            identifiers.add(identifier)
    return identifiers


type LabelKey = tuple[str, str]


@dataclass(slots=True)
class IdentityIndex:
    """Lookup of existing records by identifier and by normalized label.

    When several existing records share a key, the first one in store order wins.
    """

    label_fields: tuple[str, ...] = ()
    by_id: dict[str, Record] = field(default_factory=dict[str, "Record"])
    by_label: dict[LabelKey, Record] = field(default_factory=dict[LabelKey, "Record"])

    @classmethod
    def build(cls, records: Iterable[object], *, label_fields: tuple[str, ...]) -> IdentityIndex:
        index = cls(label_fields=label_fields)
        for record in records:
            if isinstance(record, Mapping):
                index.add(record)
        return index

    def add(self, record: Record) -> None:
        identifier = record_identifier(record)
        if identifier is not None:
            self.by_id.setdefault(identifier, record)
        for label_field in self.label_fields:
            label = normalize_label(record.get(label_field))
            if label is not None:
                self.by_label.setdefault((label_field, label), record)

    def match_identifier(self, record: Record) -> Record | None:
        identifier = record_identifier(record)
        if identifier is None:
            return None
        return self.by_id.get(identifier)

    def match_label(self, record: Record) -> tuple[str, Record] | None:
        """Return the first label field that matches and the matched record."""

        for label_field in self.label_fields:
            label = normalize_label(record.get(label_field))
            if label is None:
                continue
            existing = self.by_label.get((label_field, label))
            if existing is not None:
                return label_field, existing
        return None
