from __future__ import annotations

import pytest

from posreconcile.domain.reconciliation.identity import (
    IdentityIndex,
    identifier_value,
    is_number,
    is_uuid4,
    normalize_label,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(1, True), (2.5, True), (True, False), (float("nan"), False), ("3", False), (None, False)],
)
def test_is_number(value: object, expected: bool) -> None:
    assert is_number(value) is expected


def test_uuid4_detection() -> None:
    assert is_uuid4("3F2B8C1E-4D5A-4E6F-9A7B-1C2D3E4F5A6B")
    assert not is_uuid4("3f2b8c1e-4d5a-1e6f-9a7b-1c2d3e4f5a6b")
    assert not is_uuid4("prod-1")


@pytest.mark.parametrize(
    ("value", "expected"),
    [("prod-1", "prod-1"), (42, "42"), ("  ", None), (False, None), (1.0, None)],
)
def test_identifier_value(value: object, expected: str | None) -> None:
    assert identifier_value(value) == expected


def test_normalize_label_folds_case_and_width() -> None:
    assert normalize_label("STRASSE") == normalize_label("straße")
    assert normalize_label("ＡＢＣ") == "abc"
    assert normalize_label("") is None
    assert normalize_label(None) is None


def test_index_ignores_blank_labels() -> None:
    index = IdentityIndex.build([{"id": "c1", "name": ""}], label_fields=("name",))

    assert index.match_label({"name": ""}) is None
    assert index.by_label == {}
