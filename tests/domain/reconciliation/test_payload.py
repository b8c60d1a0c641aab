from __future__ import annotations

import pytest

from posreconcile.domain.reconciliation import (
    PayloadLayout,
    availability_feedback,
    extract_sections,
    validate_data_type_availability,
)
from posreconcile.domain.types import DataType

UUID_A = "3f2b8c1e-4d5a-4e6f-9a7b-1c2d3e4f5a6b"


def envelope(**sections: object) -> dict[str, object]:
    return {"version": "2.0", "dataType": "all", "data": sections}


def test_list_sections_are_available_with_counts() -> None:
    result = validate_data_type_availability(
        envelope(products=[{"name": "A"}, {"name": "B"}], customers=[{"name": "C"}])
    )

    assert result.is_valid
    assert result.available_types == (DataType.PRODUCTS, DataType.CUSTOMERS)
    assert result.detailed_counts == {DataType.PRODUCTS: 2, DataType.CUSTOMERS: 1}
    assert result.corrupted_sections == ()
    assert result.message is None


def test_corrupted_section_never_blocks_siblings() -> None:
    result = validate_data_type_availability(
        envelope(products=[{"name": "A"}], sales="not-an-array", customers={"name": "x"})
    )

    assert result.is_valid
    assert result.available_types == (DataType.PRODUCTS,)
    assert result.corrupted_sections == (DataType.CUSTOMERS, DataType.SALES)
    assert result.message == (
        "Some data sections are corrupted and will be skipped: customers, sales"
    )
    assert result.validation_errors == (
        'Data section "sales" is not an array (found string)',
        'Data section "customers" is not an array (found object)',
    )


def test_only_corrupted_sections_is_invalid() -> None:
    result = validate_data_type_availability(envelope(products=None, expenses=12))

    assert not result.is_valid
    assert result.available_types == ()
    assert result.corrupted_sections == (DataType.PRODUCTS, DataType.EXPENSES)
    assert result.message == (
        "Import data contains only corrupted data sections: products, expenses"
    )


def test_no_known_sections_is_invalid() -> None:
    result = validate_data_type_availability(envelope(suppliers=[{"name": "S"}]))

    assert not result.is_valid
    assert result.corrupted_sections == ()
    assert result.unknown_sections == ("suppliers",)
    assert result.message == "Import data does not contain any valid data"


def test_empty_list_is_available_with_zero_count() -> None:
    result = validate_data_type_availability(envelope(categories=[]))

    assert result.available_types == (DataType.CATEGORIES,)
    assert result.detailed_counts == {DataType.CATEGORIES: 0}


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        (None, "Import data is empty or null"),
        (["products"], "Import data is not a JSON object"),
        (
            {"products": []},
            'Import data does not contain a valid data structure (missing "data" field)',
        ),
        ({"data": []}, 'Import data "data" field is not an object'),
    ],
)
def test_envelope_defects_yield_invalid_result(payload: object, message: str) -> None:
    result = validate_data_type_availability(payload)

    assert not result.is_valid
    assert result.message == message
    assert result.validation_errors == (message,)


def test_sections_layout_reads_top_level_keys() -> None:
    payload = {"products": [{"name": "A"}], "stockMovements": "broken"}

    result = validate_data_type_availability(payload, layout=PayloadLayout.SECTIONS)

    assert result.available_types == (DataType.PRODUCTS,)
    assert result.corrupted_sections == (DataType.STOCK_MOVEMENTS,)


def test_unknown_layout_is_rejected() -> None:
    with pytest.raises(ValueError):
        validate_data_type_availability({}, layout="flat")


def test_section_lists_follow_data_type_order() -> None:
    extracted = extract_sections(
        envelope(bulkPricing=[], sales=[{"id": 1}], products="bad", categories=[])
    )

    assert list(extracted.section_lists()) == [
        DataType.CATEGORIES,
        DataType.SALES,
        DataType.BULK_PRICING,
    ]


def test_identifier_warnings_flag_non_uuid_ids() -> None:
    result = validate_data_type_availability(
        envelope(
            products=[{"id": UUID_A, "name": "A"}, {"id": "prod-1", "name": "B"}],
            sales=[{"id": UUID_A, "items": [{"product_id": 7}]}],
        )
    )

    assert result.identifier_warnings == (
        "products 1: Invalid UUID format for id: prod-1",
        "sales 0, items[0]: Invalid UUID format for product_id: 7",
    )


def test_feedback_lists_available_types() -> None:
    result = validate_data_type_availability(
        envelope(products=[{"name": "A"}, {"name": "B"}, {"name": "C"}], sales=3)
    )

    assert availability_feedback(result) == (
        "Import data is ready for import.\n"
        "Available data: products (3 records)\n"
        "Some data sections are corrupted and will be skipped: sales"
    )


def test_feedback_for_invalid_result_is_the_message() -> None:
    result = validate_data_type_availability(envelope())

    assert availability_feedback(result) == "Import data does not contain any valid data"
