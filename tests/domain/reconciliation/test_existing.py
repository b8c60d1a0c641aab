from __future__ import annotations

import asyncio

import pytest

from posreconcile.domain.reconciliation import load_existing_state
from posreconcile.domain.types import DataType
from tests.support.loaders import InMemoryExistingStateLoader


def test_page_size_must_be_positive() -> None:
    loader = InMemoryExistingStateLoader()

    with pytest.raises(ValueError, match="page_size"):
        asyncio.run(load_existing_state(loader, [DataType.SALES], page_size=0))


def test_state_exposes_records_and_identifiers() -> None:
    loader = InMemoryExistingStateLoader(
        records={
            DataType.CUSTOMERS: [{"id": "c1", "name": "Ada"}, {"name": "No id"}],
            DataType.EXPENSES: [{"id": 5, "amount": 3, "description": "Rent"}],
        }
    )

    state = asyncio.run(
        load_existing_state(
            loader, [DataType.CUSTOMERS, DataType.EXPENSES], page_size=10, concurrent=False
        )
    )

    assert len(state.records(DataType.CUSTOMERS)) == 2
    assert state.identifiers(DataType.CUSTOMERS) == {"c1"}
    assert state.identifiers(DataType.EXPENSES) == {"5"}
    assert state.records(DataType.PRODUCTS) == ()
    assert loader.calls == [
        ("records", DataType.CUSTOMERS),
        ("page", (DataType.EXPENSES, 1, 10)),
    ]
