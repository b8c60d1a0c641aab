"""Declarative per-type rules consumed by the generic conflict detector."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from posreconcile.domain.types import DATA_TYPES, DataType

if TYPE_CHECKING:
    from collections.abc import Mapping


class FieldKind(StrEnum):
    TEXT = "text"
    NUMBER = "number"


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldRules:
    """Required fields and value kinds for one level of a record."""

    required: tuple[str, ...] = ()
    kinds: Mapping[str, FieldKind] = field(default_factory=dict[str, FieldKind])


@dataclass(frozen=True, slots=True, kw_only=True)
class ReferenceRule:
    """A field holding the identifier of a record of another type.

    With ``container`` set the field lives on every item of that list field
    (for example the product of each sale line item).
    """

    field_name: str
    target: DataType
    container: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class RecordRules:
    noun: str
    fields: FieldRules
    label_fields: tuple[str, ...] = ()
    references: tuple[ReferenceRule, ...] = ()
    nested: Mapping[str, FieldRules] = field(default_factory=dict[str, FieldRules])


IDENTIFIER_FIELD: Final[str] = "id"

_TEXT = FieldKind.TEXT
_NUMBER = FieldKind.NUMBER

RULES: Final[Mapping[DataType, RecordRules]] = MappingProxyType(
    {
        DataType.PRODUCTS: RecordRules(
            noun="Product",
            fields=FieldRules(
                required=("name", "price"),
                kinds={"name": _TEXT, "price": _NUMBER, "cost": _NUMBER, "quantity": _NUMBER},
            ),
            label_fields=("name", "barcode"),
            references=(ReferenceRule(field_name="category_id", target=DataType.CATEGORIES),),
        ),
        DataType.CUSTOMERS: RecordRules(
            noun="Customer",
            fields=FieldRules(required=("name",), kinds={"name": _TEXT}),
            label_fields=("name", "phone"),
        ),
        DataType.CATEGORIES: RecordRules(
            noun="Category",
            fields=FieldRules(required=("name",), kinds={"name": _TEXT}),
            label_fields=("name",),
        ),
        DataType.SALES: RecordRules(
            noun="Sale",
            fields=FieldRules(
                required=("total", "payment_method"),
                kinds={"total": _NUMBER, "payment_method": _TEXT},
            ),
            references=(
                ReferenceRule(field_name="customer_id", target=DataType.CUSTOMERS),
                ReferenceRule(field_name="product_id", target=DataType.PRODUCTS, container="items"),
            ),
            nested={
                "items": FieldRules(
                    required=("product_id",),
                    kinds={"product_id": _TEXT, "quantity": _NUMBER, "price": _NUMBER},
                ),
            },
        ),
        DataType.EXPENSES: RecordRules(
            noun="Expense",
            fields=FieldRules(
                required=("amount", "description"),
                kinds={"amount": _NUMBER, "description": _TEXT},
            ),
        ),
        DataType.STOCK_MOVEMENTS: RecordRules(
            noun="Stock movement",
            fields=FieldRules(
                required=("product_id", "movement_type", "quantity"),
                kinds={"product_id": _TEXT, "movement_type": _TEXT, "quantity": _NUMBER},
            ),
            references=(ReferenceRule(field_name="product_id", target=DataType.PRODUCTS),),
        ),
        DataType.BULK_PRICING: RecordRules(
            noun="Bulk pricing tier",
            fields=FieldRules(
                required=("product_id", "min_quantity", "bulk_price"),
                kinds={"product_id": _TEXT, "min_quantity": _NUMBER, "bulk_price": _NUMBER},
            ),
            references=(ReferenceRule(field_name="product_id", target=DataType.PRODUCTS),),
        ),
    }
)

if set(RULES) != set(DATA_TYPES):  # pragma: no cover - import-time guard
    raise RuntimeError("Reconciliation rules must cover every data type")


def referenced_types(data_type: DataType) -> frozenset[DataType]:
    """Return the data types whose identifiers ``data_type`` records point at."""

    return frozenset(reference.target for reference in RULES[data_type].references)
