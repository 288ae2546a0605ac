"""Single-field partial updates for expenses and incomes.

A PATCH body names exactly one field and its new value::

    {"field": "amount", "value": "42.10"}

``parse_field_update`` validates the value for that field and returns one of
the update variants below, which services apply with ``dataclasses.replace``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, FrozenSet, Mapping, Optional, Union

from .exceptions import ValidationError
from .validators import (
    DESCRIPTION_MAX,
    parse_amount,
    validate_date,
    validate_id,
    validate_optional_str,
)

__all__ = [
    "AmountUpdate",
    "CategoryUpdate",
    "DateUpdate",
    "DescriptionUpdate",
    "FieldUpdate",
    "EXPENSE_FIELDS",
    "INCOME_FIELDS",
    "parse_field_update",
]


@dataclass(frozen=True)
class DateUpdate:
    value: date

    def changes(self) -> Dict[str, object]:
        return {"date": self.value}


@dataclass(frozen=True)
class DescriptionUpdate:
    value: Optional[str]

    def changes(self) -> Dict[str, object]:
        return {"description": self.value}


@dataclass(frozen=True)
class AmountUpdate:
    value: Decimal

    def changes(self) -> Dict[str, object]:
        return {"amount": self.value}


@dataclass(frozen=True)
class CategoryUpdate:
    value: int

    def changes(self) -> Dict[str, object]:
        return {"category_id": self.value}


FieldUpdate = Union[DateUpdate, DescriptionUpdate, AmountUpdate, CategoryUpdate]

EXPENSE_FIELDS: FrozenSet[str] = frozenset({"date", "description", "amount", "category_id"})
INCOME_FIELDS: FrozenSet[str] = frozenset({"date", "description", "amount"})


def parse_field_update(payload: Mapping[str, object], allowed: FrozenSet[str]) -> FieldUpdate:
    field = payload.get("field")
    if not isinstance(field, str) or field not in allowed:
        raise ValidationError(f"field must be one of: {', '.join(sorted(allowed))}")
    if "value" not in payload:
        raise ValidationError("value is required")
    value = payload["value"]

    if field == "date":
        return DateUpdate(validate_date(value, "date"))
    if field == "description":
        return DescriptionUpdate(validate_optional_str(value, "description", DESCRIPTION_MAX))
    if field == "amount":
        return AmountUpdate(parse_amount(value, "amount"))
    return CategoryUpdate(validate_id(value, "category_id"))
