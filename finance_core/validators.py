"""Validation helpers shared across finance tracker services."""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional

from .exceptions import ValidationError
from .models import parse_date

COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")

CATEGORY_NAME_MAX = 100
DESCRIPTION_MAX = 200


def _quantize_two_decimals(amount: Decimal) -> Decimal:
    """Round the amount to two decimal places using HALF_UP rounding."""
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def parse_amount(raw: object, field: str) -> Decimal:
    """Convert raw input to a positive, finite Decimal with exactly two fraction digits."""
    if raw is None or isinstance(raw, bool) or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError(f"{field} is required")
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, TypeError) as exc:  # type: ignore[arg-type]
        raise ValidationError(f"{field} must be a numeric value") from exc

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than zero")

    return _quantize_two_decimals(amount)


def validate_required_str(value: object, field: str, max_length: int) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{field} cannot be empty")
    if len(trimmed) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return trimmed


def validate_optional_str(value: object, field: str, max_length: int) -> Optional[str]:
    # Forms submit cleared text inputs as empty strings.
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return validate_required_str(value, field, max_length)


def validate_date(value: object, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must be an ISO 8601 date (YYYY-MM-DD)")
    try:
        return parse_date(value)
    except ValueError as exc:
        raise ValidationError(f"{field} must be an ISO 8601 date (YYYY-MM-DD)") from exc


def validate_optional_date(value: object, field: str) -> Optional[date]:
    if value is None or value == "":
        return None
    return validate_date(value, field)


def validate_id(value: object, field: str) -> int:
    """Accept integer ids, including the numeric strings HTML forms submit."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer id")
    if isinstance(value, int):
        candidate = value
    elif isinstance(value, str) and value.strip().isdigit():
        candidate = int(value.strip())
    else:
        raise ValidationError(f"{field} must be an integer id")
    if candidate < 1:
        raise ValidationError(f"{field} must be a positive integer id")
    return candidate


def validate_optional_id(value: object, field: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return validate_id(value, field)


def validate_interval(value: object, field: str = "interval") -> int:
    if value is None or value == "":
        return 1
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        interval = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be an integer") from exc
    if isinstance(value, float) and value != interval:
        raise ValidationError(f"{field} must be an integer")
    if interval < 1:
        raise ValidationError(f"{field} must be at least 1")
    return interval


def validate_color(value: object, field: str = "color") -> Optional[str]:
    if value is None or value == "":
        return None
    if not isinstance(value, str) or not COLOR_PATTERN.fullmatch(value.strip()):
        raise ValidationError(f"{field} must be a hex colour such as #4ECDC4")
    return value.strip().upper()


def validate_bool(value: object, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ValidationError(f"{field} must be a boolean")


def validate_enum(value: object, field: str, allowed: Iterable[str]) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    canonical = value.strip().upper()
    if canonical not in allowed:
        raise ValidationError(f"{field} must be one of: {', '.join(sorted(allowed))}")
    return canonical


def ensure_after(earlier: date, later: Optional[date], earlier_field: str, later_field: str) -> None:
    if later is not None and later <= earlier:
        raise ValidationError(f"{later_field} must be after {earlier_field}")
