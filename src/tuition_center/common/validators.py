from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from ..core.constants import MAX_AMOUNT
from ..core.exceptions import ValidationError

_CENT = Decimal("0.01")


def require_non_empty(value: Any, field_name: str) -> str:
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def optional_text(value: Any, field_name: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text")
    return value.strip() or None


def require_int_in_range(value: Any, field_name: str, *, low: int, high: int) -> int:
    # bool is an int subclass; "true" is never a valid grade.
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{field_name} must be an integer")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{field_name} must be an integer")
    if number < low or number > high:
        raise ValidationError(f"{field_name} must be between {low} and {high}")
    return number


def parse_amount(value: Any, field_name: str) -> Decimal:
    """Parse a JSON number (or numeric string) into a 2-decimal money value."""

    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(f"{field_name} must be a number")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be a number")
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"{field_name} must not exceed {MAX_AMOUNT}")
    try:
        return amount.quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f"{field_name} must be a number")


def require_positive_amount(value: Any, field_name: str) -> Decimal:
    amount = parse_amount(value, field_name)
    if amount <= 0:
        raise ValidationError(f"{field_name} must be greater than 0")
    return amount


def require_non_negative_amount(value: Any, field_name: str) -> Decimal:
    amount = parse_amount(value, field_name)
    if amount < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return amount


def require_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field_name} must be true or false")
    return value
