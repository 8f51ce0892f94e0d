from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def percent(part, whole) -> float:
    """part/whole as a percentage rounded to 2 decimals; 0 when whole is 0."""
    whole = Decimal(str(whole))
    if whole == 0:
        return 0.0
    value = Decimal(str(part)) * 100 / whole
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def money(value) -> float | int:
    """JSON-friendly money: whole amounts as int, otherwise 2-decimal float."""
    value = Decimal(str(value))
    if value == value.to_integral_value():
        return int(value)
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
