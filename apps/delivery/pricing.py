from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

from apps.common.errors import ValidationError

CENT = Decimal("0.01")


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_price(value: Any, label: str = "price") -> Decimal:
    """Accept ints, floats or numeric strings; bools are not prices."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{label} must be a number")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{label} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{label} must be a number")
    if amount < 0:
        raise ValidationError(f"{label} must be greater than or equal to 0")
    return quantize(amount)


def parse_quantity(value: Any, label: str = "quantity") -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be an integer")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        raise ValidationError(f"{label} must be an integer")
    if value < 1:
        raise ValidationError(f"{label} must be at least 1")
    return value


def order_total(lines: Iterable[tuple[Decimal, int]]) -> Decimal:
    total = Decimal("0")
    for price, qty in lines:
        total += price * qty
    return quantize(total)
