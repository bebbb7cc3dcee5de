from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def to_decimal(value: object) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_percent(numerator: object, denominator: object) -> int:
    """Whole-number percentage, halves rounded away from zero.

    Callers handle a zero denominator themselves.
    """
    ratio = to_decimal(numerator) * Decimal("100") / to_decimal(denominator)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def round_half_up(value: object) -> int:
    return int(to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def quantize_money(value: object) -> Decimal:
    return to_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
