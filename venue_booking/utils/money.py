"""
Monetary helpers.

Every published amount uses two fraction digits with ROUND_HALF_UP. Amounts
handed to payment providers are integers in minor units (1/100).
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

MONEY_PLACES = 2
MONEY_QUANTUM = Decimal("0.01")
MINOR_UNITS_PER_MAJOR = 100
HUNDRED = Decimal("100")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without binary float artefacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Booleans are not monetary values")
    if isinstance(value, float):
        return Decimal(repr(value))
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise ValueError(f"Not a number: {value!r}") from exc


def round_money(value: Number) -> Decimal:
    return to_decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def percent_of(amount: Number, percent: Number) -> Decimal:
    """Unrounded ``amount * percent / 100``."""
    return to_decimal(amount) * to_decimal(percent) / HUNDRED


def clamp(value: Number, minimum: Number, maximum: Number) -> Decimal:
    return max(to_decimal(minimum), min(to_decimal(maximum), to_decimal(value)))


def to_minor_units(amount: Number) -> int:
    """Integer amount in minor units, as quoted to payment providers."""
    return int(round_money(amount) * MINOR_UNITS_PER_MAJOR)


def from_minor_units(minor: int) -> Decimal:
    return round_money(Decimal(minor) / MINOR_UNITS_PER_MAJOR)


def format_money(amount: Number, currency: str) -> str:
    return f"{currency} {round_money(amount):,.2f}"
