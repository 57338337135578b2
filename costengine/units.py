"""Rounding helpers shared by the calculators."""

from decimal import Decimal, ROUND_HALF_UP


def round_half_up(value: float, decimals: int = 2) -> float:
    """
    Round half away from zero at the given number of decimals.

    The value is first cleaned to 9 decimals so binary noise such as
    0.9449999999999999 rounds the way the printed figure 0.945 does.
    """
    cleaned = Decimal(repr(round(value, 9)))
    quantum = Decimal(1).scaleb(-decimals)
    return float(cleaned.quantize(quantum, rounding=ROUND_HALF_UP))


def mm_to_m(value_mm: float) -> float:
    return value_mm / 1000.0
