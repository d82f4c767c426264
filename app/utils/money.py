from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")


def to_money(value: float | Decimal | int | str | None) -> Decimal:
    """Converts a value to Decimal rounded half-up to cents."""
    if value is None:
        value = 0
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Decimal) -> str:
    return f"${to_money(value):.2f}"
