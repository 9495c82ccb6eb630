"""Display formatters that turn a quantity into a short label."""

from __future__ import annotations

from typing import Callable

QuantityFormatter = Callable[[int], str]


def _scaled(quantity: int, divisor: int, suffix: str) -> str:
    value = quantity / divisor
    if value == int(value):
        return f"{int(value)}{suffix}"
    return f"{value:.1f}{suffix}"


def abbreviated(quantity: int) -> str:
    """Abbreviate large numbers: 1000 -> "1k", 1500 -> "1.5k", 2000000 -> "2M"."""
    if quantity >= 1_000_000:
        return _scaled(quantity, 1_000_000, "M")
    if quantity >= 1_000:
        return _scaled(quantity, 1_000, "k")
    return str(quantity)


def abbreviated_with_max(max_quantity: int) -> QuantityFormatter:
    """Build a formatter that shows "<max>+" once the quantity reaches ``max_quantity``."""

    def _format(quantity: int) -> str:
        if quantity >= max_quantity:
            return f"{max_quantity}+"
        return abbreviated(quantity)

    return _format


def simple(quantity: int) -> str:
    return str(quantity)
