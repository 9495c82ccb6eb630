"""
Bounds layer for the cart stepper.

A BoundedQuantity is the value a stepper owns: an integer that lives in
[min_quantity, max_quantity] and moves in multiples of ``step``.  Values
that would escape the range are clamped - the stepper never wraps and
never raises for an out-of-range request.
"""

from __future__ import annotations

from dataclasses import dataclass, replace


DEFAULT_MIN_QUANTITY = 0
DEFAULT_MAX_QUANTITY = 99
DEFAULT_STEP = 1


def clamp(value: int, lo: int, hi: int) -> int:
    """Saturate ``value`` at ``lo``/``hi``."""
    return max(lo, min(hi, value))


@dataclass(frozen=True)
class BoundedQuantity:
    """
    An integer quantity confined to [min_quantity, max_quantity].

    Instances are immutable; every "mutation" returns a new instance
    with the value already clamped into range.
    """

    value: int
    min_quantity: int = DEFAULT_MIN_QUANTITY
    max_quantity: int = DEFAULT_MAX_QUANTITY
    step: int = DEFAULT_STEP

    def __post_init__(self):
        if self.min_quantity < 0:
            raise ValueError(
                f"min_quantity ({self.min_quantity}) must be >= 0"
            )
        if self.max_quantity <= self.min_quantity:
            raise ValueError(
                f"max_quantity ({self.max_quantity}) must be > "
                f"min_quantity ({self.min_quantity})"
            )
        if self.step <= 0:
            raise ValueError(f"step ({self.step}) must be > 0")
        if not self.contains(self.value):
            raise ValueError(
                f"value {self.value} is outside bounds "
                f"[{self.min_quantity}, {self.max_quantity}]"
            )

    @classmethod
    def create(
        cls,
        value: int,
        min_quantity: int = DEFAULT_MIN_QUANTITY,
        max_quantity: int = DEFAULT_MAX_QUANTITY,
        step: int = DEFAULT_STEP,
    ) -> BoundedQuantity:
        """Build a quantity, clamping ``value`` into range first."""
        if max_quantity > min_quantity:
            value = clamp(value, min_quantity, max_quantity)
        return cls(value, min_quantity, max_quantity, step)

    @property
    def width(self) -> int:
        """Number of representable values."""
        return self.max_quantity - self.min_quantity + 1

    @property
    def at_min(self) -> bool:
        return self.value <= self.min_quantity

    @property
    def at_max(self) -> bool:
        return self.value >= self.max_quantity

    def contains(self, value: int) -> bool:
        return self.min_quantity <= value <= self.max_quantity

    def clamp(self, value: int) -> int:
        return clamp(value, self.min_quantity, self.max_quantity)

    def with_value(self, value: int) -> BoundedQuantity:
        """Return a copy holding ``value`` clamped into range."""
        return replace(self, value=self.clamp(value))

    def seed_value(self) -> int:
        """First non-zero value an empty stepper expands to."""
        return self.clamp(max(self.min_quantity, self.step))
