"""
Shared-budget groups of steppers.

A StepperGroup holds several items (e.g. the size variants of one
product) whose quantities share a total budget.  Each item's effective
upper bound is its own ``max_quantity`` clamped to whatever budget the
other items leave over.

When the other items already exceed the budget, that effective bound
can drop *below* the item's current quantity.  The group only reports
the tighter bound and refuses increases through ``validator_for``; it
never rewrites an item's quantity because the bound moved.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from bounds import clamp
from models import GroupItem
from validation import QuantityValidator

DEFAULT_MAX_TOTAL_QUANTITY = 999


@dataclass(frozen=True)
class StepperGroup:
    """An immutable collection of items sharing ``max_total_quantity``."""

    items: tuple[GroupItem, ...] = field(default_factory=tuple)
    max_total_quantity: int = DEFAULT_MAX_TOTAL_QUANTITY

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))
        if self.max_total_quantity < 0:
            raise ValueError(
                f"max_total_quantity ({self.max_total_quantity}) must be >= 0"
            )
        ids = [item.id for item in self.items]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate item ids in group: {ids}")

    def __len__(self):
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    def index_of(self, item_id: str) -> int:
        for index, item in enumerate(self.items):
            if item.id == item_id:
                return index
        raise KeyError(item_id)

    def max_for_item(self, index: int) -> int:
        """Effective upper bound for the item at ``index`` under the shared budget."""
        item = self.items[index]
        remaining = self.max_total_quantity - self.total_quantity + item.quantity
        return clamp(item.max_quantity, 0, remaining)

    def is_over_budget(self, index: int) -> bool:
        """True when the item's quantity sits above its effective bound."""
        return self.items[index].quantity > self.max_for_item(index)

    def validator_for(self, index: int) -> QuantityValidator:
        """Validation predicate for a controller driving the item at ``index``.

        Decreases are always allowed so an over-budget item can be brought
        back down; increases must stay within the effective bound.
        """

        def _validate(current: int, proposed: int) -> bool:
            if proposed <= current:
                return True
            return proposed <= self.max_for_item(index)

        return _validate

    def with_quantity(self, index: int, quantity: int) -> StepperGroup:
        """Return a new group with one item's quantity replaced."""
        items = list(self.items)
        items[index] = items[index].copy_with(quantity=quantity)
        return StepperGroup(items=tuple(items), max_total_quantity=self.max_total_quantity)

    def remove(self, index: int) -> StepperGroup:
        items = list(self.items)
        del items[index]
        return StepperGroup(items=tuple(items), max_total_quantity=self.max_total_quantity)
