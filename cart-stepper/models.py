"""Data models for cart steppers.

Snapshots are the persisted/debuggable view of a controller: bounds,
committed quantity and the two state flags.  Callbacks are never part
of a snapshot.  The remaining models are the payloads and records the
HTTP layer exchanges.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from bounds import DEFAULT_MAX_QUANTITY, DEFAULT_MIN_QUANTITY, DEFAULT_STEP


# ---------------------------------------------------------------------------
# Change kinds reported by presentation layers
# ---------------------------------------------------------------------------

class QuantityChangeType(str, Enum):
    INCREMENT = "increment"
    DECREMENT = "decrement"
    ADD = "add"
    REMOVE = "remove"
    LONG_PRESS_INCREMENT = "long_press_increment"
    LONG_PRESS_DECREMENT = "long_press_decrement"


class StepperAction(str, Enum):
    """Parameterless operations the HTTP layer can invoke."""

    INCREMENT = "increment"
    DECREMENT = "decrement"
    RESET = "reset"
    EXPAND = "expand"
    COLLAPSE = "collapse"
    MAX = "max"
    MIN = "min"
    CANCEL = "cancel"


def _new_id() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

class _BoundsModel(BaseModel):
    min_quantity: int = Field(default=DEFAULT_MIN_QUANTITY, ge=0)
    max_quantity: int = Field(default=DEFAULT_MAX_QUANTITY, ge=1)
    step: int = Field(default=DEFAULT_STEP, ge=1)

    @model_validator(mode="after")
    def max_above_min(self):
        if self.max_quantity <= self.min_quantity:
            raise ValueError(
                f"max_quantity ({self.max_quantity}) must be > "
                f"min_quantity ({self.min_quantity})"
            )
        return self


class ControllerSnapshot(_BoundsModel):
    """Serializable view of a controller. Restoring uses bounds and quantity only."""

    quantity: int = Field(default=0, ge=0)
    is_expanded: bool = False
    is_loading: bool = False


# ---------------------------------------------------------------------------
# HTTP payloads and records
# ---------------------------------------------------------------------------

class StepperCreate(_BoundsModel):
    """Payload for creating a new stepper."""

    initial_quantity: int = Field(default=0, ge=0)


class QuantityUpdate(BaseModel):
    quantity: int = Field(..., ge=0)


class StepperRecord(BaseModel):
    """Full observable state of a stored stepper."""

    id: str = Field(default_factory=_new_id)
    quantity: int
    display_quantity: int
    pending_quantity: int | None = None
    min_quantity: int
    max_quantity: int
    step: int
    is_expanded: bool
    is_loading: bool
    can_increment: bool
    can_decrement: bool
    is_at_min: bool
    is_at_max: bool


class StepperListResponse(BaseModel):
    items: list[StepperRecord]
    total: int


# ---------------------------------------------------------------------------
# Group items
# ---------------------------------------------------------------------------

class GroupItem(BaseModel):
    """One entry in a StepperGroup."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=0)
    min_quantity: int = Field(default=DEFAULT_MIN_QUANTITY, ge=0)
    max_quantity: int = Field(default=DEFAULT_MAX_QUANTITY, ge=1)
    label: str | None = None
    data: Any | None = None

    def copy_with(self, **changes: Any) -> GroupItem:
        """Return a copy with the given fields replaced."""
        merged = dict(self)
        merged.update(changes)
        return GroupItem.model_validate(merged)
