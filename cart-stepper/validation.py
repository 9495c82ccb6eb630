"""Validation gate consulted before a quantity change takes effect.

The gate wraps an optional caller-supplied predicate
``(current, proposed) -> bool``.  A rejection is not an error: the gate
just answers False and, if configured, tells the caller through
``on_rejected(current, attempted)``.
"""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)

QuantityValidator = Callable[[int, int], bool]
ValidationRejectedCallback = Callable[[int, int], None]


class ValidationGate:
    """Pre-mutation veto point for quantity changes."""

    def __init__(
        self,
        validator: QuantityValidator | None = None,
        on_rejected: ValidationRejectedCallback | None = None,
    ) -> None:
        self.validator = validator
        self.on_rejected = on_rejected

    @property
    def enabled(self) -> bool:
        return self.validator is not None

    def allows(self, current: int, proposed: int) -> bool:
        """Return True if the change from ``current`` to ``proposed`` may proceed."""
        if self.validator is None:
            return True
        if self.validator(current, proposed):
            return True

        logger.debug("validation rejected: current=%d proposed=%d", current, proposed)
        if self.on_rejected is not None:
            try:
                self.on_rejected(current, proposed)
            except Exception:
                logger.exception(
                    "on_rejected callback failed (current=%d attempted=%d)",
                    current,
                    proposed,
                )
        return False
