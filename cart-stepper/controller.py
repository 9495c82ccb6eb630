"""Quantity operation controller.

``QuantityController`` is the single authority over a stepper's
quantity.  Presentation layers read its observable state and invoke its
operations; they never touch the state directly.

Synchronous operations mutate immediately.  Asynchronous operations run
a caller-supplied task (e.g. a cart API call) and commit only if they
are still the most recently started operation when the task finishes:

    controller = QuantityController(initial_quantity=0, on_error=report)
    ok = await controller.set_quantity_async(
        3, lambda: api.update_cart(item_id, 3), optimistic=True
    )

Cancellation is cooperative.  Every asynchronous operation captures an
``OperationGeneration`` token; anything that supersedes it (a newer
operation, a synchronous set, ``cancel_operation()``, ``dispose()``)
advances the generation, and the older operation discards its result
when it resumes.  The task itself is never interrupted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping

import config
from bounds import (
    DEFAULT_MAX_QUANTITY,
    DEFAULT_MIN_QUANTITY,
    DEFAULT_STEP,
    BoundedQuantity,
)
from generation import OperationGeneration
from models import ControllerSnapshot
from observers import ChangeNotifier
from validation import QuantityValidator, ValidationGate, ValidationRejectedCallback

logger = logging.getLogger(__name__)

AsyncTask = Callable[[], Awaitable[Any]]
AsyncQuantityTask = Callable[[int], Awaitable[Any]]
VoidCallback = Callable[[], None]
AsyncErrorCallback = Callable[[Exception, "OperationContext"], None]


class UseAfterDisposeError(RuntimeError):
    """Raised in strict mode when a disposed controller is used."""

    def __init__(self, controller_type: str) -> None:
        self.controller_type = controller_type
        super().__init__(
            f"A {controller_type} was used after being disposed. "
            f"Once you have called dispose() on a {controller_type}, "
            f"it can no longer be used."
        )


class ControllerPhase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    DISPOSED = "disposed"


@dataclass(frozen=True)
class OperationContext:
    """Where a failed asynchronous task came from."""

    operation: str
    attempted_quantity: int
    previous_quantity: int
    generation: int
    optimistic: bool = False


class QuantityController(ChangeNotifier):
    """
    Owns a bounded quantity and mediates every change to it.

    Observable state: ``quantity``, ``display_quantity``,
    ``pending_quantity``, ``is_expanded``, ``is_loading``,
    ``can_increment``, ``can_decrement``, ``is_at_min``, ``is_at_max``,
    ``is_disposed``.  Listeners added with ``add_listener`` are called
    once per operation step that changes any of it.

    Invalid bounds raise ``ValueError``.  Using the controller after
    ``dispose()`` raises ``UseAfterDisposeError`` in strict mode and is
    a no-op otherwise (see ``config``).
    """

    def __init__(
        self,
        initial_quantity: int = 0,
        min_quantity: int = DEFAULT_MIN_QUANTITY,
        max_quantity: int = DEFAULT_MAX_QUANTITY,
        step: int = DEFAULT_STEP,
        validator: QuantityValidator | None = None,
        on_error: AsyncErrorCallback | None = None,
        on_max_reached: VoidCallback | None = None,
        on_min_reached: VoidCallback | None = None,
        on_validation_rejected: ValidationRejectedCallback | None = None,
        strict: bool | None = None,
    ) -> None:
        super().__init__()
        self._bounds = BoundedQuantity.create(
            initial_quantity, min_quantity, max_quantity, step
        )
        self._gate = ValidationGate(validator, on_validation_rejected)
        self._generation = OperationGeneration()
        self._is_expanded = self._bounds.value > 0
        self._is_loading = False
        self._pending_quantity: int | None = None
        self._disposed = False
        self._strict = config.is_strict() if strict is None else strict

        self.on_error = on_error
        self.on_max_reached = on_max_reached
        self.on_min_reached = on_min_reached

    # -- configuration ------------------------------------------------------

    @property
    def min_quantity(self) -> int:
        return self._bounds.min_quantity

    @property
    def max_quantity(self) -> int:
        return self._bounds.max_quantity

    @property
    def step(self) -> int:
        return self._bounds.step

    @property
    def validator(self) -> QuantityValidator | None:
        return self._gate.validator

    @property
    def on_validation_rejected(self) -> ValidationRejectedCallback | None:
        return self._gate.on_rejected

    @property
    def strict(self) -> bool:
        return self._strict

    # -- observable state ---------------------------------------------------

    @property
    def quantity(self) -> int:
        """Last committed quantity."""
        return self._bounds.value

    @property
    def pending_quantity(self) -> int | None:
        """Optimistic value of the in-flight operation, if any."""
        return self._pending_quantity

    @property
    def has_pending_operation(self) -> bool:
        return self._pending_quantity is not None

    @property
    def display_quantity(self) -> int:
        """Quantity to show: the pending value if present, else the committed one."""
        if self._pending_quantity is not None:
            return self._pending_quantity
        return self._bounds.value

    @property
    def is_expanded(self) -> bool:
        return self._is_expanded

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def generation(self) -> int:
        return self._generation.current

    @property
    def phase(self) -> ControllerPhase:
        if self._disposed:
            return ControllerPhase.DISPOSED
        if self._is_loading:
            return ControllerPhase.LOADING
        return ControllerPhase.IDLE

    @property
    def can_increment(self) -> bool:
        return not self._is_loading and self.display_quantity + self.step <= self.max_quantity

    @property
    def can_decrement(self) -> bool:
        return not self._is_loading and self.display_quantity - self.step >= self.min_quantity

    @property
    def is_at_min(self) -> bool:
        return self.display_quantity <= self.min_quantity

    @property
    def is_at_max(self) -> bool:
        return self.display_quantity >= self.max_quantity

    # -- internal helpers ---------------------------------------------------

    def _check_disposed(self) -> bool:
        """Return True if the call must be ignored because we are disposed."""
        if not self._disposed:
            return False
        if self._strict:
            raise UseAfterDisposeError(type(self).__name__)
        logger.debug("ignoring call on disposed %s", type(self).__name__)
        return True

    def _observable(self) -> tuple:
        return (
            self._bounds.value,
            self._pending_quantity,
            self._is_expanded,
            self._is_loading,
        )

    def _owns(self, token: int) -> bool:
        return not self._disposed and self._generation.is_current(token)

    def _supersede_in_flight(self) -> None:
        """Invalidate the outstanding asynchronous operation, if there is one."""
        if not self._is_loading:
            return
        stale = self._generation.current
        self._generation.advance()
        self._is_loading = False
        self._pending_quantity = None
        logger.debug("superseded in-flight operation (generation %d)", stale)

    def _commit(self, value: int) -> None:
        self._bounds = self._bounds.with_value(value)
        self._is_expanded = self._bounds.value > 0
        self._pending_quantity = None

    def _apply(self, value: int) -> None:
        before = self._observable()
        self._supersede_in_flight()
        self._commit(value)
        if self._observable() != before:
            self.notify_listeners()

    def _fire(self, callback: VoidCallback | None, name: str) -> None:
        if callback is None:
            return
        try:
            callback()
        except Exception:
            logger.exception("%s callback failed", name)

    def _fire_bound_reached(self) -> None:
        if self.quantity >= self.max_quantity:
            self._fire(self.on_max_reached, "on_max_reached")
        elif self.quantity <= self.min_quantity:
            self._fire(self.on_min_reached, "on_min_reached")

    def _report_error(self, error: Exception, context: OperationContext) -> None:
        if self.on_error is None:
            logger.warning(
                "%s failed (attempted=%d) and no on_error callback is set: %r",
                context.operation,
                context.attempted_quantity,
                error,
            )
            return
        try:
            self.on_error(error, context)
        except Exception:
            logger.exception(
                "on_error callback failed while handling %r from %s",
                error,
                context.operation,
            )

    # -- synchronous operations ---------------------------------------------

    def set_quantity(self, value: int) -> None:
        """Set the quantity directly, clamped into bounds.

        An in-flight asynchronous operation is superseded; its eventual
        completion is discarded.
        """
        if self._check_disposed():
            return
        new_value = self._bounds.clamp(value)
        if new_value != self.quantity and not self._gate.allows(self.quantity, new_value):
            return
        self._apply(new_value)

    def increment(self) -> None:
        """Increase by ``step``. No-op at the upper bound or while loading."""
        if self._check_disposed() or not self.can_increment:
            return
        current = self.display_quantity
        candidate = current + self.step
        if not self._gate.allows(current, candidate):
            return
        self._apply(candidate)
        if self.quantity >= self.max_quantity:
            self._fire(self.on_max_reached, "on_max_reached")

    def decrement(self) -> None:
        """Decrease by ``step``. No-op at the lower bound or while loading."""
        if self._check_disposed() or not self.can_decrement:
            return
        current = self.display_quantity
        candidate = current - self.step
        if not self._gate.allows(current, candidate):
            return
        self._apply(candidate)
        if self.quantity <= self.min_quantity:
            self._fire(self.on_min_reached, "on_min_reached")

    def reset(self) -> None:
        """Return to ``min_quantity`` (not zero) and drop any in-flight work."""
        if self._check_disposed():
            return
        before = self._observable()
        self._supersede_in_flight()
        target = self.min_quantity
        self._bounds = self._bounds.with_value(target)
        self._is_expanded = target > 0
        self._pending_quantity = None
        if self._observable() != before:
            self.notify_listeners()
        self._fire(self.on_min_reached, "on_min_reached")

    def expand(self) -> None:
        """Expand the stepper, seeding an empty quantity with its first step.

        Like ``collapse``, this supersedes any in-flight operation.
        """
        if self._check_disposed() or self._is_expanded:
            return
        self._supersede_in_flight()
        if self.quantity == 0:
            self._bounds = self._bounds.with_value(self._bounds.seed_value())
        self._is_expanded = True
        self.notify_listeners()

    def collapse(self) -> None:
        """Collapse the stepper and put the quantity back at ``min_quantity``."""
        if self._check_disposed():
            return
        before = self._observable()
        self._supersede_in_flight()
        self._bounds = self._bounds.with_value(self.min_quantity)
        self._is_expanded = False
        self._pending_quantity = None
        if self._observable() != before:
            self.notify_listeners()
            self._fire(self.on_min_reached, "on_min_reached")

    def set_to_max(self) -> None:
        self.set_quantity(self.max_quantity)

    def set_to_min(self) -> None:
        self.set_quantity(self.min_quantity)

    def cancel_operation(self) -> None:
        """Abandon the in-flight asynchronous operation without touching ``quantity``."""
        if self._check_disposed():
            return
        if self._pending_quantity is None and not self._is_loading:
            return
        self._generation.advance()
        self._pending_quantity = None
        self._is_loading = False
        self.notify_listeners()

    def dispose(self) -> None:
        """Tear down the controller. Safe to call more than once."""
        if self._disposed:
            return
        self._disposed = True
        self._generation.advance()
        self._pending_quantity = None
        self._is_loading = False
        super().dispose()

    # -- asynchronous operations --------------------------------------------

    async def _run(
        self,
        target: int,
        task: AsyncTask,
        *,
        optimistic: bool,
        operation: str,
    ) -> bool:
        """Run ``task`` under a fresh generation and commit ``target`` if still current.

        Branches: COMMIT, STALE-SUCCESS, STALE-FAILURE, REVERT
        """
        token = self._generation.advance()
        previous = self.quantity

        self._pending_quantity = target if optimistic else None
        self._is_loading = True
        self.notify_listeners()

        try:
            await task()
        except Exception as error:
            if not self._owns(token):                             # STALE-FAILURE
                logger.debug(
                    "discarding failure of stale %s (generation %d, current %d): %r",
                    operation,
                    token,
                    self._generation.current,
                    error,
                )
                return False

            if optimistic:                                        # REVERT
                self._pending_quantity = None
                self._bounds = self._bounds.with_value(previous)
                logger.debug("%s reverted to %d", operation, previous)
            self._report_error(
                error,
                OperationContext(
                    operation=operation,
                    attempted_quantity=target,
                    previous_quantity=previous,
                    generation=token,
                    optimistic=optimistic,
                ),
            )
            return False
        else:
            if not self._owns(token):                             # STALE-SUCCESS
                logger.debug(
                    "discarding result of stale %s (generation %d, current %d)",
                    operation,
                    token,
                    self._generation.current,
                )
                return False
            self._commit(target)                                  # COMMIT
        finally:
            if self._owns(token):
                self._is_loading = False
                self._pending_quantity = None
                self.notify_listeners()

        self._fire_bound_reached()
        return True

    async def set_quantity_async(
        self,
        value: int,
        task: AsyncTask,
        optimistic: bool = False,
    ) -> bool:
        """Set the quantity once ``task`` completes.

        With ``optimistic=True`` the value is shown through
        ``pending_quantity`` immediately and reverted if the task fails.
        Returns True only if this call committed its value.
        """
        if self._check_disposed():
            return False
        new_value = self._bounds.clamp(value)
        if not self._gate.allows(self.quantity, new_value):
            return False
        return await self._run(
            new_value, task, optimistic=optimistic, operation="set_quantity_async"
        )

    async def increment_async(
        self,
        task: AsyncQuantityTask,
        optimistic: bool = False,
    ) -> bool:
        """Increment by ``step``; ``task`` receives the new quantity."""
        if self._check_disposed() or not self.can_increment:
            return False
        current = self.display_quantity
        candidate = current + self.step
        if not self._gate.allows(current, candidate):
            return False
        return await self._run(
            candidate,
            lambda: task(candidate),
            optimistic=optimistic,
            operation="increment_async",
        )

    async def decrement_async(
        self,
        task: AsyncQuantityTask,
        optimistic: bool = False,
    ) -> bool:
        """Decrement by ``step``; ``task`` receives the new quantity."""
        if self._check_disposed() or not self.can_decrement:
            return False
        current = self.display_quantity
        candidate = current - self.step
        if not self._gate.allows(current, candidate):
            return False
        return await self._run(
            candidate,
            lambda: task(candidate),
            optimistic=optimistic,
            operation="decrement_async",
        )

    async def reset_async(self, task: AsyncTask) -> bool:
        """Reset to ``min_quantity`` once ``task`` completes. Never optimistic."""
        if self._check_disposed():
            return False
        return await self._run(
            self.min_quantity, task, optimistic=False, operation="reset_async"
        )

    # -- serialization ------------------------------------------------------

    def to_snapshot(self) -> ControllerSnapshot:
        return ControllerSnapshot(
            quantity=self.quantity,
            min_quantity=self.min_quantity,
            max_quantity=self.max_quantity,
            step=self.step,
            is_expanded=self._is_expanded,
            is_loading=self._is_loading,
        )

    def to_dict(self) -> dict[str, Any]:
        return self.to_snapshot().model_dump()

    @classmethod
    def from_snapshot(
        cls,
        snapshot: ControllerSnapshot | Mapping[str, Any],
        **callbacks: Any,
    ) -> QuantityController:
        """Restore bounds and committed quantity. Flags and callbacks are not restored."""
        if not isinstance(snapshot, ControllerSnapshot):
            snapshot = ControllerSnapshot.model_validate(dict(snapshot))
        return cls(
            initial_quantity=snapshot.quantity,
            min_quantity=snapshot.min_quantity,
            max_quantity=snapshot.max_quantity,
            step=snapshot.step,
            **callbacks,
        )

    def copy_with(self, **overrides: Any) -> QuantityController:
        """Build a derived controller, e.g. with adjusted limits.

        Unspecified (or None) options are taken from this controller,
        callbacks included.  Transient state is not copied.
        """
        params: dict[str, Any] = dict(
            initial_quantity=self.quantity,
            min_quantity=self.min_quantity,
            max_quantity=self.max_quantity,
            step=self.step,
            validator=self.validator,
            on_error=self.on_error,
            on_max_reached=self.on_max_reached,
            on_min_reached=self.on_min_reached,
            on_validation_rejected=self.on_validation_rejected,
            strict=self._strict,
        )
        unknown = set(overrides) - set(params)
        if unknown:
            raise TypeError(f"copy_with() got unexpected options: {sorted(unknown)}")
        params.update({k: v for k, v in overrides.items() if v is not None})
        return type(self)(**params)

    def __repr__(self) -> str:
        loading = ", loading" if self._is_loading else ""
        pending = (
            f", pending: {self._pending_quantity}"
            if self._pending_quantity is not None
            else ""
        )
        disposed = ", disposed" if self._disposed else ""
        return (
            f"{type(self).__name__}(quantity: {self.quantity}, "
            f"min: {self.min_quantity}, max: {self.max_quantity}, "
            f"step: {self.step}{loading}{pending}{disposed})"
        )
