"""In-memory stepper store.

Keeps live QuantityController instances keyed by id.  Every mutation
goes through the store, which checks the controller invariants after
each write and renders the observable state as a StepperRecord.
"""

from __future__ import annotations

import logging

from controller import QuantityController
from invariants import ValidationReport, validate_controller
from models import StepperAction, StepperCreate, StepperRecord, _new_id

logger = logging.getLogger(__name__)


class StepperNotFoundError(Exception):
    """Raised when a stepper lookup fails."""

    def __init__(self, stepper_id: str) -> None:
        self.stepper_id = stepper_id
        super().__init__(f"Stepper not found: {stepper_id}")


class StepperInvariantError(Exception):
    """Raised when a controller violates one of its invariants."""

    def __init__(self, stepper_id: str, report: ValidationReport) -> None:
        self.stepper_id = stepper_id
        self.report = report
        super().__init__(f"Stepper {stepper_id}: {report.summary()}")


def to_record(stepper_id: str, controller: QuantityController) -> StepperRecord:
    return StepperRecord(
        id=stepper_id,
        quantity=controller.quantity,
        display_quantity=controller.display_quantity,
        pending_quantity=controller.pending_quantity,
        min_quantity=controller.min_quantity,
        max_quantity=controller.max_quantity,
        step=controller.step,
        is_expanded=controller.is_expanded,
        is_loading=controller.is_loading,
        can_increment=controller.can_increment,
        can_decrement=controller.can_decrement,
        is_at_min=controller.is_at_min,
        is_at_max=controller.is_at_max,
    )


class StepperStore:
    """In-memory registry of quantity controllers."""

    def __init__(self, *, strict: bool | None = None) -> None:
        self._controllers: dict[str, QuantityController] = {}
        self._strict = strict

    # -- helpers -------------------------------------------------------------

    def _validate_or_raise(self, stepper_id: str, controller: QuantityController) -> None:
        report = validate_controller(controller)
        if not report.passed:
            raise StepperInvariantError(stepper_id, report)

    def _dispatch(self, controller: QuantityController, action: StepperAction) -> None:
        if action == StepperAction.INCREMENT:
            controller.increment()
        elif action == StepperAction.DECREMENT:
            controller.decrement()
        elif action == StepperAction.RESET:
            controller.reset()
        elif action == StepperAction.EXPAND:
            controller.expand()
        elif action == StepperAction.COLLAPSE:
            controller.collapse()
        elif action == StepperAction.MAX:
            controller.set_to_max()
        elif action == StepperAction.MIN:
            controller.set_to_min()
        elif action == StepperAction.CANCEL:
            controller.cancel_operation()
        else:
            raise ValueError(f"Unsupported action: {action!r}")

    # -- CRUD ----------------------------------------------------------------

    def create(self, payload: StepperCreate) -> StepperRecord:
        """Create a new stepper from the given payload."""
        controller = QuantityController(
            initial_quantity=payload.initial_quantity,
            min_quantity=payload.min_quantity,
            max_quantity=payload.max_quantity,
            step=payload.step,
            strict=self._strict,
        )
        stepper_id = _new_id()
        self._validate_or_raise(stepper_id, controller)
        self._controllers[stepper_id] = controller
        logger.debug("created stepper %s: %r", stepper_id, controller)
        return to_record(stepper_id, controller)

    def get(self, stepper_id: str) -> QuantityController:
        """Retrieve a live controller by id."""
        try:
            return self._controllers[stepper_id]
        except KeyError:
            raise StepperNotFoundError(stepper_id) from None

    def record(self, stepper_id: str) -> StepperRecord:
        return to_record(stepper_id, self.get(stepper_id))

    def list(self, *, offset: int = 0, limit: int = 50) -> list[StepperRecord]:
        """List steppers in creation order with pagination."""
        ids = list(self._controllers)[offset : offset + limit]
        return [to_record(i, self._controllers[i]) for i in ids]

    def apply(self, stepper_id: str, action: StepperAction) -> StepperRecord:
        """Invoke a parameterless operation and return the resulting state."""
        controller = self.get(stepper_id)
        self._dispatch(controller, action)
        self._validate_or_raise(stepper_id, controller)
        return to_record(stepper_id, controller)

    def set_quantity(self, stepper_id: str, quantity: int) -> StepperRecord:
        controller = self.get(stepper_id)
        controller.set_quantity(quantity)
        self._validate_or_raise(stepper_id, controller)
        return to_record(stepper_id, controller)

    def delete(self, stepper_id: str) -> StepperRecord:
        """Dispose a stepper, remove it and return its final state."""
        controller = self.get(stepper_id)
        record = to_record(stepper_id, controller)
        controller.dispose()
        del self._controllers[stepper_id]
        return record

    def count(self) -> int:
        return len(self._controllers)

    def clear(self) -> None:
        """Dispose and remove all steppers (useful for testing)."""
        for controller in self._controllers.values():
            controller.dispose()
        self._controllers.clear()
