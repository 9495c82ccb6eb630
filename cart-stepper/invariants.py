"""Controller invariants as executable rules.

Every rule is a named predicate over a QuantityController that must hold
whenever observers can read its state.  ``validate_controller`` runs
them all and returns a report; the store runs it after every mutation
and tests use it to check arbitrary operation sequences.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from controller import QuantityController


# ---------------------------------------------------------------------------
# Rule: a named, executable predicate over a controller
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Rule:
    """A named invariant of controller state."""

    id: str
    name: str
    description: str
    check: Callable[[QuantityController], bool]


# ---------------------------------------------------------------------------
# Invariants
# ---------------------------------------------------------------------------

def _quantity_in_bounds(c: QuantityController) -> bool:
    return c.min_quantity <= c.quantity <= c.max_quantity


def _display_in_bounds(c: QuantityController) -> bool:
    return c.min_quantity <= c.display_quantity <= c.max_quantity


def _pending_implies_loading(c: QuantityController) -> bool:
    return c.pending_quantity is None or c.is_loading


def _empty_is_collapsed(c: QuantityController) -> bool:
    return c.quantity > 0 or not c.is_expanded


def _disposed_is_idle(c: QuantityController) -> bool:
    if not c.is_disposed:
        return True
    return not c.is_loading and c.pending_quantity is None and not c.has_listeners


def _bounds_well_formed(c: QuantityController) -> bool:
    return c.min_quantity >= 0 and c.max_quantity > c.min_quantity and c.step > 0


CONTROLLER_RULES: list[Rule] = [
    Rule(
        id="QTY-BOUNDS",
        name="quantity_in_bounds",
        description="Committed quantity must lie within [min_quantity, max_quantity]",
        check=_quantity_in_bounds,
    ),
    Rule(
        id="QTY-DISPLAY",
        name="display_in_bounds",
        description="Display quantity must lie within [min_quantity, max_quantity]",
        check=_display_in_bounds,
    ),
    Rule(
        id="QTY-PENDING",
        name="pending_implies_loading",
        description="A pending quantity may only exist while an operation is loading",
        check=_pending_implies_loading,
    ),
    Rule(
        id="QTY-EXPANDED",
        name="empty_is_collapsed",
        description="A zero quantity must not be shown expanded",
        check=_empty_is_collapsed,
    ),
    Rule(
        id="QTY-DISPOSED",
        name="disposed_is_idle",
        description="A disposed controller has no pending value, loading flag or listeners",
        check=_disposed_is_idle,
    ),
    Rule(
        id="QTY-CONFIG",
        name="bounds_well_formed",
        description="min_quantity >= 0, max_quantity > min_quantity and step > 0",
        check=_bounds_well_formed,
    ),
]


@dataclass(frozen=True)
class ValidationResult:
    rule_id: str
    rule_name: str
    passed: bool
    description: str


@dataclass(frozen=True)
class ValidationReport:
    results: list[ValidationResult]

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.results)

    @property
    def failures(self) -> list[ValidationResult]:
        return [r for r in self.results if not r.passed]

    def summary(self) -> str:
        total = len(self.results)
        failed = len(self.failures)
        if failed == 0:
            return f"All {total} rules passed"
        lines = [f"{failed}/{total} rules failed:"]
        for f in self.failures:
            lines.append(f"  [{f.rule_id}] {f.rule_name}: {f.description}")
        return "\n".join(lines)


def validate_controller(controller: QuantityController) -> ValidationReport:
    """Run all invariant rules against a controller and return a report."""
    results = []
    for rule in CONTROLLER_RULES:
        try:
            passed = rule.check(controller)
        except Exception:
            passed = False
        results.append(
            ValidationResult(
                rule_id=rule.id,
                rule_name=rule.name,
                passed=passed,
                description=rule.description,
            )
        )
    return ValidationReport(results=results)
