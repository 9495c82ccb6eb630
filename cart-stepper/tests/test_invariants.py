"""Invariant rule conformance tests.

Runs every controller rule against known-good controllers and against
hand-built known-bad states, so the rules are shown to distinguish
valid from invalid state.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from controller import QuantityController
from invariants import CONTROLLER_RULES, validate_controller


def _state(**overrides) -> SimpleNamespace:
    """A known-valid controller-shaped state, optionally overriding fields."""
    defaults = dict(
        quantity=3,
        display_quantity=3,
        pending_quantity=None,
        min_quantity=0,
        max_quantity=10,
        step=1,
        is_expanded=True,
        is_loading=False,
        is_disposed=False,
        has_listeners=False,
    )
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


def _failed_ids(state) -> set[str]:
    return {r.rule_id for r in validate_controller(state).failures}


class TestRulesPassForValidControllers:

    def test_fresh_controller(self):
        report = validate_controller(QuantityController())
        assert report.passed, report.summary()

    def test_controller_with_floor(self):
        c = QuantityController(initial_quantity=0, min_quantity=2, max_quantity=5)
        c.expand()
        c.increment()
        report = validate_controller(c)
        assert report.passed, report.summary()

    def test_disposed_controller(self):
        c = QuantityController(initial_quantity=4)
        c.add_listener(lambda: None)
        c.dispose()
        report = validate_controller(c)
        assert report.passed, report.summary()

    def test_known_good_state(self):
        assert validate_controller(_state()).passed

    def test_summary_when_passing(self):
        assert validate_controller(_state()).summary() == (
            f"All {len(CONTROLLER_RULES)} rules passed"
        )


class TestRulesRejectInvalidState:

    @pytest.mark.parametrize(
        "overrides, rule_id",
        [
            (dict(quantity=11, display_quantity=11), "QTY-BOUNDS"),
            (dict(display_quantity=-1, pending_quantity=-1, is_loading=True), "QTY-DISPLAY"),
            (dict(pending_quantity=4, display_quantity=4), "QTY-PENDING"),
            (dict(quantity=0, display_quantity=0, is_expanded=True), "QTY-EXPANDED"),
            (dict(is_disposed=True, is_loading=True), "QTY-DISPOSED"),
            (dict(is_disposed=True, has_listeners=True), "QTY-DISPOSED"),
            (dict(step=0), "QTY-CONFIG"),
            (dict(min_quantity=10, max_quantity=10, quantity=10, display_quantity=10), "QTY-CONFIG"),
        ],
    )
    def test_rule_flags_violation(self, overrides, rule_id):
        assert rule_id in _failed_ids(_state(**overrides))

    def test_rule_that_raises_counts_as_failure(self):
        state = SimpleNamespace(quantity=1)
        report = validate_controller(state)
        assert not report.passed
        assert "QTY-BOUNDS" in {r.rule_id for r in report.failures}

    def test_summary_lists_failures(self):
        report = validate_controller(_state(quantity=50, display_quantity=50))
        summary = report.summary()
        assert summary.startswith(f"2/{len(CONTROLLER_RULES)} rules failed:")
        assert "[QTY-BOUNDS] quantity_in_bounds" in summary


class TestRuleMetadata:

    def test_rule_ids_unique(self):
        ids = [r.id for r in CONTROLLER_RULES]
        assert len(ids) == len(set(ids))

    def test_rules_have_descriptions(self):
        assert all(r.description for r in CONTROLLER_RULES)
