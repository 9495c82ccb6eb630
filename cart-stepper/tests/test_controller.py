"""Tests for the synchronous controller operations, lifecycle and serialization."""

from __future__ import annotations

import logging

import pytest

from controller import ControllerPhase, QuantityController, UseAfterDisposeError
from models import ControllerSnapshot


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestConstruction:

    def test_defaults(self):
        c = QuantityController()
        assert c.quantity == 0
        assert c.min_quantity == 0
        assert c.max_quantity == 99
        assert c.step == 1
        assert not c.is_expanded
        assert not c.is_loading
        assert c.pending_quantity is None
        assert c.phase == ControllerPhase.IDLE

    def test_initial_quantity_is_clamped(self):
        assert QuantityController(initial_quantity=500, max_quantity=10).quantity == 10
        assert QuantityController(initial_quantity=0, min_quantity=3, max_quantity=10).quantity == 3

    def test_expanded_when_initial_quantity_positive(self):
        assert QuantityController(initial_quantity=2).is_expanded

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"min_quantity": -1},
            {"min_quantity": 5, "max_quantity": 5},
            {"min_quantity": 6, "max_quantity": 5},
            {"step": 0},
            {"step": -2},
        ],
    )
    def test_invalid_configuration_raises(self, kwargs):
        with pytest.raises(ValueError):
            QuantityController(**kwargs)


# ---------------------------------------------------------------------------
# set_quantity
# ---------------------------------------------------------------------------

class TestSetQuantity:

    def test_sets_and_notifies_once(self, make_controller, recorder):
        c = make_controller(max_quantity=10)
        c.set_quantity(4)
        assert c.quantity == 4
        assert c.is_expanded
        assert recorder.notifications == 1

    def test_clamps_into_bounds(self, make_controller):
        c = make_controller(max_quantity=10)
        c.set_quantity(50)
        assert c.quantity == 10
        c.set_quantity(-5)
        assert c.quantity == 0

    def test_same_value_does_not_notify(self, make_controller, recorder):
        c = make_controller(initial_quantity=3)
        c.set_quantity(3)
        assert recorder.notifications == 0

    def test_zero_collapses(self, make_controller):
        c = make_controller(initial_quantity=3)
        c.set_quantity(0)
        assert not c.is_expanded

    def test_validator_can_veto(self, make_controller, recorder):
        c = make_controller(initial_quantity=1, validator=lambda cur, new: new <= 5)
        c.set_quantity(8)
        assert c.quantity == 1
        assert recorder.notifications == 0
        assert recorder.rejections == [(1, 8)]

    def test_set_to_max_and_min(self, make_controller):
        c = make_controller(initial_quantity=3, min_quantity=1, max_quantity=7)
        c.set_to_max()
        assert c.quantity == 7
        assert c.is_at_max
        c.set_to_min()
        assert c.quantity == 1
        assert c.is_at_min


# ---------------------------------------------------------------------------
# increment / decrement
# ---------------------------------------------------------------------------

class TestIncrementDecrement:

    def test_increment_to_max_fires_once(self, make_controller, recorder):
        c = make_controller(initial_quantity=4, max_quantity=5)
        c.increment()
        assert c.quantity == 5
        assert recorder.max_reached == 1

        c.increment()
        assert c.quantity == 5
        assert recorder.max_reached == 1
        assert recorder.notifications == 1

    def test_increment_by_step(self, make_controller):
        c = make_controller(initial_quantity=2, step=3, max_quantity=20)
        c.increment()
        assert c.quantity == 5

    def test_increment_past_max_is_noop(self, make_controller, recorder):
        c = make_controller(initial_quantity=4, max_quantity=5, step=2)
        assert not c.can_increment
        c.increment()
        assert c.quantity == 4
        assert recorder.notifications == 0
        assert recorder.max_reached == 0

    def test_decrement_to_min_fires(self, make_controller, recorder):
        c = make_controller(initial_quantity=2, min_quantity=1, max_quantity=5)
        c.decrement()
        assert c.quantity == 1
        assert recorder.min_reached == 1
        c.decrement()
        assert c.quantity == 1
        assert recorder.min_reached == 1

    def test_validator_sees_current_and_proposed(self, make_controller, recorder):
        seen = []

        def validator(current, proposed):
            seen.append((current, proposed))
            return proposed < 3

        c = make_controller(initial_quantity=1, validator=validator)
        c.increment()
        c.increment()
        assert c.quantity == 2
        assert seen == [(1, 2), (2, 3)]
        assert recorder.rejections == [(2, 3)]

    def test_failing_bound_callback_is_contained(self, caplog):
        def broken():
            raise RuntimeError("callback bug")

        c = QuantityController(initial_quantity=4, max_quantity=5, on_max_reached=broken)
        with caplog.at_level(logging.ERROR, logger="controller"):
            c.increment()
        assert c.quantity == 5
        assert "on_max_reached callback failed" in caplog.text


# ---------------------------------------------------------------------------
# reset / expand / collapse
# ---------------------------------------------------------------------------

class TestResetExpandCollapse:

    def test_reset_respects_floor(self, make_controller, recorder):
        c = make_controller(initial_quantity=7, min_quantity=2, max_quantity=10)
        c.reset()
        assert c.quantity == 2
        assert c.is_expanded
        assert recorder.min_reached == 1

    def test_reset_at_floor_still_reports_min(self, make_controller, recorder):
        c = make_controller(initial_quantity=2, min_quantity=2, max_quantity=10)
        c.reset()
        assert c.quantity == 2
        assert recorder.notifications == 0
        assert recorder.min_reached == 1

    def test_reset_to_zero_collapses(self, make_controller, recorder):
        c = make_controller(initial_quantity=5)
        c.reset()
        assert c.quantity == 0
        assert not c.is_expanded
        assert recorder.notifications == 1

    def test_expand_seeds_empty_quantity(self, make_controller, recorder):
        c = make_controller(step=2)
        c.expand()
        assert c.is_expanded
        assert c.quantity == 2
        assert recorder.notifications == 1

    def test_expand_seed_clamped_to_max(self, make_controller):
        c = make_controller(max_quantity=3, step=5)
        c.expand()
        assert c.quantity == 3

    def test_expand_when_expanded_is_noop(self, make_controller, recorder):
        c = make_controller(initial_quantity=4)
        c.expand()
        assert c.quantity == 4
        assert recorder.notifications == 0

    def test_collapse_returns_to_min(self, make_controller, recorder):
        c = make_controller(initial_quantity=4, min_quantity=1, max_quantity=9)
        c.collapse()
        assert c.quantity == 1
        assert not c.is_expanded
        assert recorder.notifications == 1
        assert recorder.min_reached == 1

    def test_collapse_when_collapsed_is_noop(self, make_controller, recorder):
        c = make_controller()
        c.collapse()
        assert recorder.notifications == 0
        assert recorder.min_reached == 0

    def test_cancel_when_idle_is_noop(self, make_controller, recorder):
        c = make_controller(initial_quantity=3)
        generation = c.generation
        c.cancel_operation()
        assert c.generation == generation
        assert recorder.notifications == 0


# ---------------------------------------------------------------------------
# Disposal
# ---------------------------------------------------------------------------

class TestDispose:

    def test_dispose_is_idempotent(self):
        c = QuantityController(initial_quantity=3)
        c.dispose()
        generation = c.generation
        c.dispose()
        assert c.is_disposed
        assert c.generation == generation
        assert c.phase == ControllerPhase.DISPOSED

    def test_dispose_drops_listeners(self, make_controller):
        c = make_controller()
        c.dispose()
        assert not c.has_listeners

    @pytest.mark.parametrize(
        "operation",
        [
            lambda c: c.set_quantity(2),
            lambda c: c.increment(),
            lambda c: c.decrement(),
            lambda c: c.reset(),
            lambda c: c.expand(),
            lambda c: c.collapse(),
            lambda c: c.set_to_max(),
            lambda c: c.set_to_min(),
            lambda c: c.cancel_operation(),
        ],
    )
    def test_strict_mode_raises_after_dispose(self, operation):
        c = QuantityController(initial_quantity=3, strict=True)
        c.dispose()
        with pytest.raises(UseAfterDisposeError, match="used after being disposed"):
            operation(c)

    def test_release_mode_ignores_calls_after_dispose(self):
        c = QuantityController(initial_quantity=3, strict=False)
        c.dispose()
        c.set_quantity(7)
        c.increment()
        c.reset()
        c.expand()
        assert c.quantity == 3

    def test_strict_default_from_environment(self, monkeypatch, clean_config):
        monkeypatch.setenv("CART_STEPPER_STRICT", "0")
        c = QuantityController()
        assert not c.strict
        c.dispose()
        c.increment()

    def test_configure_overrides_environment(self, monkeypatch, clean_config):
        import config

        monkeypatch.setenv("CART_STEPPER_STRICT", "false")
        config.configure(strict=True)
        assert QuantityController().strict


# ---------------------------------------------------------------------------
# Snapshots and copies
# ---------------------------------------------------------------------------

class TestSerialization:

    def test_to_dict(self):
        c = QuantityController(initial_quantity=3, min_quantity=1, max_quantity=12, step=2)
        assert c.to_dict() == {
            "quantity": 3,
            "min_quantity": 1,
            "max_quantity": 12,
            "step": 2,
            "is_expanded": True,
            "is_loading": False,
        }

    def test_from_snapshot_restores_bounds_and_quantity(self):
        original = QuantityController(initial_quantity=6, min_quantity=2, max_quantity=8, step=2)
        restored = QuantityController.from_snapshot(original.to_snapshot())
        assert restored.to_dict() == original.to_dict()

    def test_from_mapping_uses_defaults_for_missing_keys(self):
        restored = QuantityController.from_snapshot({"quantity": 4})
        assert restored.quantity == 4
        assert restored.min_quantity == 0
        assert restored.max_quantity == 99
        assert restored.step == 1

    def test_loading_flag_is_not_restored(self):
        snapshot = ControllerSnapshot(quantity=3, is_loading=True)
        assert not QuantityController.from_snapshot(snapshot).is_loading

    def test_from_snapshot_accepts_callbacks(self, recorder):
        restored = QuantityController.from_snapshot(
            {"quantity": 4, "max_quantity": 5},
            on_max_reached=recorder.on_max_reached,
        )
        restored.increment()
        assert recorder.max_reached == 1

    def test_copy_with_adjusted_limits(self, recorder):
        c = QuantityController(initial_quantity=5, on_min_reached=recorder.on_min_reached)
        derived = c.copy_with(max_quantity=4)
        assert derived.quantity == 4
        assert derived.max_quantity == 4
        assert derived.on_min_reached == recorder.on_min_reached
        assert c.max_quantity == 99

    def test_copy_with_rejects_unknown_options(self):
        with pytest.raises(TypeError, match="unexpected options"):
            QuantityController().copy_with(colour="orange")

    def test_repr(self):
        c = QuantityController(initial_quantity=2, max_quantity=10)
        assert repr(c) == "QuantityController(quantity: 2, min: 0, max: 10, step: 1)"
