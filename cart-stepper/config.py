"""Runtime configuration for cart steppers.

Strict mode decides what happens when a controller is used after
``dispose()``: strict raises ``UseAfterDisposeError``; release mode
turns the call into a silent no-op.

The default comes from the ``CART_STEPPER_STRICT`` environment variable
(unset means strict).  Applications may override it once at startup via
``configure()``.
"""

from __future__ import annotations

import os

STRICT_ENV_VAR = "CART_STEPPER_STRICT"

_FALSY = {"0", "false", "no", "off"}

# Module-level override injected by configure().
_strict: bool | None = None


def _strict_from_env() -> bool:
    raw = os.environ.get(STRICT_ENV_VAR)
    if raw is None:
        return True
    return raw.strip().lower() not in _FALSY


def configure(*, strict: bool) -> None:
    """Override the strict-mode default. Called once at app startup."""
    global _strict
    _strict = strict


def is_strict() -> bool:
    if _strict is not None:
        return _strict
    return _strict_from_env()


def reset() -> None:
    """Drop any override and fall back to the environment default."""
    global _strict
    _strict = None
