"""Application factory and entry point.

Run with:
    uvicorn app:app --reload
"""

from __future__ import annotations

from fastapi import FastAPI

import config
from api import router, set_store
from store import StepperStore


def create_app(
    store: StepperStore | None = None,
    strict: bool | None = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    Accepts an optional store for testing; creates a fresh one if omitted.
    ``strict`` overrides the use-after-dispose mode for the whole process.
    """
    if strict is not None:
        config.configure(strict=strict)

    if store is None:
        store = StepperStore()

    set_store(store)

    app = FastAPI(
        title="Cart Stepper API",
        description=(
            "Serve bounded quantity steppers over HTTP. Each stepper owns a "
            "quantity clamped to its own [min, max] range and moved in fixed "
            "steps; clients read its observable state and invoke operations."
        ),
        version="0.1.0",
    )
    app.include_router(router)
    return app


# Default app instance for `uvicorn app:app`
app = create_app()
