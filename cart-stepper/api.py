"""FastAPI REST endpoints for cart steppers.

Routes
------
POST   /steppers                 Create a new stepper
GET    /steppers                 List steppers
GET    /steppers/{id}            Retrieve a single stepper's state
PUT    /steppers/{id}/quantity   Set the quantity directly
POST   /steppers/{id}/{action}   increment | decrement | reset | expand |
                                 collapse | max | min | cancel
DELETE /steppers/{id}            Dispose and remove a stepper

Endpoints are ``async def`` so every controller call runs on the event
loop thread, never concurrently from a worker thread.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from models import (
    QuantityUpdate,
    StepperAction,
    StepperCreate,
    StepperListResponse,
    StepperRecord,
)
from store import StepperInvariantError, StepperNotFoundError, StepperStore

router = APIRouter(prefix="/steppers", tags=["steppers"])

# The store instance is injected by the app factory (see app.py).
_store: StepperStore | None = None


def set_store(store: StepperStore) -> None:
    """Inject the store instance. Called once at app startup."""
    global _store
    _store = store


def get_store() -> StepperStore:
    assert _store is not None, "Store not initialized"
    return _store


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------

def _not_found(stepper_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Stepper not found: {stepper_id}")


def _invariant_error(e: StepperInvariantError) -> HTTPException:
    return HTTPException(status_code=500, detail=str(e))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("", response_model=StepperRecord, status_code=201)
async def create_stepper(payload: StepperCreate) -> StepperRecord:
    """Create a new stepper."""
    store = get_store()
    try:
        return store.create(payload)
    except StepperInvariantError as e:
        raise _invariant_error(e) from e


@router.get("", response_model=StepperListResponse)
async def list_steppers(
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
    limit: int = Query(default=50, ge=1, le=200, description="Pagination limit"),
) -> StepperListResponse:
    """List steppers in creation order."""
    store = get_store()
    items = store.list(offset=offset, limit=limit)
    return StepperListResponse(items=items, total=store.count())


@router.get("/{stepper_id}", response_model=StepperRecord)
async def get_stepper(stepper_id: str) -> StepperRecord:
    store = get_store()
    try:
        return store.record(stepper_id)
    except StepperNotFoundError:
        raise _not_found(stepper_id)


@router.put("/{stepper_id}/quantity", response_model=StepperRecord)
async def set_quantity(stepper_id: str, payload: QuantityUpdate) -> StepperRecord:
    """Set the quantity directly (clamped into the stepper's bounds)."""
    store = get_store()
    try:
        return store.set_quantity(stepper_id, payload.quantity)
    except StepperNotFoundError:
        raise _not_found(stepper_id)
    except StepperInvariantError as e:
        raise _invariant_error(e) from e


@router.post("/{stepper_id}/{action}", response_model=StepperRecord)
async def apply_action(stepper_id: str, action: StepperAction) -> StepperRecord:
    """Invoke a parameterless operation on a stepper."""
    store = get_store()
    try:
        return store.apply(stepper_id, action)
    except StepperNotFoundError:
        raise _not_found(stepper_id)
    except StepperInvariantError as e:
        raise _invariant_error(e) from e


@router.delete("/{stepper_id}", response_model=StepperRecord)
async def delete_stepper(stepper_id: str) -> StepperRecord:
    """Dispose a stepper and return its final state."""
    store = get_store()
    try:
        return store.delete(stepper_id)
    except StepperNotFoundError:
        raise _not_found(stepper_id)
