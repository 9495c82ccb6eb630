"""Shared fixtures for cart stepper tests."""

from __future__ import annotations

import asyncio

import pytest

import config
from controller import QuantityController


class CallbackRecorder:
    """Collects controller callbacks and listener notifications."""

    def __init__(self) -> None:
        self.notifications = 0
        self.max_reached = 0
        self.min_reached = 0
        self.errors: list = []
        self.rejections: list[tuple[int, int]] = []

    def on_change(self) -> None:
        self.notifications += 1

    def on_max_reached(self) -> None:
        self.max_reached += 1

    def on_min_reached(self) -> None:
        self.min_reached += 1

    def on_error(self, error, context) -> None:
        self.errors.append((error, context))

    def on_rejected(self, current: int, attempted: int) -> None:
        self.rejections.append((current, attempted))


class PendingTask:
    """An async task that suspends until the test resolves or fails it."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._error: Exception | None = None
        self.calls: list = []

    async def __call__(self, *args) -> None:
        self.calls.append(args)
        await self._event.wait()
        if self._error is not None:
            raise self._error

    def resolve(self) -> None:
        self._event.set()

    def fail(self, error: Exception) -> None:
        self._error = error
        self._event.set()


async def settle() -> None:
    """Let every runnable task advance to its next suspension point."""
    for _ in range(3):
        await asyncio.sleep(0)


@pytest.fixture
def clean_config():
    """Drop any strict-mode override before and after the test."""
    config.reset()
    yield
    config.reset()


@pytest.fixture
def recorder() -> CallbackRecorder:
    return CallbackRecorder()


@pytest.fixture
def make_controller(recorder):
    """Factory for controllers wired to the shared recorder."""

    def _make(**kwargs) -> QuantityController:
        kwargs.setdefault("on_max_reached", recorder.on_max_reached)
        kwargs.setdefault("on_min_reached", recorder.on_min_reached)
        kwargs.setdefault("on_error", recorder.on_error)
        kwargs.setdefault("on_validation_rejected", recorder.on_rejected)
        controller = QuantityController(**kwargs)
        controller.add_listener(recorder.on_change)
        return controller

    return _make
