"""Operation generation counter.

Every asynchronous operation captures the generation it was started
under.  Anything that supersedes it (a newer operation, a synchronous
set, a cancel, disposal) advances the counter, so the older operation
finds itself stale when it resumes and discards its result.
"""

from __future__ import annotations


class OperationGeneration:
    """Monotonically increasing cancellation token."""

    def __init__(self, start: int = 0) -> None:
        self._current = start

    @property
    def current(self) -> int:
        return self._current

    def advance(self) -> int:
        """Mint a new generation and return it."""
        self._current += 1
        return self._current

    def is_current(self, token: int) -> bool:
        return token == self._current

    def __repr__(self) -> str:
        return f"OperationGeneration({self._current})"
