"""Change notification channel.

``ChangeNotifier`` keeps a list of zero-argument listeners and calls
them synchronously whenever the owner's state changes.  Listeners are
told *that* something changed and re-read whatever they need.
"""

from __future__ import annotations

import logging
from typing import Callable, List

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class ChangeNotifier:
    """Publish/subscribe base class for observable state holders."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    @property
    def has_listeners(self) -> bool:
        return bool(self._listeners)

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        """Remove one registration of ``listener``; unknown listeners are ignored."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def notify_listeners(self) -> None:
        # Iterate a snapshot: listeners may (un)subscribe while being notified.
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception(
                    "listener %r raised during notification from %s",
                    listener,
                    type(self).__name__,
                )

    def dispose(self) -> None:
        self._listeners.clear()
