"""Session event subscriptions for front ends.

Callbacks fire on sign-in, sign-out and when the window regains focus.
They must be idempotent, and a callback whose owner has gone away should
check its own liveness before touching state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class SessionEvent(str, Enum):
    SESSION_ESTABLISHED = "session_established"
    SESSION_CLEARED = "session_cleared"
    FOCUS_REGAINED = "focus_regained"


Listener = Callable[[SessionEvent, Any], None]
Unsubscribe = Callable[[], None]


class SessionEvents:
    def __init__(self) -> None:
        self._listeners: dict[int, Listener] = {}
        self._next_id = 0

    def subscribe(self, callback: Listener) -> Unsubscribe:
        """Register ``callback``; the returned handle removes it (safe to call twice)."""
        token = self._next_id
        self._next_id += 1
        self._listeners[token] = callback

        def unsubscribe() -> None:
            self._listeners.pop(token, None)

        return unsubscribe

    def emit(self, event: SessionEvent, payload: Any = None) -> None:
        # Snapshot: listeners may unsubscribe while being notified
        for token, callback in list(self._listeners.items()):
            if token not in self._listeners:
                continue
            try:
                callback(event, payload)
            except Exception:
                logger.exception("Listener for %s failed", event.value)

    def __len__(self) -> int:
        return len(self._listeners)
