from __future__ import annotations

import threading

from approvalbridge.contracts.errors.errors import InvalidCursorMove


class EventCursor:
    """
    Last acknowledged position in the external event feed.

    - Single writer (the poller); readers call current() without locking.
    - Strictly monotonic: advance() refuses anything <= current().
    - Process-local; resets to `start` on restart.
    """

    def __init__(self, start: int = 0):
        self._position = start
        self._lock = threading.Lock()

    def current(self) -> int:
        return self._position

    def advance(self, new_position: int) -> None:
        with self._lock:
            if new_position <= self._position:
                raise InvalidCursorMove(self._position, new_position)
            self._position = new_position

    def __repr__(self) -> str:
        return f"EventCursor(position={self._position})"
