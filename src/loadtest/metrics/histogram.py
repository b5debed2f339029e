"""Status-code histogram shared by all workers of a run."""

from __future__ import annotations

import threading

from loadtest._internal.types import Result


class StatusHistogram:
    """Counts completed responses per HTTP status code.

    Written by every worker thread and read by the caller, so every access
    goes through one lock. Counts only ever grow.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: Result = {}

    def record(self, status_code: int) -> None:
        """Increment the counter for ``status_code``, starting it at 1."""
        with self._lock:
            self._counts[status_code] = self._counts.get(status_code, 0) + 1

    def snapshot(self) -> Result:
        """Return a point-in-time copy of the counts.

        Safe to call while workers are still recording; the copy is a
        consistent view and later writes do not show up in it.
        """
        with self._lock:
            return dict(self._counts)

    @property
    def total(self) -> int:
        """Return the number of responses recorded so far."""
        with self._lock:
            return sum(self._counts.values())

    def __repr__(self) -> str:
        return f"StatusHistogram({self.snapshot()!r})"
