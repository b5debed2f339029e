"""Cooperative stop flag observed by every worker."""

from __future__ import annotations

import threading


class StopSignal:
    """One-shot, idempotent cancellation flag.

    Workers check :meth:`is_set` at the top of each iteration, so a
    request already in flight always completes. Triggering more than once
    is a no-op and never blocks.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()

    def trigger(self) -> bool:
        """Set the flag.

        Returns:
            True for the call that actually set it, False if it was
            already set.
        """
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            return True

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the flag is set or ``timeout`` elapses."""
        return self._event.wait(timeout)
