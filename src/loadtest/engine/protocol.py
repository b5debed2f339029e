"""Types passed from worker threads back to the dispatcher."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WorkerResult:
    """Outcome of one worker's loop.

    Attributes:
        worker_id: Identifier of the worker that produced this result.
        quota: Number of attempts the worker was allowed.
        attempted: Requests actually started.
        succeeded: Attempts that returned a status code.
        failed: Attempts that ended in a transport error.
        stopped: Whether the loop ended on the stop signal rather than
            by exhausting its quota.
    """

    worker_id: int
    quota: int
    attempted: int
    succeeded: int
    failed: int
    stopped: bool = False
