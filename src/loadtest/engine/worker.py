"""Worker thread entry point: one event loop, one session, a fixed quota."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

from loadtest._internal.errors import TransportError
from loadtest._internal.logging import get_logger
from loadtest.engine.protocol import WorkerResult
from loadtest.transport.http_client import HttpClient

if TYPE_CHECKING:
    from collections.abc import Callable

    from loadtest.engine.stop import StopSignal
    from loadtest.metrics.histogram import StatusHistogram
    from loadtest.transport.request import RequestTemplate

logger = get_logger("engine.worker")


def _loop_factory() -> Callable[[], asyncio.AbstractEventLoop] | None:
    """Return uvloop's loop constructor when it can be used.

    Falls back to the default asyncio loop on Windows or when uvloop is
    not installed.
    """
    if sys.platform == "win32":
        return None

    try:
        import uvloop
    except ImportError:
        logger.debug("uvloop not available, using default asyncio event loop")
        return None

    return uvloop.new_event_loop


def run_worker(
    worker_id: int,
    quota: int,
    template: RequestTemplate,
    histogram: StatusHistogram,
    stop_signal: StopSignal,
    *,
    timeout: float | None = None,
) -> WorkerResult:
    """Run one worker to completion on the calling thread.

    Creates a private event loop for the thread and drives
    :func:`_worker_loop` on it. There is no loop shared between workers.

    Args:
        worker_id: Worker identifier, used in log lines.
        quota: Maximum number of request attempts.
        template: Shared request template.
        histogram: Shared status-code histogram.
        stop_signal: Shared stop flag.
        timeout: Per-request timeout in seconds, ``None`` for no limit.

    Returns:
        Counters describing what this worker did.
    """
    with asyncio.Runner(loop_factory=_loop_factory()) as runner:
        return runner.run(
            _worker_loop(
                worker_id=worker_id,
                quota=quota,
                template=template,
                histogram=histogram,
                stop_signal=stop_signal,
                timeout=timeout,
            )
        )


async def _worker_loop(
    worker_id: int,
    quota: int,
    template: RequestTemplate,
    histogram: StatusHistogram,
    stop_signal: StopSignal,
    timeout: float | None,
) -> WorkerResult:
    """Send up to ``quota`` requests, checking the stop flag before each.

    A transport failure is logged and dropped: nothing is recorded and
    the attempt is not retried.
    """
    attempted = 0
    succeeded = 0
    failed = 0
    stopped = False

    logger.debug("Worker %d: starting with quota=%d", worker_id, quota)

    async with HttpClient(template, timeout=timeout) as client:
        for _ in range(quota):
            if stop_signal.is_set():
                stopped = True
                break

            attempted += 1
            try:
                status_code = await client.send()
            except TransportError as exc:
                failed += 1
                logger.warning("Worker %d: request failed: %s", worker_id, exc)
                continue

            histogram.record(status_code)
            succeeded += 1

    logger.debug(
        "Worker %d: finished attempted=%d succeeded=%d failed=%d stopped=%s",
        worker_id,
        attempted,
        succeeded,
        failed,
        stopped,
    )

    return WorkerResult(
        worker_id=worker_id,
        quota=quota,
        attempted=attempted,
        succeeded=succeeded,
        failed=failed,
        stopped=stopped,
    )
