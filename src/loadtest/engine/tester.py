"""Load test dispatcher: splits the request count across worker threads."""

from __future__ import annotations

import queue
import threading
import time
from typing import TYPE_CHECKING

from loadtest._internal.errors import EngineError
from loadtest._internal.logging import get_logger
from loadtest.engine.stop import StopSignal
from loadtest.engine.worker import run_worker
from loadtest.metrics.histogram import StatusHistogram
from loadtest.transport.request import build_request_template

if TYPE_CHECKING:
    from loadtest._internal.config import LoadTestConfig
    from loadtest._internal.types import Result
    from loadtest.engine.protocol import WorkerResult
    from loadtest.transport.request import RequestTemplate

logger = get_logger("engine.tester")

# Seconds between join attempts; keeps the main thread responsive to signals
_JOIN_POLL_INTERVAL = 0.1


def per_worker_quota(requests: int, concurrency: int) -> int:
    """Return the number of attempts each worker gets.

    The split is ``requests // concurrency``. The remainder is never
    dispatched, so a run sends ``concurrency * quota`` requests at most.
    """
    return requests // concurrency


class LoadTester:
    """Sends ``requests`` requests to one URL from ``concurrency`` workers.

    Construction only builds the shared request template, an empty
    histogram and an unset stop flag. :meth:`start` does the work and
    blocks until every worker has finished; :meth:`stop` may be called
    from any thread (or a signal handler) to end the run early.

    The engine trusts ``requests >= 1`` and ``concurrency >= 1``. Check
    them with :func:`loadtest._internal.config.validate_config` first.

    Attributes:
        template: Request sent by every worker.
        timeout: Per-request timeout in seconds, or None for no limit.
        requests: Total requests requested by the caller.
        concurrency: Number of worker threads.
    """

    def __init__(
        self,
        url: str,
        method: str,
        user_agent: str,
        timeout: float | None,
        requests: int,
        concurrency: int,
    ) -> None:
        """Initialize the tester.

        Args:
            url: Absolute http(s) target URL.
            method: HTTP method token, already uppercased.
            user_agent: ``User-Agent`` header value.
            timeout: Per-request timeout in seconds. ``0`` or None
                disables it.
            requests: Total number of requests. Must be >= 1.
            concurrency: Number of workers. Must be >= 1.

        Raises:
            ConfigurationError: If method and URL cannot form a request.
        """
        self.template: RequestTemplate = build_request_template(url, method, user_agent)
        self.timeout = timeout or None
        self.requests = requests
        self.concurrency = concurrency

        self._histogram = StatusHistogram()
        self._stop_signal = StopSignal()
        self._start_lock = threading.Lock()
        self._started = False
        self._worker_results: list[WorkerResult] = []

    @classmethod
    def from_config(cls, config: LoadTestConfig) -> LoadTester:
        """Build a tester from a :class:`LoadTestConfig`."""
        return cls(
            url=config.url,
            method=config.method,
            user_agent=config.user_agent,
            timeout=config.timeout,
            requests=config.requests,
            concurrency=config.concurrency,
        )

    @property
    def quota(self) -> int:
        """Return the per-worker attempt budget."""
        return per_worker_quota(self.requests, self.concurrency)

    @property
    def histogram(self) -> StatusHistogram:
        return self._histogram

    @property
    def stop_signal(self) -> StopSignal:
        return self._stop_signal

    @property
    def worker_results(self) -> list[WorkerResult]:
        """Return per-worker results, ordered by worker id, after :meth:`start`."""
        return list(self._worker_results)

    @property
    def attempted(self) -> int:
        """Return the number of requests the workers actually started."""
        return sum(r.attempted for r in self._worker_results)

    def result(self) -> Result:
        """Return a snapshot of the status-code counts.

        Before :meth:`start` returns this is a partial view of the run.
        """
        return self._histogram.snapshot()

    def stop(self) -> None:
        """Ask every worker to stop before its next request.

        Requests already in flight are left to complete. Safe to call more
        than once, before :meth:`start`, or from a signal handler.
        """
        if self._stop_signal.trigger():
            logger.info("Stop requested, workers will exit after their current request")

    def start(self) -> None:
        """Run the load test and block until every worker has finished.

        Raises:
            EngineError: If called a second time, or if a worker thread
                died with an unexpected exception.
        """
        with self._start_lock:
            if self._started:
                msg = "LoadTester.start() can only be called once"
                raise EngineError(msg)
            self._started = True

        quota = self.quota
        remainder = self.requests - quota * self.concurrency
        if remainder:
            logger.warning(
                "%d of %d requests do not divide evenly across %d workers and will not be sent",
                remainder,
                self.requests,
                self.concurrency,
            )

        logger.info(
            "Starting load test: %s %s, requests=%d, concurrency=%d, quota=%d, timeout=%s",
            self.template.method,
            self.template.url,
            self.requests,
            self.concurrency,
            quota,
            f"{self.timeout:.1f}s" if self.timeout else "none",
        )

        results: queue.SimpleQueue[WorkerResult] = queue.SimpleQueue()
        crashes: queue.SimpleQueue[BaseException] = queue.SimpleQueue()

        threads = [
            threading.Thread(
                target=self._worker_thread,
                args=(worker_id, quota, results, crashes),
                name=f"loadtest-worker-{worker_id}",
                daemon=True,
            )
            for worker_id in range(self.concurrency)
        ]

        start_time = time.monotonic()
        for thread in threads:
            thread.start()

        try:
            self._join_all(threads)
        except KeyboardInterrupt:
            # No handler was installed by the caller; stop gracefully anyway
            self.stop()
            self._join_all(threads)
            raise
        finally:
            collected: list[WorkerResult] = []
            while not results.empty():
                collected.append(results.get())
            self._worker_results = sorted(collected, key=lambda r: r.worker_id)

        duration = time.monotonic() - start_time

        if not crashes.empty():
            first = crashes.get()
            msg = "A worker failed unexpectedly"
            raise EngineError(msg) from first

        logger.info(
            "Load test completed: duration=%.2fs, attempted=%d, responses=%d, "
            "failed=%d, stopped=%s",
            duration,
            self.attempted,
            self._histogram.total,
            sum(r.failed for r in self._worker_results),
            self._stop_signal.is_set(),
        )

    def _worker_thread(
        self,
        worker_id: int,
        quota: int,
        results: queue.SimpleQueue[WorkerResult],
        crashes: queue.SimpleQueue[BaseException],
    ) -> None:
        try:
            result = run_worker(
                worker_id=worker_id,
                quota=quota,
                template=self.template,
                histogram=self._histogram,
                stop_signal=self._stop_signal,
                timeout=self.timeout,
            )
        except Exception as exc:
            logger.exception("Worker %d: failed", worker_id)
            crashes.put(exc)
        else:
            results.put(result)

    @staticmethod
    def _join_all(threads: list[threading.Thread]) -> None:
        for thread in threads:
            while thread.is_alive():
                thread.join(timeout=_JOIN_POLL_INTERVAL)
