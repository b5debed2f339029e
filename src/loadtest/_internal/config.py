"""Configuration loading for loadtest."""

from __future__ import annotations

import os
from dataclasses import dataclass

from loadtest._internal.errors import ConfigurationError

DEFAULT_REQUESTS = 500
DEFAULT_CONCURRENCY = 100
DEFAULT_METHOD = "GET"
DEFAULT_USER_AGENT = "loadtest"
DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class LoadTestConfig:
    """Everything needed to build a :class:`~loadtest.engine.tester.LoadTester`.

    Attributes:
        url: Absolute target URL.
        method: HTTP method token, already uppercased.
        user_agent: Value of the ``User-Agent`` header.
        timeout: Per-request timeout in seconds. ``0`` disables it.
        requests: Total number of requests to send.
        concurrency: Number of concurrent workers.
    """

    url: str
    method: str = DEFAULT_METHOD
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_TIMEOUT
    requests: int = DEFAULT_REQUESTS
    concurrency: int = DEFAULT_CONCURRENCY


def load_config(url: str) -> LoadTestConfig:
    """Build a configuration for ``url`` with defaults from the environment.

    Environment variables:
        LOADTEST_REQUESTS: Total requests (default: 500).
        LOADTEST_CONCURRENCY: Concurrent workers (default: 100).
        LOADTEST_METHOD: HTTP method (default: GET).
        LOADTEST_USER_AGENT: User-Agent header (default: loadtest).
        LOADTEST_TIMEOUT: Request timeout in seconds (default: 10.0).

    Values are parsed but not range-checked, so command-line flags can
    still override them; run :func:`validate_config` on the final value.

    Returns:
        Populated LoadTestConfig instance.

    Raises:
        ConfigurationError: If an environment variable cannot be parsed.
    """
    requests = _int_from_env("LOADTEST_REQUESTS", DEFAULT_REQUESTS)
    concurrency = _int_from_env("LOADTEST_CONCURRENCY", DEFAULT_CONCURRENCY)

    timeout_str = os.environ.get("LOADTEST_TIMEOUT", str(DEFAULT_TIMEOUT))
    try:
        timeout = float(timeout_str)
    except ValueError:
        msg = f"LOADTEST_TIMEOUT must be a number, got: {timeout_str!r}"
        raise ConfigurationError(msg) from None

    return LoadTestConfig(
        url=url,
        method=os.environ.get("LOADTEST_METHOD", DEFAULT_METHOD).upper(),
        user_agent=os.environ.get("LOADTEST_USER_AGENT", DEFAULT_USER_AGENT),
        timeout=timeout,
        requests=requests,
        concurrency=concurrency,
    )


def validate_config(config: LoadTestConfig) -> None:
    """Check the numeric invariants the engine relies on.

    The engine itself trusts ``requests >= 1`` and ``concurrency >= 1``;
    callers are expected to run this first. Method and URL are checked
    when the request template is built.

    Raises:
        ConfigurationError: If a value is out of range.
    """
    if config.requests < 1:
        msg = f"requests can't be less than 1, got: {config.requests}"
        raise ConfigurationError(msg)

    if config.concurrency < 1:
        msg = f"concurrency can't be less than 1, got: {config.concurrency}"
        raise ConfigurationError(msg)

    if config.timeout < 0:
        msg = f"timeout can't be negative, got: {config.timeout}"
        raise ConfigurationError(msg)


def _int_from_env(name: str, default: int) -> int:
    value = os.environ.get(name, str(default))
    try:
        return int(value)
    except ValueError:
        msg = f"{name} must be an integer, got: {value!r}"
        raise ConfigurationError(msg) from None
