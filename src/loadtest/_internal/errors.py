"""Custom exception hierarchy for loadtest."""

from __future__ import annotations


class LoadTestError(Exception):
    """Base exception for all loadtest errors.

    Every exception raised deliberately by the package inherits from this
    class, so callers can catch any loadtest-specific failure with a
    single except clause.
    """


class ConfigurationError(LoadTestError):
    """Raised when a load test cannot be configured.

    Examples:
        - The HTTP method is not a valid token (e.g. ``"GE T"``).
        - The target URL is not an absolute http(s) URL.
        - An environment variable has an invalid value.
        - ``requests`` or ``concurrency`` is below 1.
    """


class TransportError(LoadTestError):
    """Raised when a single request fails to complete its round trip.

    Timeouts, refused connections, DNS failures and servers that hang up
    without answering all end up here. The original exception is chained
    as ``__cause__``.
    """


class EngineError(LoadTestError):
    """Raised when the dispatcher is misused or a worker dies unexpectedly."""
