"""loadtest: send a fixed number of HTTP requests from concurrent workers."""

from __future__ import annotations

from loadtest._internal.config import LoadTestConfig, load_config, validate_config
from loadtest._internal.errors import (
    ConfigurationError,
    EngineError,
    LoadTestError,
    TransportError,
)
from loadtest.engine.stop import StopSignal
from loadtest.engine.tester import LoadTester, per_worker_quota
from loadtest.metrics.histogram import StatusHistogram
from loadtest.transport.request import RequestTemplate, build_request_template

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "EngineError",
    "LoadTestConfig",
    "LoadTestError",
    "LoadTester",
    "RequestTemplate",
    "StatusHistogram",
    "StopSignal",
    "TransportError",
    "build_request_template",
    "load_config",
    "per_worker_quota",
    "validate_config",
]
