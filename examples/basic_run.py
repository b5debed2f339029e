"""Drive a load test from Python instead of the CLI.

Sends 200 GET requests from 10 workers and prints the status codes.
Press Ctrl-C to stop early; requests in flight still complete. Run it with:

    python examples/basic_run.py http://localhost:8080/health
"""

from __future__ import annotations

import logging
import sys

from loadtest import LoadTestConfig, LoadTester, validate_config
from loadtest._internal.logging import setup_logging


def main(url: str) -> None:
    setup_logging(logging.INFO)

    config = LoadTestConfig(url=url, requests=200, concurrency=10, timeout=5.0)
    validate_config(config)

    tester = LoadTester.from_config(config)
    try:
        tester.start()
    except KeyboardInterrupt:
        print("interrupted", file=sys.stderr)

    for code, count in sorted(tester.result().items()):
        print(f"{code}: {count}")


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8080/")
