"""``loadtest run``: load test one URL and print the status-code histogram."""

from __future__ import annotations

import dataclasses
import logging
import signal
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from loadtest._internal.config import load_config, validate_config
from loadtest._internal.errors import LoadTestError
from loadtest._internal.logging import get_logger, setup_logging, teardown_logging
from loadtest.cli.report import FORMATS, render_result
from loadtest.engine.tester import LoadTester

if TYPE_CHECKING:
    from loadtest._internal.config import LoadTestConfig

console = Console(stderr=True)
logger = get_logger("cli.run")


def _build_config(
    url: str,
    requests: int | None,
    concurrency: int | None,
    method: str | None,
    user_agent: str | None,
    timeout: float | None,
) -> LoadTestConfig:
    """Merge CLI flags over environment defaults and validate the result.

    Raises:
        ConfigurationError: If an environment value cannot be parsed or a
            merged value is out of range.
    """
    overrides: dict[str, object] = {}
    if requests is not None:
        overrides["requests"] = requests
    if concurrency is not None:
        overrides["concurrency"] = concurrency
    if method is not None:
        overrides["method"] = method.upper()
    if user_agent is not None:
        overrides["user_agent"] = user_agent
    if timeout is not None:
        overrides["timeout"] = timeout

    config = dataclasses.replace(load_config(url), **overrides)
    validate_config(config)
    return config


def _run_with_signal_handlers(tester: LoadTester) -> None:
    """Run ``tester`` with SIGINT/SIGTERM wired to a graceful stop.

    The previous handlers are restored afterwards.
    """
    original_sigint = signal.getsignal(signal.SIGINT)
    original_sigterm = signal.getsignal(signal.SIGTERM)

    def _signal_handler(signum: int, _frame: object) -> None:
        logger.info("Signal %d received, stopping workers", signum)
        tester.stop()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)
    try:
        tester.start()
    finally:
        signal.signal(signal.SIGINT, original_sigint)
        signal.signal(signal.SIGTERM, original_sigterm)


def run_cmd(
    url: str = typer.Argument(
        ...,
        help="Target URL, e.g. http://localhost:8080/health.",
    ),
    requests: int | None = typer.Option(
        None,
        "--requests",
        "-n",
        help="Total number of requests to send. Defaults to $LOADTEST_REQUESTS or 500.",
    ),
    concurrency: int | None = typer.Option(
        None,
        "--concurrency",
        "-c",
        help="Number of concurrent workers. Defaults to $LOADTEST_CONCURRENCY or 100.",
    ),
    method: str | None = typer.Option(
        None,
        "--method",
        "-m",
        help="HTTP method. Defaults to $LOADTEST_METHOD or GET.",
    ),
    user_agent: str | None = typer.Option(
        None,
        "--user-agent",
        "-A",
        help="User-Agent header. Defaults to $LOADTEST_USER_AGENT or loadtest.",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Per-request timeout in seconds, 0 for none. Defaults to $LOADTEST_TIMEOUT or 10.",
    ),
    fmt: str = typer.Option(
        "json",
        "--format",
        "-f",
        help="Result format: json or table.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging.",
    ),
    log_json: bool = typer.Option(
        False,
        "--log-json",
        help="Emit log lines as JSON objects.",
    ),
) -> None:
    """Send the requests, then print a histogram of response status codes."""
    if fmt not in FORMATS:
        msg = f"Unknown format: {fmt}. Choose from: {', '.join(FORMATS)}"
        raise typer.BadParameter(msg)

    setup_logging(
        level=logging.DEBUG if verbose else logging.WARNING,
        json_format=log_json,
    )

    try:
        try:
            config = _build_config(url, requests, concurrency, method, user_agent, timeout)
            tester = LoadTester.from_config(config)
        except LoadTestError as exc:
            console.print(f"[red]Error:[/red] {escape(str(exc))}")
            raise typer.Exit(code=1) from exc

        if fmt == "table":
            console.print(
                Panel(
                    f"[bold]Target:[/bold]      {escape(config.method)} {escape(config.url)}\n"
                    f"[bold]Requests:[/bold]    {config.requests}\n"
                    f"[bold]Concurrency:[/bold] {config.concurrency}\n"
                    f"[bold]Timeout:[/bold]     {config.timeout or 'none'}",
                    title="loadtest",
                    border_style="cyan",
                )
            )

        try:
            _run_with_signal_handlers(tester)
        except LoadTestError as exc:
            console.print(f"[red]Load test failed:[/red] {escape(str(exc))}")
            raise typer.Exit(code=1) from exc

        render_result(tester.result(), fmt, attempted=tester.attempted)
    finally:
        teardown_logging()
