"""Main Typer application: entry point for the ``loadtest`` CLI."""

from __future__ import annotations

import typer

from loadtest import __version__
from loadtest.cli.run import run_cmd

app = typer.Typer(
    name="loadtest",
    help="Send a fixed number of HTTP requests from concurrent workers.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("run", help="Load test a single URL and report status codes.")(run_cmd)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"loadtest {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """loadtest: concurrent HTTP load with a status-code histogram."""
