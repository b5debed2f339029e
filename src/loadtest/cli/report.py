"""Rendering of a finished run's status-code histogram."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from loadtest._internal.types import Result

console = Console(stderr=True)

FORMATS = ("json", "table")


def format_json(result: Result) -> str:
    """Serialize ``result`` as a JSON object keyed by status code.

    Keys are strings (JSON has no integer keys) and sorted numerically,
    e.g. ``{"200": 18, "503": 2}``.
    """
    return json.dumps({str(code): result[code] for code in sorted(result)})


def build_table(result: Result, attempted: int) -> Table:
    """Build a Rich table with one row per status code.

    Args:
        result: Status code counts.
        attempted: Requests the workers started, used for the share column
            and the footer.

    Returns:
        Formatted Rich Table.
    """
    responses = sum(result.values())
    table = Table(
        title="Status Codes",
        show_header=True,
        header_style="bold cyan",
        show_footer=True,
    )
    table.add_column("Status", style="bold", footer="Total")
    table.add_column("Count", justify="right", footer=str(responses))
    table.add_column(
        "Share",
        justify="right",
        footer=f"{responses} of {attempted} attempted",
    )

    for code in sorted(result):
        count = result[code]
        share = count / attempted * 100 if attempted else 0.0
        table.add_row(str(code), str(count), f"{share:.1f}%")

    return table


def render_result(result: Result, fmt: str, *, attempted: int) -> None:
    """Write ``result`` to stderr in the requested format.

    Args:
        result: Status code counts.
        fmt: ``json`` or ``table``.
        attempted: Requests the workers started.

    Raises:
        ValueError: If ``fmt`` is not a known format.
    """
    if fmt == "json":
        typer.echo(format_json(result), err=True)
    elif fmt == "table":
        console.print(build_table(result, attempted))
    else:
        msg = f"Unknown format: {fmt}. Choose from: {', '.join(FORMATS)}"
        raise ValueError(msg)
