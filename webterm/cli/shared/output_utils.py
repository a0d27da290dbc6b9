"""Terminal output helpers shared by command groups."""

from __future__ import annotations

import json
from typing import Any, Iterable

import typer
from rich.console import Console
from rich.table import Table


def print_json(data: Any) -> None:
    """Write indented JSON to stdout."""
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


def print_table(console: Console, columns: list[str], rows: Iterable[list[Any]], title: str | None = None) -> None:
    table = Table(title=title)
    for i, col in enumerate(columns):
        table.add_column(col, style="cyan" if i == 0 else None, overflow="fold")
    for row in rows:
        table.add_row(*("" if cell is None else str(cell) for cell in row))
    console.print(table)
