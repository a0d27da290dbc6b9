"""Window command group."""

from __future__ import annotations

from typing import Any, Callable

import typer
from rich.console import Console

from webterm.cli.shared.output_utils import print_json, print_table
from webterm.handlers.models import WindowCreateParams, WindowParams


def window_row(window: dict[str, Any]) -> list[Any]:
    return [window.get("id"), "yes" if window.get("focused") else "", window.get("state", "")]


def register_window_commands(app: typer.Typer, console: Console, call: Callable[..., Any]) -> None:
    """Register window command group."""
    window_app = typer.Typer(help="Manage browser windows", no_args_is_help=True)
    app.add_typer(window_app, name="window")

    @window_app.command("list")
    def window_list(
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        """List windows."""
        windows = call("window.list") or []
        if json_output:
            print_json(windows)
            return
        print_table(console, ["ID", "Focused", "State"], (window_row(w) for w in windows))

    @window_app.command("focus")
    def window_focus(
        window_id: int = typer.Argument(..., help="Window ID"),
    ) -> None:
        """Focus a window."""
        call("window.focus", WindowParams(window_id=window_id))

    @window_app.command("close")
    def window_close(
        window_id: int = typer.Argument(..., help="Window ID"),
    ) -> None:
        """Close a window and all of its tabs."""
        call("window.remove", WindowParams(window_id=window_id))

    @window_app.command("create")
    def window_create(
        url: str = typer.Argument(None, help="URL to open in the new window"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        """Open a new window."""
        window = call("window.create", WindowCreateParams(url=url)) or {}
        if json_output:
            print_json(window)
            return
        console.print(f"Opened window [cyan]{window.get('id')}[/cyan]")
