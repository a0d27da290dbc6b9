"""Selection command group."""

from __future__ import annotations

from typing import Any, Callable

import typer

from webterm.handlers.models import SelectionSetParams, TabParams


def register_selection_commands(app: typer.Typer, call: Callable[..., Any]) -> None:
    """Register selection command group."""
    selection_app = typer.Typer(help="Read or replace the text selected in a tab", no_args_is_help=True)
    app.add_typer(selection_app, name="selection")

    @selection_app.command("get")
    def selection_get(
        tab_id: int = typer.Option(None, "--tab", "-t", help="Tab ID (default: active tab)"),
    ) -> None:
        """Print the selected text."""
        typer.echo(call("selection.get", TabParams(tab_id=tab_id)) or "")

    @selection_app.command("set")
    def selection_set(
        text: str = typer.Argument(..., help="Replacement text"),
        tab_id: int = typer.Option(None, "--tab", "-t", help="Tab ID (default: active tab)"),
    ) -> None:
        """Replace the selected text."""
        call("selection.set", SelectionSetParams(tab_id=tab_id, text=text))
