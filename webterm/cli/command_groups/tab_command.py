"""Tab command group."""

from __future__ import annotations

from typing import Any, Callable

import typer
from rich.console import Console

from webterm.cli.shared.output_utils import print_json, print_table
from webterm.handlers.models import TabCreateParams, TabFocusParams, TabIdsParams, TabParams, TabUpdateParams

CompanionCall = Callable[..., Any]


def tab_row(tab: dict[str, Any]) -> list[Any]:
    return [tab.get("id"), tab.get("title", ""), tab.get("url", "")]


def register_tab_commands(app: typer.Typer, console: Console, call: CompanionCall) -> None:
    """Register tab command group."""
    tab_app = typer.Typer(help="Manage browser tabs", no_args_is_help=True)
    app.add_typer(tab_app, name="tab")

    @tab_app.command("list")
    def tab_list(
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        """List tabs of the current window."""
        tabs = call("tab.list") or []
        if json_output:
            print_json(tabs)
            return
        print_table(console, ["ID", "Title", "URL"], (tab_row(t) for t in tabs))

    @tab_app.command("get")
    def tab_get(
        tab_id: int = typer.Argument(None, help="Tab ID (default: active tab)"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        """Show one tab."""
        tab = call("tab.get", TabParams(tab_id=tab_id)) or {}
        if json_output:
            print_json(tab)
            return
        print_table(console, ["ID", "Title", "URL"], [tab_row(tab)])

    @tab_app.command("url")
    def tab_url(
        tab_id: int = typer.Argument(None, help="Tab ID (default: active tab)"),
    ) -> None:
        """Print the URL of a tab."""
        tab = call("tab.get", TabParams(tab_id=tab_id)) or {}
        typer.echo(tab.get("url", ""))

    @tab_app.command("pin")
    def tab_pin(
        tab_ids: list[int] = typer.Argument(None, help="Tab IDs (default: active tab)"),
    ) -> None:
        """Pin tabs."""
        call("tab.pin", TabIdsParams(tab_ids=tab_ids or None))

    @tab_app.command("unpin")
    def tab_unpin(
        tab_ids: list[int] = typer.Argument(None, help="Tab IDs (default: active tab)"),
    ) -> None:
        """Unpin tabs."""
        call("tab.unpin", TabIdsParams(tab_ids=tab_ids or None))

    @tab_app.command("focus")
    def tab_focus(
        tab_id: int = typer.Argument(..., help="Tab ID"),
    ) -> None:
        """Activate a tab and focus its window."""
        call("tab.focus", TabFocusParams(tab_id=tab_id))

    @tab_app.command("close")
    def tab_close(
        tab_ids: list[int] = typer.Argument(None, help="Tab IDs (default: active tab)"),
    ) -> None:
        """Close tabs."""
        call("tab.remove", TabIdsParams(tab_ids=tab_ids or None))

    @tab_app.command("reload")
    def tab_reload(
        tab_ids: list[int] = typer.Argument(None, help="Tab IDs (default: active tab)"),
    ) -> None:
        """Reload tabs."""
        call("tab.reload", TabIdsParams(tab_ids=tab_ids or None))

    @tab_app.command("update")
    def tab_update(
        tab_id: int = typer.Argument(..., help="Tab ID"),
        url: str = typer.Argument(..., help="New URL"),
    ) -> None:
        """Navigate a tab to a new URL."""
        call("tab.update", TabUpdateParams(tab_id=tab_id, url=url))

    @tab_app.command("create")
    def tab_create(
        urls: list[str] = typer.Argument(None, help="URLs to open in the current window"),
    ) -> None:
        """Open new tabs."""
        call("tab.create", TabCreateParams(urls=list(urls or [])))

    @tab_app.command("source")
    def tab_source(
        tab_id: int = typer.Argument(None, help="Tab ID (default: active tab)"),
    ) -> None:
        """Print the HTML source of a tab."""
        source = call("tab.source", TabParams(tab_id=tab_id))
        typer.echo(source or "", nl=False)
