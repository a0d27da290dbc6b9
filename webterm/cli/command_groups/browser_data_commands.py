"""Read-only browser data: extensions, downloads, history."""

from __future__ import annotations

from typing import Any, Callable

import typer
from rich.console import Console

from webterm.cli.shared.output_utils import print_json, print_table
from webterm.handlers.models import HistorySearchParams


def register_browser_data_commands(app: typer.Typer, console: Console, call: Callable[..., Any]) -> None:
    """Register extension, download and history command groups."""
    extension_app = typer.Typer(help="Inspect installed extensions", no_args_is_help=True)
    download_app = typer.Typer(help="Inspect downloads", no_args_is_help=True)
    history_app = typer.Typer(help="Search browsing history", no_args_is_help=True)
    app.add_typer(extension_app, name="extension")
    app.add_typer(download_app, name="download")
    app.add_typer(history_app, name="history")

    @extension_app.command("list")
    def extension_list(
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        """List extensions."""
        extensions = call("extension.list") or []
        if json_output:
            print_json(extensions)
            return
        print_table(
            console,
            ["ID", "Name", "Version", "Enabled"],
            ([e.get("id"), e.get("name"), e.get("version"), "yes" if e.get("enabled") else "no"] for e in extensions),
        )

    @download_app.command("list")
    def download_list(
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        """List downloads."""
        downloads = call("download.list") or []
        if json_output:
            print_json(downloads)
            return
        print_table(
            console,
            ["ID", "State", "File", "URL"],
            ([d.get("id"), d.get("state"), d.get("filename"), d.get("url")] for d in downloads),
        )

    @history_app.command("search")
    def history_search(
        query: str = typer.Argument("", help="Text to match against URL and title"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        """Search history (empty query lists recent entries)."""
        items = call("history.search", HistorySearchParams(query=query)) or []
        if json_output:
            print_json(items)
            return
        print_table(
            console,
            ["ID", "Visits", "Title", "URL"],
            ([h.get("id"), h.get("visitCount"), h.get("title"), h.get("url")] for h in items),
        )
