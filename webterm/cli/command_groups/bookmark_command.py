"""Bookmark command group."""

from __future__ import annotations

from typing import Any, Callable, Iterator

import typer
from rich.console import Console

from webterm.cli.shared.output_utils import print_json, print_table
from webterm.handlers.models import BookmarkCreateParams, BookmarkRemoveParams


def flatten_bookmarks(nodes: list[dict[str, Any]], depth: int = 0) -> Iterator[list[Any]]:
    """Yield ID/Title/URL rows depth-first, indenting titles by folder depth."""
    for node in nodes:
        title = node.get("title") or ""
        if "url" not in node:
            title = f"{title}/"
        yield [node.get("id"), "  " * depth + title, node.get("url", "")]
        yield from flatten_bookmarks(node.get("children") or [], depth + 1)


def register_bookmark_commands(app: typer.Typer, console: Console, call: Callable[..., Any]) -> None:
    """Register bookmark command group."""
    bookmark_app = typer.Typer(help="Manage bookmarks", no_args_is_help=True)
    app.add_typer(bookmark_app, name="bookmark")

    @bookmark_app.command("list")
    def bookmark_list(
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        """Show the bookmark tree."""
        tree = call("bookmark.list") or []
        if json_output:
            print_json(tree)
            return
        roots = tree[0].get("children", []) if len(tree) == 1 and not tree[0].get("title") else tree
        print_table(console, ["ID", "Title", "URL"], flatten_bookmarks(roots))

    @bookmark_app.command("create")
    def bookmark_create(
        url: str = typer.Argument(None, help="Bookmark URL (omit to create a folder)"),
        parent_id: str = typer.Option(None, "--parent", "-p", help="Parent folder ID"),
        title: str = typer.Option(None, "--title", help="Bookmark title"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        """Create a bookmark or folder."""
        node = call("bookmark.create", BookmarkCreateParams(parent_id=parent_id, title=title, url=url)) or {}
        if json_output:
            print_json(node)
            return
        kind = "bookmark" if node.get("url") else "folder"
        console.print(f"[green]✓[/green] Created {kind} [cyan]{node.get('id')}[/cyan]")

    @bookmark_app.command("remove")
    def bookmark_remove(
        bookmark_id: str = typer.Argument(..., help="Bookmark or empty folder ID"),
    ) -> None:
        """Remove a bookmark or empty folder."""
        call("bookmark.remove", BookmarkRemoveParams(id=bookmark_id))
