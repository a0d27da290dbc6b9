"""Shared fixtures: in-memory browser backend and connected stream pairs."""

from __future__ import annotations

import asyncio
import socket
from typing import Any

import pytest

from webterm.utils.exceptions import NotFoundError


async def open_stream_pair() -> tuple[tuple[asyncio.StreamReader, asyncio.StreamWriter], tuple[asyncio.StreamReader, asyncio.StreamWriter]]:
    """Two connected asyncio stream ends over a socketpair."""
    left, right = socket.socketpair()
    return await asyncio.open_connection(sock=left), await asyncio.open_connection(sock=right)


class FakeBackend:
    """In-memory browser: two windows, three tabs, call log."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.focused_window = 1
        self.windows: dict[int, dict[str, Any]] = {1: {"id": 1}, 2: {"id": 2}}
        self.tabs: dict[int, dict[str, Any]] = {
            7: {"id": 7, "windowId": 1, "title": "Example", "url": "https://example.com", "active": True, "pinned": False},
            8: {"id": 8, "windowId": 1, "title": "Docs", "url": "https://docs.example.com", "active": False, "pinned": False},
            9: {"id": 9, "windowId": 2, "title": "Other", "url": "https://other.example.com", "active": True, "pinned": False},
        }
        self.next_tab_id = 10
        self.script_result: Any = None
        self.bookmarks: list[dict[str, Any]] = [{"id": "0", "title": "", "children": []}]
        self.history = [{"id": "1", "url": "https://example.com", "title": "Example", "visitCount": 2}]
        self.downloads = [{"id": 1, "url": "https://example.com/a.zip", "filename": "a.zip", "state": "complete"}]

    def _tab(self, tab_id: int) -> dict[str, Any]:
        if tab_id not in self.tabs:
            raise NotFoundError("tab", tab_id)
        return self.tabs[tab_id]

    async def active_tab_id(self) -> int:
        for tab in self.tabs.values():
            if tab["windowId"] == self.focused_window and tab["active"]:
                return tab["id"]
        raise NotFoundError("tab", "active")

    async def query_tabs(self, *, current_window: bool = True) -> list[dict[str, Any]]:
        return [dict(t) for t in self.tabs.values() if not current_window or t["windowId"] == self.focused_window]

    async def get_tab(self, tab_id: int) -> dict[str, Any]:
        return dict(self._tab(tab_id))

    async def update_tab(self, tab_id: int, *, url: str | None = None, active: bool | None = None, pinned: bool | None = None) -> dict[str, Any]:
        self.calls.append(("update_tab", tab_id, url, active, pinned))
        tab = self._tab(tab_id)
        if url is not None:
            tab["url"] = url
        if pinned is not None:
            tab["pinned"] = pinned
        if active:
            for other in self.tabs.values():
                if other["windowId"] == tab["windowId"]:
                    other["active"] = other["id"] == tab_id
        return dict(tab)

    async def remove_tabs(self, tab_ids: list[int]) -> None:
        self.calls.append(("remove_tabs", list(tab_ids)))
        for tab_id in tab_ids:
            self._tab(tab_id)
            del self.tabs[tab_id]

    async def reload_tab(self, tab_id: int) -> None:
        self.calls.append(("reload_tab", tab_id))
        self._tab(tab_id)

    async def create_tab(self, *, url: str | None = None, window_id: int | None = None) -> dict[str, Any]:
        self.calls.append(("create_tab", url, window_id))
        tab = {"id": self.next_tab_id, "windowId": window_id, "title": "", "url": url or "about:blank", "active": False, "pinned": False}
        self.tabs[tab["id"]] = tab
        self.next_tab_id += 1
        return dict(tab)

    async def execute_script(self, tab_id: int, script: str, arg: Any = None) -> Any:
        self.calls.append(("execute_script", tab_id, script, arg))
        self._tab(tab_id)
        return self.script_result

    async def current_window(self) -> dict[str, Any]:
        return dict(self.windows[self.focused_window])

    async def list_windows(self) -> list[dict[str, Any]]:
        return [{**w, "focused": w["id"] == self.focused_window} for w in self.windows.values()]

    async def update_window(self, window_id: int, *, focused: bool | None = None) -> dict[str, Any]:
        self.calls.append(("update_window", window_id, focused))
        if window_id not in self.windows:
            raise NotFoundError("window", window_id)
        if focused:
            self.focused_window = window_id
        return {**self.windows[window_id], "focused": window_id == self.focused_window}

    async def remove_window(self, window_id: int) -> None:
        self.calls.append(("remove_window", window_id))
        if self.windows.pop(window_id, None) is None:
            raise NotFoundError("window", window_id)

    async def create_window(self, url: str | None = None) -> dict[str, Any]:
        self.calls.append(("create_window", url))
        window_id = max(self.windows) + 1
        self.windows[window_id] = {"id": window_id}
        return {"id": window_id, "focused": False}

    async def list_extensions(self) -> list[dict[str, Any]]:
        return [{"id": "demo", "name": "Demo", "version": "1.0", "enabled": True}]

    async def bookmark_tree(self) -> list[dict[str, Any]]:
        return self.bookmarks

    async def create_bookmark(self, *, parent_id: str | None = None, title: str | None = None, url: str | None = None) -> dict[str, Any]:
        self.calls.append(("create_bookmark", parent_id, title, url))
        return {"id": "5", "parentId": parent_id or "2", "title": title or "", "url": url}

    async def remove_bookmark(self, bookmark_id: str) -> None:
        self.calls.append(("remove_bookmark", bookmark_id))

    async def search_downloads(self) -> list[dict[str, Any]]:
        return self.downloads

    async def search_history(self, text: str) -> list[dict[str, Any]]:
        self.calls.append(("search_history", text))
        return [h for h in self.history if text in h["url"] or text in h["title"]]


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def stream_pair():
    """Factory for connected (reader, writer) pairs; await it inside the test."""
    return open_stream_pair
