"""Browser capabilities the command handlers are written against."""

from __future__ import annotations

from typing import Any, Protocol


class BrowserBackend(Protocol):
    """Async browser API. Tabs, windows and history items are plain JSON dicts."""

    async def active_tab_id(self) -> int: ...

    async def query_tabs(self, *, current_window: bool = True) -> list[dict[str, Any]]: ...

    async def get_tab(self, tab_id: int) -> dict[str, Any]: ...

    async def update_tab(
        self,
        tab_id: int,
        *,
        url: str | None = None,
        active: bool | None = None,
        pinned: bool | None = None,
    ) -> dict[str, Any]: ...

    async def remove_tabs(self, tab_ids: list[int]) -> None: ...

    async def reload_tab(self, tab_id: int) -> None: ...

    async def create_tab(self, *, url: str, window_id: int) -> dict[str, Any]: ...

    async def execute_script(self, tab_id: int, script: str, arg: Any = None) -> Any: ...

    async def current_window(self) -> dict[str, Any]: ...

    async def list_windows(self) -> list[dict[str, Any]]: ...

    async def update_window(self, window_id: int, *, focused: bool) -> dict[str, Any]: ...

    async def remove_window(self, window_id: int) -> None: ...

    async def create_window(self, url: str | None = None) -> dict[str, Any]: ...

    async def list_extensions(self) -> list[dict[str, Any]]: ...

    async def bookmark_tree(self) -> list[dict[str, Any]]: ...

    async def create_bookmark(
        self,
        *,
        parent_id: str | None = None,
        title: str | None = None,
        url: str | None = None,
    ) -> dict[str, Any]: ...

    async def remove_bookmark(self, bookmark_id: str) -> None: ...

    async def search_downloads(self) -> list[dict[str, Any]]: ...

    async def search_history(self, text: str) -> list[dict[str, Any]]: ...
