"""Handlers for the tab, window, selection, bookmark and history commands."""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from webterm.handlers.backend import BrowserBackend
from webterm.handlers.models import (
    PARAMS_MODELS,
    BookmarkCreateParams,
    BookmarkRemoveParams,
    HistorySearchParams,
    NoParams,
    SelectionSetParams,
    TabCreateParams,
    TabFocusParams,
    TabIdsParams,
    TabParams,
    TabUpdateParams,
    WindowCreateParams,
    WindowParams,
)
from webterm.rpc.router import CommandHandler
from webterm.utils.exceptions import NotFoundError

PAGE_SOURCE_JS = "() => document.documentElement.outerHTML"

SELECTION_GET_JS = "() => (window.getSelection() ? window.getSelection().toString() : '')"

SELECTION_SET_JS = """(text) => {
  const selection = window.getSelection();
  if (!selection || selection.rangeCount === 0) {
    return;
  }
  const range = selection.getRangeAt(0);
  const node = document.createTextNode(text);
  range.deleteContents();
  range.insertNode(node);
  range.collapse(false);
  selection.removeAllRanges();
  selection.addRange(range);
}"""


class BrowserCommands:
    """Command implementations over a BrowserBackend."""

    def __init__(self, backend: BrowserBackend):
        self.backend = backend

    async def _tab_or_active(self, tab_id: int | None) -> int:
        return tab_id if tab_id is not None else await self.backend.active_tab_id()

    async def _tabs_or_active(self, tab_ids: list[int] | None) -> list[int]:
        return list(tab_ids) if tab_ids is not None else [await self.backend.active_tab_id()]

    async def tab_list(self, _: NoParams) -> list[dict[str, Any]]:
        return await self.backend.query_tabs(current_window=True)

    async def tab_get(self, params: TabParams) -> dict[str, Any]:
        return await self.backend.get_tab(await self._tab_or_active(params.tab_id))

    async def tab_pin(self, params: TabIdsParams) -> None:
        for tab_id in await self._tabs_or_active(params.tab_ids):
            await self.backend.update_tab(tab_id, pinned=True)

    async def tab_unpin(self, params: TabIdsParams) -> None:
        for tab_id in await self._tabs_or_active(params.tab_ids):
            await self.backend.update_tab(tab_id, pinned=False)

    async def tab_focus(self, params: TabFocusParams) -> None:
        tab = await self.backend.update_tab(params.tab_id, active=True)
        window_id = tab.get("windowId")
        if window_id is not None:
            await self.backend.update_window(window_id, focused=True)

    async def tab_remove(self, params: TabIdsParams) -> None:
        await self.backend.remove_tabs(await self._tabs_or_active(params.tab_ids))

    async def tab_reload(self, params: TabIdsParams) -> None:
        for tab_id in await self._tabs_or_active(params.tab_ids):
            await self.backend.reload_tab(tab_id)

    async def tab_update(self, params: TabUpdateParams) -> None:
        await self.backend.update_tab(params.tab_id, url=params.url)

    async def tab_create(self, params: TabCreateParams) -> None:
        window = await self.backend.current_window()
        window_id = window.get("id")
        if window_id is None:
            raise NotFoundError("window", "current")
        for url in params.urls:
            await self.backend.create_tab(url=url, window_id=window_id)
        await self.backend.update_window(window_id, focused=True)

    async def tab_source(self, params: TabParams) -> str:
        tab_id = await self._tab_or_active(params.tab_id)
        return await self.backend.execute_script(tab_id, PAGE_SOURCE_JS)

    async def selection_get(self, params: TabParams) -> str:
        tab_id = await self._tab_or_active(params.tab_id)
        return await self.backend.execute_script(tab_id, SELECTION_GET_JS) or ""

    async def selection_set(self, params: SelectionSetParams) -> None:
        tab_id = await self._tab_or_active(params.tab_id)
        await self.backend.execute_script(tab_id, SELECTION_SET_JS, params.text)

    async def window_list(self, _: NoParams) -> list[dict[str, Any]]:
        return await self.backend.list_windows()

    async def window_focus(self, params: WindowParams) -> dict[str, Any]:
        return await self.backend.update_window(params.window_id, focused=True)

    async def window_remove(self, params: WindowParams) -> None:
        await self.backend.remove_window(params.window_id)

    async def window_create(self, params: WindowCreateParams) -> dict[str, Any]:
        return await self.backend.create_window(params.url)

    async def extension_list(self, _: NoParams) -> list[dict[str, Any]]:
        return await self.backend.list_extensions()

    async def bookmark_list(self, _: NoParams) -> list[dict[str, Any]]:
        return await self.backend.bookmark_tree()

    async def bookmark_create(self, params: BookmarkCreateParams) -> dict[str, Any]:
        return await self.backend.create_bookmark(parent_id=params.parent_id, title=params.title, url=params.url)

    async def bookmark_remove(self, params: BookmarkRemoveParams) -> None:
        await self.backend.remove_bookmark(params.id)

    async def download_list(self, _: NoParams) -> list[dict[str, Any]]:
        return await self.backend.search_downloads()

    async def history_search(self, params: HistorySearchParams) -> list[dict[str, Any]]:
        return await self.backend.search_history(params.query)

    def methods(self) -> dict[str, Callable[[Any], Awaitable[Any]]]:
        return {
            "tab.list": self.tab_list,
            "tab.get": self.tab_get,
            "tab.pin": self.tab_pin,
            "tab.unpin": self.tab_unpin,
            "tab.focus": self.tab_focus,
            "tab.remove": self.tab_remove,
            "tab.reload": self.tab_reload,
            "tab.update": self.tab_update,
            "tab.create": self.tab_create,
            "tab.source": self.tab_source,
            "selection.get": self.selection_get,
            "selection.set": self.selection_set,
            "window.list": self.window_list,
            "window.focus": self.window_focus,
            "window.remove": self.window_remove,
            "window.create": self.window_create,
            "extension.list": self.extension_list,
            "bookmark.list": self.bookmark_list,
            "bookmark.create": self.bookmark_create,
            "bookmark.remove": self.bookmark_remove,
            "download.list": self.download_list,
            "history.search": self.history_search,
        }


def build_handler_table(backend: BrowserBackend) -> dict[str, CommandHandler]:
    """Build the router's dispatch table for a backend."""
    commands = BrowserCommands(backend)
    return {
        name: CommandHandler(command=name, func=func, params_model=PARAMS_MODELS[name])
        for name, func in commands.methods().items()
    }
