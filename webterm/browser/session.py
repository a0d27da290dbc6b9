"""Playwright-driven Chromium session backing the companion's commands.

One persistent browser context holds every page. Windows are groups of
pages tracked here; tab and window ids are small integers assigned in
creation order.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from webterm.browser.bookmarks import BookmarkStore
from webterm.utils.exceptions import NotFoundError, WebtermError

HISTORY_MAX_RESULTS = 100


@dataclass
class TabInfo:
    """One page with a stable tab id."""
    id: int
    window_id: int
    page: Any  # playwright.async_api.Page
    pinned: bool = False


@dataclass
class WindowInfo:
    """Ordered tab ids of one window; pinned tabs come first."""
    id: int
    tab_ids: list[int] = field(default_factory=list)
    active_tab_id: int | None = None


def _now_ms() -> float:
    return time.time() * 1000


def read_extension_manifest(path: Path) -> dict[str, Any]:
    """Describe an unpacked extension directory from its manifest.json."""
    manifest_path = path / "manifest.json"
    try:
        manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Cannot read extension manifest {}: {}", manifest_path, e)
        manifest = {}
    return {
        "id": path.name,
        "name": str(manifest.get("name") or path.name),
        "version": str(manifest.get("version") or ""),
        "description": str(manifest.get("description") or ""),
        "enabled": True,
        "type": "extension",
        "installType": "development",
        "path": str(path),
    }


class BrowserSession:
    """BrowserBackend implementation over Playwright."""

    def __init__(
        self,
        *,
        bookmarks: BookmarkStore,
        user_data_dir: str | Path,
        executable_path: str = "",
        headless: bool = False,
        start_url: str = "about:blank",
        extension_paths: list[str] | None = None,
    ):
        self.bookmarks = bookmarks
        self.user_data_dir = Path(user_data_dir).expanduser()
        self.executable_path = executable_path
        self.headless = headless
        self.start_url = start_url
        self.extension_paths = [Path(p).expanduser().resolve() for p in extension_paths or []]
        self.running = False
        self._playwright: Any = None
        self._context: Any = None
        self._lock = asyncio.Lock()
        self._tab_ids = itertools.count(1)
        self._window_ids = itertools.count(1)
        self._tabs: dict[int, TabInfo] = {}
        self._windows: dict[int, WindowInfo] = {}
        self._page_tabs: dict[int, int] = {}
        self._focused_window_id: int | None = None
        self._target_window_id: int | None = None
        self._history: dict[str, dict[str, Any]] = {}
        self._history_ids = itertools.count(1)
        self._downloads: list[dict[str, Any]] = []

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Launch the browser if not running."""
        if self.running:
            return
        async with self._lock:
            if self.running:
                return
            from playwright.async_api import async_playwright

            self._playwright = await async_playwright().start()
            launch_opts: dict[str, Any] = {"headless": self.headless, "args": []}
            if self.executable_path.strip():
                launch_opts["executable_path"] = self.executable_path.strip()
            if self.extension_paths:
                joined = ",".join(str(p) for p in self.extension_paths)
                launch_opts["args"] += [f"--disable-extensions-except={joined}", f"--load-extension={joined}"]
            self.user_data_dir.mkdir(parents=True, exist_ok=True)
            self._context = await self._playwright.chromium.launch_persistent_context(
                str(self.user_data_dir), **launch_opts
            )
            self._context.on("page", self._on_page)
            window = self._new_window()
            for page in self._context.pages:
                self._register_page(page, window.id)
            if not window.tab_ids:
                self._target_window_id = window.id
                try:
                    self._register_page(await self._context.new_page(), window.id)
                finally:
                    self._target_window_id = None
            self.running = True
        if self.start_url and self.start_url != "about:blank":
            first = self._tabs[self._windows[window.id].tab_ids[0]]
            await first.page.goto(self.start_url, wait_until="domcontentloaded")
        logger.info("Browser started (profile {})", self.user_data_dir)

    async def stop(self) -> None:
        """Close the browser and clear state."""
        async with self._lock:
            self.running = False
            if self._context:
                await self._context.close()
                self._context = None
            if self._playwright:
                await self._playwright.stop()
                self._playwright = None
            self._tabs.clear()
            self._windows.clear()
            self._page_tabs.clear()
            self._focused_window_id = None

    def _require_context(self) -> Any:
        if not self._context:
            raise WebtermError("browser not started", code="BROWSER_NOT_RUNNING")
        return self._context

    # ------------------------------------------------------------------
    # page bookkeeping
    # ------------------------------------------------------------------

    def _new_window(self) -> WindowInfo:
        window = WindowInfo(id=next(self._window_ids))
        self._windows[window.id] = window
        self._focused_window_id = window.id
        return window

    def _register_page(self, page: Any, window_id: int | None) -> TabInfo:
        existing = self._page_tabs.get(id(page))
        if existing is not None:
            return self._tabs[existing]
        target = window_id or self._target_window_id or self._focused_window_id
        if target is None or target not in self._windows:
            target = self._new_window().id
        window = self._windows[target]
        tab = TabInfo(id=next(self._tab_ids), window_id=target, page=page)
        self._tabs[tab.id] = tab
        self._page_tabs[id(page)] = tab.id
        window.tab_ids.append(tab.id)
        window.active_tab_id = tab.id
        page.on("close", self._on_close)
        page.on("framenavigated", self._on_navigated)
        page.on("load", self._on_load)
        page.on("download", self._on_download)
        return tab

    def _unregister_page(self, page: Any) -> None:
        tab_id = self._page_tabs.pop(id(page), None)
        if tab_id is None:
            return
        tab = self._tabs.pop(tab_id)
        window = self._windows.get(tab.window_id)
        if window is None:
            return
        window.tab_ids.remove(tab_id)
        if window.active_tab_id == tab_id:
            window.active_tab_id = window.tab_ids[-1] if window.tab_ids else None
        if not window.tab_ids:
            del self._windows[window.id]
            if self._focused_window_id == window.id:
                self._focused_window_id = next(reversed(self._windows), None)

    def _on_page(self, page: Any) -> None:
        tab = self._register_page(page, None)
        logger.debug("Page opened as tab {} in window {}", tab.id, tab.window_id)

    def _on_close(self, page: Any) -> None:
        self._unregister_page(page)

    def _on_navigated(self, frame: Any) -> None:
        if frame.parent_frame is not None:
            return
        url = frame.url
        if not url or url == "about:blank":
            return
        item = self._history.get(url)
        if item is None:
            item = {"id": str(next(self._history_ids)), "url": url, "title": "", "visitCount": 0}
            self._history[url] = item
        item["visitCount"] += 1
        item["lastVisitTime"] = _now_ms()

    async def _on_load(self, page: Any) -> None:
        item = self._history.get(page.url)
        if item is None:
            return
        try:
            item["title"] = await page.title()
        except Exception as e:  # page may close before the title is read
            logger.debug("Cannot read title of {}: {}", page.url, e)

    async def _on_download(self, download: Any) -> None:
        item: dict[str, Any] = {
            "id": len(self._downloads) + 1,
            "url": download.url,
            "filename": download.suggested_filename,
            "state": "in_progress",
            "startTime": _now_ms(),
        }
        self._downloads.append(item)
        failure = await download.failure()
        if failure:
            item["state"] = "interrupted"
            item["error"] = failure
            return
        item["filename"] = str(await download.path())
        item["state"] = "complete"
        item["endTime"] = _now_ms()

    def _tab(self, tab_id: int) -> TabInfo:
        tab = self._tabs.get(tab_id)
        if tab is None:
            raise NotFoundError("tab", tab_id)
        return tab

    def _window(self, window_id: int) -> WindowInfo:
        window = self._windows.get(window_id)
        if window is None:
            raise NotFoundError("window", window_id)
        return window

    async def _tab_dict(self, tab: TabInfo) -> dict[str, Any]:
        page = tab.page
        window = self._windows[tab.window_id]
        try:
            title = await page.title()
        except Exception as e:  # navigation in progress or page closing
            logger.debug("Cannot read title of tab {}: {}", tab.id, e)
            title = ""
        size = page.viewport_size or {}
        active = window.active_tab_id == tab.id
        return {
            "id": tab.id,
            "windowId": tab.window_id,
            "index": window.tab_ids.index(tab.id),
            "title": title,
            "url": page.url,
            "active": active,
            "highlighted": active,
            "pinned": tab.pinned,
            "status": "complete",
            "incognito": False,
            "audible": False,
            "discarded": False,
            "width": size.get("width", 0),
            "height": size.get("height", 0),
        }

    def _window_dict(self, window: WindowInfo) -> dict[str, Any]:
        return {
            "id": window.id,
            "focused": window.id == self._focused_window_id,
            "type": "normal",
            "state": "normal",
            "incognito": False,
            "alwaysOnTop": False,
        }

    def _move_pinned(self, tab: TabInfo) -> None:
        window = self._windows[tab.window_id]
        window.tab_ids.remove(tab.id)
        pinned_count = sum(1 for tid in window.tab_ids if self._tabs[tid].pinned)
        window.tab_ids.insert(pinned_count, tab.id)

    # ------------------------------------------------------------------
    # BrowserBackend
    # ------------------------------------------------------------------

    async def active_tab_id(self) -> int:
        window = self._windows.get(self._focused_window_id) if self._focused_window_id is not None else None
        if window is None or window.active_tab_id is None:
            raise NotFoundError("tab", "active")
        return window.active_tab_id

    async def query_tabs(self, *, current_window: bool = True) -> list[dict[str, Any]]:
        if current_window:
            window = self._windows.get(self._focused_window_id) if self._focused_window_id is not None else None
            windows = [window] if window else []
        else:
            windows = list(self._windows.values())
        return [await self._tab_dict(self._tabs[tid]) for w in windows for tid in w.tab_ids]

    async def get_tab(self, tab_id: int) -> dict[str, Any]:
        return await self._tab_dict(self._tab(tab_id))

    async def update_tab(
        self,
        tab_id: int,
        *,
        url: str | None = None,
        active: bool | None = None,
        pinned: bool | None = None,
    ) -> dict[str, Any]:
        tab = self._tab(tab_id)
        if url is not None:
            await tab.page.goto(url, wait_until="domcontentloaded")
        if pinned is not None and pinned != tab.pinned:
            tab.pinned = pinned
            self._move_pinned(tab)
        if active:
            self._windows[tab.window_id].active_tab_id = tab.id
            await tab.page.bring_to_front()
        return await self._tab_dict(tab)

    async def remove_tabs(self, tab_ids: list[int]) -> None:
        tabs = [self._tab(tab_id) for tab_id in tab_ids]
        for tab in tabs:
            await tab.page.close()
            self._unregister_page(tab.page)

    async def reload_tab(self, tab_id: int) -> None:
        await self._tab(tab_id).page.reload()

    async def create_tab(self, *, url: str, window_id: int) -> dict[str, Any]:
        self._window(window_id)
        context = self._require_context()
        self._target_window_id = window_id
        try:
            tab = self._register_page(await context.new_page(), window_id)
        finally:
            self._target_window_id = None
        if url and url != "about:blank":
            await tab.page.goto(url, wait_until="domcontentloaded")
        return await self._tab_dict(tab)

    async def execute_script(self, tab_id: int, script: str, arg: Any = None) -> Any:
        page = self._tab(tab_id).page
        if arg is None:
            return await page.evaluate(script)
        return await page.evaluate(script, arg)

    async def current_window(self) -> dict[str, Any]:
        if self._focused_window_id is None or self._focused_window_id not in self._windows:
            raise NotFoundError("window", "current")
        return self._window_dict(self._windows[self._focused_window_id])

    async def list_windows(self) -> list[dict[str, Any]]:
        return [self._window_dict(w) for w in self._windows.values()]

    async def update_window(self, window_id: int, *, focused: bool) -> dict[str, Any]:
        window = self._window(window_id)
        if focused:
            self._focused_window_id = window.id
            if window.active_tab_id is not None:
                await self._tabs[window.active_tab_id].page.bring_to_front()
        return self._window_dict(window)

    async def remove_window(self, window_id: int) -> None:
        window = self._window(window_id)
        await self.remove_tabs(list(window.tab_ids))

    async def create_window(self, url: str | None = None) -> dict[str, Any]:
        context = self._require_context()
        window = self._new_window()
        self._target_window_id = window.id
        try:
            tab = self._register_page(await context.new_page(), window.id)
        finally:
            self._target_window_id = None
        if url and url != "about:blank":
            await tab.page.goto(url, wait_until="domcontentloaded")
        return self._window_dict(window)

    async def list_extensions(self) -> list[dict[str, Any]]:
        return [read_extension_manifest(p) for p in self.extension_paths]

    async def bookmark_tree(self) -> list[dict[str, Any]]:
        return self.bookmarks.tree()

    async def create_bookmark(
        self,
        *,
        parent_id: str | None = None,
        title: str | None = None,
        url: str | None = None,
    ) -> dict[str, Any]:
        return self.bookmarks.create(parent_id=parent_id, title=title, url=url)

    async def remove_bookmark(self, bookmark_id: str) -> None:
        self.bookmarks.remove(bookmark_id)

    async def search_downloads(self) -> list[dict[str, Any]]:
        return [dict(item) for item in self._downloads]

    async def search_history(self, text: str) -> list[dict[str, Any]]:
        needle = text.strip().lower()
        items = [
            dict(item)
            for item in self._history.values()
            if not needle or needle in item["url"].lower() or needle in item["title"].lower()
        ]
        items.sort(key=lambda x: x.get("lastVisitTime", 0), reverse=True)
        return items[:HISTORY_MAX_RESULTS]


def create_browser_session(config: Any) -> BrowserSession:
    """Build a session from the `browser` config section."""
    return BrowserSession(
        bookmarks=BookmarkStore(Path(config.bookmarks_file)),
        user_data_dir=config.user_data_dir,
        executable_path=config.executable_path,
        headless=config.headless,
        start_url=config.start_url,
        extension_paths=list(config.extension_paths),
    )
