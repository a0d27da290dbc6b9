"""Typed parameters for every companion command (camelCase on the wire)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CommandParams(BaseModel):
    """Base for command parameters: aliases on the wire, unknown fields rejected."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class NoParams(CommandParams):
    pass


class TabParams(CommandParams):
    """Optional single tab; the active tab when omitted."""
    tab_id: int | None = Field(default=None, alias="tabId")


class TabIdsParams(CommandParams):
    """Optional tab list; the active tab when omitted."""
    tab_ids: list[int] | None = Field(default=None, alias="tabIds")


class TabFocusParams(CommandParams):
    tab_id: int = Field(alias="tabId")


class TabUpdateParams(CommandParams):
    tab_id: int = Field(alias="tabId")
    url: str


class TabCreateParams(CommandParams):
    urls: list[str] = Field(default_factory=list)


class SelectionSetParams(CommandParams):
    tab_id: int | None = Field(default=None, alias="tabId")
    text: str


class WindowParams(CommandParams):
    window_id: int = Field(alias="windowId")


class WindowCreateParams(CommandParams):
    url: str | None = None


class BookmarkCreateParams(CommandParams):
    parent_id: str | None = Field(default=None, alias="parentId")
    title: str | None = None
    url: str | None = None


class BookmarkRemoveParams(CommandParams):
    id: str


class HistorySearchParams(CommandParams):
    query: str = ""


PARAMS_MODELS: dict[str, type[CommandParams]] = {
    "tab.list": NoParams,
    "tab.get": TabParams,
    "tab.pin": TabIdsParams,
    "tab.unpin": TabIdsParams,
    "tab.focus": TabFocusParams,
    "tab.remove": TabIdsParams,
    "tab.reload": TabIdsParams,
    "tab.update": TabUpdateParams,
    "tab.create": TabCreateParams,
    "tab.source": TabParams,
    "selection.get": TabParams,
    "selection.set": SelectionSetParams,
    "window.list": NoParams,
    "window.focus": WindowParams,
    "window.remove": WindowParams,
    "window.create": WindowCreateParams,
    "extension.list": NoParams,
    "bookmark.list": NoParams,
    "bookmark.create": BookmarkCreateParams,
    "bookmark.remove": BookmarkRemoveParams,
    "download.list": NoParams,
    "history.search": HistorySearchParams,
}
