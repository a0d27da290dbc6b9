"""Bookmark tree persisted as JSON next to the companion's config."""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any

from loguru import logger

from webterm.utils.exceptions import NotFoundError, ValidationError

ROOT_ID = "0"
BAR_ID = "1"
OTHER_ID = "2"
_PERMANENT_IDS = {ROOT_ID, BAR_ID, OTHER_ID}


def _now_ms() -> int:
    return int(time.time() * 1000)


def _empty_tree() -> dict[str, Any]:
    return {
        "id": ROOT_ID,
        "title": "",
        "dateAdded": _now_ms(),
        "children": [
            {"id": BAR_ID, "parentId": ROOT_ID, "index": 0, "title": "Bookmarks bar", "children": []},
            {"id": OTHER_ID, "parentId": ROOT_ID, "index": 1, "title": "Other bookmarks", "children": []},
        ],
    }


class BookmarkStore:
    """Folder/bookmark nodes shaped like the browser bookmarks API."""

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()
        self._root, self._next_id = self._load()

    def _load(self) -> tuple[dict[str, Any], int]:
        if not self.path.exists():
            return _empty_tree(), 3
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return data["root"], int(data["nextId"])
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Failed to load bookmarks from {self.path}: {e}") from e

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps({"nextId": self._next_id, "root": self._root}, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def _find(self, node_id: str, node: dict[str, Any] | None = None) -> dict[str, Any] | None:
        node = node or self._root
        if node["id"] == node_id:
            return node
        for child in node.get("children", []):
            found = self._find(node_id, child)
            if found is not None:
                return found
        return None

    def tree(self) -> list[dict[str, Any]]:
        return [json.loads(json.dumps(self._root))]

    def create(self, *, parent_id: str | None = None, title: str | None = None, url: str | None = None) -> dict[str, Any]:
        parent = self._find(parent_id or OTHER_ID)
        if parent is None:
            raise NotFoundError("bookmark folder", parent_id)
        if "children" not in parent:
            raise ValidationError(f"bookmark {parent['id']} is not a folder", field="parentId")
        if parent["id"] == ROOT_ID:
            raise ValidationError("cannot add bookmarks to the root node", field="parentId")
        node: dict[str, Any] = {
            "id": str(self._next_id),
            "parentId": parent["id"],
            "index": len(parent["children"]),
            "title": title or "",
            "dateAdded": _now_ms(),
        }
        if url:
            node["url"] = url
        else:
            node["children"] = []
        self._next_id += 1
        parent["children"].append(node)
        self._save()
        logger.debug("Created bookmark {} under {}", node["id"], parent["id"])
        return dict(node)

    def remove(self, bookmark_id: str) -> None:
        if bookmark_id in _PERMANENT_IDS:
            raise ValidationError(f"cannot remove permanent bookmark node {bookmark_id}", field="id")
        node = self._find(bookmark_id)
        if node is None:
            raise NotFoundError("bookmark", bookmark_id)
        if node.get("children"):
            raise ValidationError(f"cannot remove non-empty folder {bookmark_id}", field="id")
        parent = self._find(node["parentId"])
        if parent is None:
            raise NotFoundError("bookmark folder", node["parentId"])
        parent["children"].remove(node)
        for i, child in enumerate(parent["children"]):
            child["index"] = i
        self._save()
