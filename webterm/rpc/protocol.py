"""Envelope models shared by the RPC client and the command router.

On the wire an envelope is the untagged object ``{id, payload?, error?}``.
In Python the two directions are separate types so a reply can never be
mistaken for a request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

# Ids are opaque: any JSON scalar, echoed back unchanged.
EnvelopeId = Union[str, int, float, bool, None]

# Commands served by the companion. The bridge treats them as opaque strings.
COMMANDS: tuple[str, ...] = (
    "tab.list",
    "tab.get",
    "tab.pin",
    "tab.unpin",
    "tab.focus",
    "tab.remove",
    "tab.reload",
    "tab.update",
    "tab.create",
    "tab.source",
    "selection.get",
    "selection.set",
    "window.list",
    "window.focus",
    "window.remove",
    "window.create",
    "extension.list",
    "bookmark.list",
    "bookmark.create",
    "bookmark.remove",
    "download.list",
    "history.search",
)


@dataclass(slots=True)
class RequestEnvelope:
    """Request frame: ``{id, payload: {command, ...args}}``."""

    id: EnvelopeId
    command: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ReplyEnvelope:
    """Reply frame carrying either a result payload or an error message."""

    id: EnvelopeId
    payload: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, envelope_id: EnvelopeId, payload: Any = None) -> ReplyEnvelope:
        return cls(id=envelope_id, payload=payload)

    @classmethod
    def failure(cls, envelope_id: EnvelopeId, message: str) -> ReplyEnvelope:
        return cls(id=envelope_id, error=message)
