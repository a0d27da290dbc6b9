"""Pending-request table keyed by envelope id."""

from __future__ import annotations

import asyncio
from typing import Any
from uuid import uuid4

from webterm.rpc.protocol import EnvelopeId


class CorrelationTable:
    """Tracks outstanding requests of one connection and delivers their replies.

    Every id registered here leaves the table exactly once: through resolve,
    fail, discard or drain_all. Replies for ids that already left are reported
    as unmatched (False) and never reach a caller.
    """

    def __init__(self) -> None:
        self._pending: dict[EnvelopeId, asyncio.Future[Any]] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, envelope_id: object) -> bool:
        return envelope_id in self._pending

    def pending_ids(self) -> list[EnvelopeId]:
        return list(self._pending)

    def register(self) -> tuple[str, asyncio.Future[Any]]:
        """Allocate a fresh id and the future its caller awaits."""
        envelope_id = uuid4().hex
        while envelope_id in self._pending:
            envelope_id = uuid4().hex
        fut: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[envelope_id] = fut
        return envelope_id, fut

    def resolve(self, envelope_id: EnvelopeId, outcome: Any) -> bool:
        """Deliver a result to the waiting caller; False for unmatched ids."""
        fut = self._pending.pop(envelope_id, None)
        if fut is None:
            return False
        if not fut.done():
            fut.set_result(outcome)
        return True

    def fail(self, envelope_id: EnvelopeId, exc: BaseException) -> bool:
        """Deliver an exception to the waiting caller; False for unmatched ids."""
        fut = self._pending.pop(envelope_id, None)
        if fut is None:
            return False
        if not fut.done():
            fut.set_exception(exc)
        return True

    def discard(self, envelope_id: EnvelopeId) -> bool:
        """Forget an id without delivering anything (timeout, cancellation)."""
        return self._pending.pop(envelope_id, None) is not None

    def drain_all(self, exc: BaseException) -> int:
        """Fail every pending caller with exc and empty the table."""
        pending, self._pending = self._pending, {}
        for fut in pending.values():
            if not fut.done():
                fut.set_exception(exc)
        return len(pending)
