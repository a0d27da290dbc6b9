"""RPC client for the webterm companion (CLI side of the bridge)."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel

from webterm.rpc.codec import DEFAULT_MAX_FRAME_BYTES, FrameWriter, parse_reply, read_frame, request_to_wire
from webterm.rpc.correlation import CorrelationTable
from webterm.rpc.protocol import RequestEnvelope
from webterm.rpc.transport import open_unix
from webterm.utils.exceptions import FramingError, RemoteError, RpcTimeoutError, SchemaError, TransportError


def dump_args(args: dict[str, Any] | BaseModel | None) -> dict[str, Any]:
    """Normalize invoke arguments into wire fields."""
    if args is None:
        return {}
    if isinstance(args, BaseModel):
        return args.model_dump(by_alias=True, exclude_none=True)
    if not isinstance(args, dict):
        raise TypeError(f"invoke args must be a dict or pydantic model, got {type(args).__name__}")
    if "command" in args:
        raise ValueError("invoke args must not contain 'command'")
    return dict(args)


class RpcClient:
    """Length-prefixed JSON RPC client over one duplex stream.

    Any number of invoke() calls may be in flight; replies are matched to
    callers purely by envelope id, in whatever order they arrive.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        *,
        default_timeout: float | None = None,
        max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES,
    ):
        self._reader = reader
        self._writer = FrameWriter(writer)
        self._table = CorrelationTable()
        self._default_timeout = default_timeout
        self._max_frame_bytes = max_frame_bytes
        self._read_task: asyncio.Task[None] | None = None
        self._closed: TransportError | None = None

    @property
    def table(self) -> CorrelationTable:
        return self._table

    @property
    def closed(self) -> bool:
        return self._closed is not None

    def start(self) -> None:
        if self._read_task is None:
            self._read_task = asyncio.create_task(self._read_loop(), name="webterm-rpc-reader")

    async def __aenter__(self) -> RpcClient:
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def invoke(
        self,
        command: str,
        args: dict[str, Any] | BaseModel | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Send one command and wait for its reply payload."""
        if self._closed is not None:
            raise TransportError(self._closed.message)
        self.start()
        params = dump_args(args)
        deadline = self._default_timeout if timeout is None else timeout
        if deadline is not None and deadline <= 0:
            deadline = None

        envelope_id, fut = self._table.register()
        request = RequestEnvelope(id=envelope_id, command=command, args=params)
        try:
            try:
                await self._writer.write(request_to_wire(request))
            except (ConnectionError, OSError) as exc:
                raise TransportError(f"failed to send {command}: {exc}") from exc
            try:
                if deadline is None:
                    reply = await fut
                else:
                    reply = await asyncio.wait_for(fut, timeout=deadline)
            except asyncio.TimeoutError as exc:
                raise RpcTimeoutError(command, deadline) from exc
        finally:
            self._table.discard(envelope_id)

        if not reply.ok:
            raise RemoteError(reply.error, command=command)
        return reply.payload

    async def _read_loop(self) -> None:
        reason = TransportError("connection closed by companion")
        try:
            while True:
                obj = await read_frame(self._reader, max_frame_bytes=self._max_frame_bytes)
                if obj is None:
                    break
                reply = parse_reply(obj)
                if not self._table.resolve(reply.id, reply):
                    logger.warning("Discarding reply for unknown request id={}", reply.id)
        except (FramingError, SchemaError) as exc:
            logger.error("Bridge protocol error, closing connection: {}", exc)
            reason = TransportError(f"protocol error: {exc.message}")
        except (ConnectionError, OSError) as exc:
            reason = TransportError(f"connection lost: {exc}")
        finally:
            if self._closed is None:
                self._closed = reason
            drained = self._table.drain_all(self._closed)
            if drained:
                logger.warning("Failed {} pending request(s): {}", drained, self._closed.message)

    async def close(self) -> None:
        """Close the stream and fail anything still waiting."""
        if self._closed is None:
            self._closed = TransportError("connection closed by client")
        self._table.drain_all(self._closed)
        await self._writer.close()
        task = self._read_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


async def connect_unix(
    path: str | Path,
    *,
    default_timeout: float | None = None,
    max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES,
) -> RpcClient:
    """Connect to a companion socket and return a started client."""
    reader, writer = await open_unix(path)
    client = RpcClient(reader, writer, default_timeout=default_timeout, max_frame_bytes=max_frame_bytes)
    client.start()
    return client
