"""Command router: the companion side of the bridge."""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Union

from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as ParamsValidationError

from webterm.rpc.codec import DEFAULT_MAX_FRAME_BYTES, FrameWriter, parse_request, read_frame, reply_to_wire
from webterm.rpc.protocol import ReplyEnvelope, RequestEnvelope
from webterm.utils.exceptions import (
    FramingError,
    SchemaError,
    UnknownCommandError,
    WebtermError,
    classify_exception,
    sanitize_error_message,
)


@dataclass(slots=True)
class CommandHandler:
    """One named command: a params model and the coroutine that executes it."""

    command: str
    func: Callable[[Any], Awaitable[Any] | Any]
    params_model: type[BaseModel] | None = None

    async def __call__(self, args: dict[str, Any]) -> Any:
        params: Any = self.params_model.model_validate(args) if self.params_model is not None else args
        outcome = self.func(params)
        return await outcome if inspect.isawaitable(outcome) else outcome


Handler = Union[CommandHandler, Callable[[dict[str, Any]], Awaitable[Any] | Any]]


class RouterState(str, Enum):
    LISTENING = "listening"
    CLOSED = "closed"


def format_params_error(command: str, exc: ParamsValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(x) for x in err.get("loc", ())) or "params"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return f"invalid params for {command}: " + "; ".join(parts)


class CommandRouter:
    """Decodes requests from one stream and runs each in its own task.

    The read loop never waits for a handler: every request becomes an
    independent task that writes its reply when it settles, so replies may
    leave in any order. The handler table is fixed at construction.
    """

    def __init__(
        self,
        handlers: Mapping[str, Handler],
        *,
        max_concurrent_handlers: int = 0,
        max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES,
    ):
        self._handlers: dict[str, Handler] = dict(handlers)
        self._slots = asyncio.Semaphore(max_concurrent_handlers) if max_concurrent_handlers > 0 else None
        self._max_frame_bytes = max_frame_bytes
        self._tasks: set[asyncio.Task[None]] = set()
        self.state = RouterState.LISTENING

    @property
    def commands(self) -> list[str]:
        return sorted(self._handlers)

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def serve(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """Serve requests until the stream ends or breaks."""
        out = FrameWriter(writer)
        clean_eof = False
        try:
            while True:
                obj = await read_frame(reader, max_frame_bytes=self._max_frame_bytes)
                if obj is None:
                    clean_eof = True
                    break
                self._spawn(self._respond(parse_request(obj), out))
        except (FramingError, SchemaError) as exc:
            logger.error("Bridge protocol error, closing connection: {}", exc)
        except (ConnectionError, OSError) as exc:
            logger.warning("Bridge connection lost: {}", exc)
        finally:
            await self._finish(out, wait=clean_eof)

    async def _finish(self, out: FrameWriter, *, wait: bool) -> None:
        tasks = list(self._tasks)
        if tasks and wait:
            logger.debug("Stream ended, waiting for {} in-flight command(s)", len(tasks))
            await asyncio.gather(*tasks, return_exceptions=True)
        elif tasks:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        self.state = RouterState.CLOSED
        await out.close()

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _respond(self, request: RequestEnvelope, out: FrameWriter) -> None:
        reply = await self.execute(request)
        await self._send(out, reply, request.command)

    async def execute(self, request: RequestEnvelope) -> ReplyEnvelope:
        """Run one request and build its reply; never raises for handler failures."""
        handler = self._handlers.get(request.command)
        if handler is None:
            exc = UnknownCommandError(request.command)
            logger.warning("Rejecting request id={}: {}", request.id, exc.message)
            return ReplyEnvelope.failure(request.id, exc.message)
        try:
            if self._slots is None:
                result = await self._call(handler, request)
            else:
                async with self._slots:
                    result = await self._call(handler, request)
        except WebtermError as exc:
            logger.warning("Command {} failed with {}: {}", request.command, exc.code, exc.message)
            return ReplyEnvelope.failure(request.id, exc.message)
        except ParamsValidationError as exc:
            message = format_params_error(request.command, exc)
            logger.warning("Command {} rejected: {}", request.command, message)
            return ReplyEnvelope.failure(request.id, message)
        except Exception as exc:
            code, _, _ = classify_exception(exc)
            message = sanitize_error_message(str(exc)) or code
            logger.exception("Command {} failed with [{}]: {}", request.command, code, message)
            return ReplyEnvelope.failure(request.id, message)
        return ReplyEnvelope.success(request.id, result)

    @staticmethod
    async def _call(handler: Handler, request: RequestEnvelope) -> Any:
        if isinstance(handler, CommandHandler):
            return await handler(request.args)
        outcome = handler(request.args)
        return await outcome if inspect.isawaitable(outcome) else outcome

    async def _send(self, out: FrameWriter, reply: ReplyEnvelope, command: str) -> None:
        try:
            try:
                await out.write(reply_to_wire(reply))
            except (TypeError, ValueError) as exc:
                logger.error("Result of {} is not JSON serializable: {}", command, exc)
                await out.write(reply_to_wire(ReplyEnvelope.failure(reply.id, f"result of {command} is not JSON serializable")))
        except (ConnectionError, OSError) as exc:
            logger.error("Failed to write reply id={} for {}: {}", reply.id, command, exc)
