"""Tests for webterm.rpc.router.CommandRouter."""

from __future__ import annotations

import asyncio

import pytest

from webterm.handlers.models import TabFocusParams
from webterm.rpc.codec import encode_frame, read_frame
from webterm.rpc.protocol import RequestEnvelope
from webterm.rpc.router import CommandHandler, CommandRouter, RouterState, format_params_error
from webterm.utils.exceptions import NotFoundError


async def _serve(stream_pair, router: CommandRouter):
    (c_reader, c_writer), (s_reader, s_writer) = await stream_pair()
    task = asyncio.create_task(router.serve(s_reader, s_writer))
    return c_reader, c_writer, task


async def _shutdown(c_writer: asyncio.StreamWriter, task: asyncio.Task) -> None:
    c_writer.close()
    await asyncio.wait_for(task, timeout=2)


def _tab_get(args: dict) -> dict:
    return {"id": args["tabId"], "title": "Example", "url": "https://example.com"}


@pytest.mark.asyncio
async def test_tab_get_round_trip(stream_pair) -> None:
    router = CommandRouter({"tab.get": _tab_get})
    c_reader, c_writer, task = await _serve(stream_pair, router)
    c_writer.write(encode_frame({"id": "1", "payload": {"command": "tab.get", "tabId": 7}}))
    assert await read_frame(c_reader) == {
        "id": "1",
        "payload": {"id": 7, "title": "Example", "url": "https://example.com"},
    }
    await _shutdown(c_writer, task)


@pytest.mark.asyncio
async def test_unknown_command_gets_error_reply(stream_pair) -> None:
    router = CommandRouter({"tab.get": _tab_get})
    c_reader, c_writer, task = await _serve(stream_pair, router)
    c_writer.write(encode_frame({"id": 41, "payload": {"command": "bogus.op"}}))
    assert await read_frame(c_reader) == {"id": 41, "error": "unknown command: bogus.op"}
    assert router.state is RouterState.LISTENING
    await _shutdown(c_writer, task)


@pytest.mark.asyncio
async def test_non_string_ids_are_echoed_unchanged(stream_pair) -> None:
    router = CommandRouter({"tab.get": lambda args: {"id": 7}})
    c_reader, c_writer, task = await _serve(stream_pair, router)
    c_writer.write(encode_frame({"id": 1.5, "payload": {"command": "tab.get"}}))
    assert await read_frame(c_reader) == {"id": 1.5, "payload": {"id": 7}}
    c_writer.write(encode_frame({"id": None, "payload": {"command": "tab.get"}}))
    assert await read_frame(c_reader) == {"id": None, "payload": {"id": 7}}
    assert router.state is RouterState.LISTENING
    await _shutdown(c_writer, task)


@pytest.mark.asyncio
async def test_handler_failure_does_not_stop_router(stream_pair) -> None:
    def tab_get(args: dict) -> dict:
        raise NotFoundError("tab", args["tabId"])

    router = CommandRouter({"tab.get": tab_get, "tab.list": lambda args: []})
    c_reader, c_writer, task = await _serve(stream_pair, router)
    c_writer.write(encode_frame({"id": "1", "payload": {"command": "tab.get", "tabId": 99}}))
    assert await read_frame(c_reader) == {"id": "1", "error": "tab not found: 99"}
    c_writer.write(encode_frame({"id": "2", "payload": {"command": "tab.list"}}))
    assert await read_frame(c_reader) == {"id": "2", "payload": []}
    await _shutdown(c_writer, task)


@pytest.mark.asyncio
async def test_slow_handler_does_not_block_fast_one(stream_pair) -> None:
    release = asyncio.Event()

    async def slow(args: dict) -> str:
        await release.wait()
        return "slow"

    async def fast(args: dict) -> str:
        return "fast"

    router = CommandRouter({"tab.source": slow, "tab.list": fast})
    c_reader, c_writer, task = await _serve(stream_pair, router)
    c_writer.write(encode_frame({"id": "s", "payload": {"command": "tab.source"}}))
    c_writer.write(encode_frame({"id": "f", "payload": {"command": "tab.list"}}))
    assert await read_frame(c_reader) == {"id": "f", "payload": "fast"}
    release.set()
    assert await read_frame(c_reader) == {"id": "s", "payload": "slow"}
    await _shutdown(c_writer, task)


@pytest.mark.asyncio
async def test_max_concurrent_handlers_caps_parallelism(stream_pair) -> None:
    active = 0
    peak = 0

    async def work(args: dict) -> int:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return args["n"]

    router = CommandRouter({"history.search": work}, max_concurrent_handlers=2)
    c_reader, c_writer, task = await _serve(stream_pair, router)
    for n in range(6):
        c_writer.write(encode_frame({"id": n, "payload": {"command": "history.search", "n": n}}))
    replies = [await read_frame(c_reader) for _ in range(6)]
    assert sorted(r["payload"] for r in replies) == list(range(6))
    assert peak == 2
    await _shutdown(c_writer, task)


@pytest.mark.asyncio
async def test_clean_eof_waits_for_in_flight_handlers(stream_pair) -> None:
    async def slow(args: dict) -> str:
        await asyncio.sleep(0.05)
        return "done"

    router = CommandRouter({"tab.reload": slow})
    c_reader, c_writer, task = await _serve(stream_pair, router)
    c_writer.write(encode_frame({"id": "1", "payload": {"command": "tab.reload"}}))
    c_writer.write_eof()
    assert await read_frame(c_reader) == {"id": "1", "payload": "done"}
    await asyncio.wait_for(task, timeout=2)
    assert router.state is RouterState.CLOSED
    assert await read_frame(c_reader) is None
    c_writer.close()


@pytest.mark.asyncio
async def test_malformed_frame_closes_and_cancels_in_flight(stream_pair) -> None:
    cancelled = asyncio.Event()

    async def hang(args: dict) -> None:
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    router = CommandRouter({"tab.source": hang})
    c_reader, c_writer, task = await _serve(stream_pair, router)
    c_writer.write(encode_frame({"id": "1", "payload": {"command": "tab.source"}}))
    await asyncio.sleep(0.01)
    c_writer.write(encode_frame({"id": "2"}))
    await asyncio.wait_for(task, timeout=2)
    assert cancelled.is_set()
    assert router.state is RouterState.CLOSED
    assert router.in_flight == 0
    c_writer.close()


@pytest.mark.asyncio
async def test_params_are_validated_by_model() -> None:
    seen = []
    handler = CommandHandler(command="tab.focus", func=seen.append, params_model=TabFocusParams)
    router = CommandRouter({"tab.focus": handler})

    reply = await router.execute(RequestEnvelope(id="1", command="tab.focus", args={"tabId": 4}))
    assert reply.ok and reply.payload is None
    assert seen == [TabFocusParams(tab_id=4)]

    reply = await router.execute(RequestEnvelope(id="2", command="tab.focus", args={}))
    assert reply.error.startswith("invalid params for tab.focus")

    reply = await router.execute(RequestEnvelope(id="3", command="tab.focus", args={"tabId": 1, "bogus": 2}))
    assert "bogus" in reply.error


@pytest.mark.asyncio
async def test_unexpected_exception_becomes_error_reply() -> None:
    def broken(args: dict) -> None:
        raise RuntimeError("backend exploded")

    router = CommandRouter({"tab.list": broken})
    reply = await router.execute(RequestEnvelope(id=5, command="tab.list"))
    assert reply.id == 5
    assert reply.error == "backend exploded"


@pytest.mark.asyncio
async def test_unserializable_result_becomes_error_reply(stream_pair) -> None:
    router = CommandRouter({"tab.list": lambda args: {"tabs": object()}})
    c_reader, c_writer, task = await _serve(stream_pair, router)
    c_writer.write(encode_frame({"id": "1", "payload": {"command": "tab.list"}}))
    assert await read_frame(c_reader) == {"id": "1", "error": "result of tab.list is not JSON serializable"}
    await _shutdown(c_writer, task)


def test_commands_lists_registered_names() -> None:
    router = CommandRouter({"tab.list": _tab_get, "bookmark.list": _tab_get})
    assert router.commands == ["bookmark.list", "tab.list"]


def test_format_params_error_joins_locations() -> None:
    from pydantic import ValidationError

    with pytest.raises(ValidationError) as exc_info:
        TabFocusParams.model_validate({"tabId": "x"})
    message = format_params_error("tab.focus", exc_info.value)
    assert message.startswith("invalid params for tab.focus: tabId:")


class FlakyWriter:
    """StreamWriter stand-in whose first write fails."""

    def __init__(self) -> None:
        self.frames: list[bytes] = []
        self.failures = 1
        self.closed = False

    def write(self, data: bytes) -> None:
        if self.failures:
            self.failures -= 1
            raise ConnectionResetError("peer reset")
        self.frames.append(data)

    async def drain(self) -> None:
        pass

    def is_closing(self) -> bool:
        return self.closed

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        pass


@pytest.mark.asyncio
async def test_failed_reply_write_does_not_stop_other_replies() -> None:
    reader = asyncio.StreamReader()
    reader.feed_data(encode_frame({"id": "1", "payload": {"command": "tab.list"}}))
    reader.feed_data(encode_frame({"id": "2", "payload": {"command": "tab.list"}}))
    reader.feed_eof()
    writer = FlakyWriter()

    await CommandRouter({"tab.list": lambda args: []}).serve(reader, writer)

    assert len(writer.frames) == 1
    assert writer.closed
