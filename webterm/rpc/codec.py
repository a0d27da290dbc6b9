"""Frame codec for bridge envelopes.

Wire format (browser native-messaging convention)::

    [ length : uint32, native byte order ] [ UTF-8 JSON object : length bytes ]
"""

from __future__ import annotations

import asyncio
import json
import struct
from typing import Any

from webterm.rpc.protocol import EnvelopeId, ReplyEnvelope, RequestEnvelope
from webterm.utils.exceptions import FramingError, SchemaError

HEADER = struct.Struct("=I")
HEADER_SIZE = HEADER.size
DEFAULT_MAX_FRAME_BYTES = 64 * 1024 * 1024


def encode_frame(obj: dict[str, Any]) -> bytes:
    """Serialize one envelope object into a length-prefixed frame."""
    body = json.dumps(obj, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    return HEADER.pack(len(body)) + body


def decode_body(body: bytes) -> dict[str, Any]:
    """Parse a frame body into a JSON object."""
    try:
        obj = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise FramingError(f"frame is not valid JSON: {exc}") from exc
    if not isinstance(obj, dict):
        raise FramingError(f"frame must hold a JSON object, got {type(obj).__name__}")
    return obj


async def read_frame(
    reader: asyncio.StreamReader,
    *,
    max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES,
) -> dict[str, Any] | None:
    """
    Read exactly one frame from the stream.

    Returns None on a clean end of stream at a frame boundary. Raises
    FramingError when the stream ends mid-frame or the frame is unusable.
    """
    try:
        header = await reader.readexactly(HEADER_SIZE)
    except asyncio.IncompleteReadError as exc:
        if not exc.partial:
            return None
        raise FramingError(f"stream ended inside frame header ({len(exc.partial)}/{HEADER_SIZE} bytes)") from exc
    (length,) = HEADER.unpack(header)
    if length > max_frame_bytes:
        raise FramingError(f"frame too large: {length} bytes (limit {max_frame_bytes})")
    try:
        body = await reader.readexactly(length)
    except asyncio.IncompleteReadError as exc:
        raise FramingError(f"stream ended inside frame body ({len(exc.partial)}/{length} bytes)") from exc
    return decode_body(body)


def _envelope_id(obj: dict[str, Any]) -> EnvelopeId:
    if "id" not in obj:
        raise SchemaError("envelope is missing 'id'")
    env_id = obj["id"]
    if isinstance(env_id, (dict, list)):
        raise SchemaError(f"envelope 'id' must be a JSON scalar, got {type(env_id).__name__}")
    return env_id


def parse_request(obj: dict[str, Any]) -> RequestEnvelope:
    """Validate a decoded object as a request envelope."""
    env_id = _envelope_id(obj)
    if "error" in obj:
        raise SchemaError("request envelope must not carry 'error'", env_id)
    payload = obj.get("payload")
    if not isinstance(payload, dict):
        raise SchemaError("request envelope needs an object 'payload'", env_id)
    command = payload.get("command")
    if not isinstance(command, str) or not command:
        raise SchemaError("request payload is missing 'command'", env_id)
    args = {k: v for k, v in payload.items() if k != "command"}
    return RequestEnvelope(id=env_id, command=command, args=args)


def parse_reply(obj: dict[str, Any]) -> ReplyEnvelope:
    """Validate a decoded object as a reply envelope."""
    env_id = _envelope_id(obj)
    has_payload = "payload" in obj
    has_error = "error" in obj
    if has_payload and has_error:
        raise SchemaError("reply envelope carries both 'payload' and 'error'", env_id)
    if not has_payload and not has_error:
        raise SchemaError("reply envelope carries neither 'payload' nor 'error'", env_id)
    if has_error:
        error = obj["error"]
        if not isinstance(error, str):
            raise SchemaError("reply 'error' must be a string", env_id)
        return ReplyEnvelope.failure(env_id, error)
    return ReplyEnvelope.success(env_id, obj["payload"])


def request_to_wire(request: RequestEnvelope) -> dict[str, Any]:
    """Build the wire object for a request."""
    return {"id": request.id, "payload": {**request.args, "command": request.command}}


def reply_to_wire(reply: ReplyEnvelope) -> dict[str, Any]:
    """Build the wire object for a reply; void results keep an explicit null payload."""
    if reply.error is not None:
        return {"id": reply.id, "error": reply.error}
    return {"id": reply.id, "payload": reply.payload}


class FrameWriter:
    """Single write path for one side of a connection."""

    def __init__(self, writer: asyncio.StreamWriter):
        self._writer = writer
        self._lock = asyncio.Lock()

    async def write(self, obj: dict[str, Any]) -> None:
        frame = encode_frame(obj)
        async with self._lock:
            self._writer.write(frame)
            await self._writer.drain()

    async def close(self) -> None:
        if self._writer.is_closing():
            return
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except (ConnectionError, OSError):
            pass
