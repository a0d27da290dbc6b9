"""Blocking helpers for calling the companion from CLI commands."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from webterm.rpc.client import connect_unix
from webterm.rpc.codec import DEFAULT_MAX_FRAME_BYTES
from webterm.utils.exceptions import is_connection_error

EXIT_COMMAND_FAILED = 1
EXIT_CONNECTION_FAILED = 3


async def invoke_once(
    command: str,
    params: dict[str, Any] | BaseModel | None = None,
    *,
    socket_path: str | Path,
    timeout_s: float | None = None,
    max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES,
) -> Any:
    """Open one connection, run one command, close the connection."""
    client = await connect_unix(socket_path, default_timeout=timeout_s, max_frame_bytes=max_frame_bytes)
    async with client:
        return await client.invoke(command, params)


def rpc_call(
    command: str,
    params: dict[str, Any] | BaseModel | None = None,
    *,
    socket_path: str | Path,
    timeout_s: float | None = None,
    max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES,
) -> Any:
    """Call a single companion command and return its result payload."""
    return asyncio.run(
        invoke_once(
            command,
            params,
            socket_path=socket_path,
            timeout_s=timeout_s,
            max_frame_bytes=max_frame_bytes,
        )
    )


def exit_code_for(exc: Exception) -> int:
    """Process exit code for a failed companion call."""
    if is_connection_error(exc):
        return EXIT_CONNECTION_FAILED
    return EXIT_COMMAND_FAILED
