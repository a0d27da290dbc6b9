"""Stream transports for the bridge: Unix domain sockets and stdio pipes."""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path
from typing import Awaitable, Callable

from loguru import logger

from webterm.utils.exceptions import TransportError

ConnectionCallback = Callable[[asyncio.StreamReader, asyncio.StreamWriter], Awaitable[None]]


async def open_unix(path: str | Path) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    """Open a client connection to the companion socket."""
    target = Path(path).expanduser()
    try:
        return await asyncio.open_unix_connection(str(target))
    except (FileNotFoundError, ConnectionRefusedError) as exc:
        raise TransportError(f"no companion listening on {target}") from exc
    except OSError as exc:
        raise TransportError(f"cannot connect to {target}: {exc}") from exc


async def start_unix_server(path: str | Path, on_connection: ConnectionCallback) -> asyncio.AbstractServer:
    """Listen on a Unix socket, replacing a stale socket file left by a dead companion."""
    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    if target.exists():
        if await _socket_alive(target):
            raise TransportError(f"another companion is already listening on {target}")
        logger.info("Removing stale companion socket {}", target)
        target.unlink()
    server = await asyncio.start_unix_server(on_connection, path=str(target))
    os.chmod(target, 0o600)
    return server


async def _socket_alive(path: Path) -> bool:
    try:
        _, writer = await asyncio.open_unix_connection(str(path))
    except OSError:
        return False
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return True


async def open_stdio() -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    """Wrap this process's stdin/stdout as binary asyncio streams."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin.buffer)
    transport, protocol = await loop.connect_write_pipe(asyncio.streams.FlowControlMixin, sys.stdout.buffer)
    writer = asyncio.StreamWriter(transport, protocol, reader, loop)
    return reader, writer
