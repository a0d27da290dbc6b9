"""Companion process: owns the browser and serves bridge connections."""

from __future__ import annotations

import asyncio
import signal
from pathlib import Path
from typing import Any, Mapping

from loguru import logger

from webterm.config.schema import Config
from webterm.rpc.codec import DEFAULT_MAX_FRAME_BYTES
from webterm.rpc.router import CommandRouter, Handler
from webterm.rpc.transport import open_stdio, start_unix_server


class CompanionServer:
    """Runs one CommandRouter per connection over a shared handler table."""

    def __init__(
        self,
        handlers: Mapping[str, Handler],
        *,
        max_concurrent_handlers: int = 0,
        max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES,
    ):
        self.handlers = dict(handlers)
        self.max_concurrent_handlers = max_concurrent_handlers
        self.max_frame_bytes = max_frame_bytes
        self.connections = 0

    def new_router(self) -> CommandRouter:
        return CommandRouter(
            self.handlers,
            max_concurrent_handlers=self.max_concurrent_handlers,
            max_frame_bytes=self.max_frame_bytes,
        )

    async def handle_connection(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.connections += 1
        conn_no = self.connections
        logger.debug("Bridge connection #{} opened", conn_no)
        try:
            await self.new_router().serve(reader, writer)
        finally:
            logger.debug("Bridge connection #{} closed", conn_no)

    async def serve_unix(self, path: str | Path, stop: asyncio.Event) -> None:
        """Accept CLI connections on a Unix socket until stop is set."""
        target = Path(path).expanduser()
        server = await start_unix_server(target, self.handle_connection)
        logger.info("Companion listening on {}", target)
        try:
            async with server:
                await stop.wait()
        finally:
            target.unlink(missing_ok=True)
            logger.info("Companion stopped")

    async def serve_stdio(self) -> None:
        """Serve a single connection over stdin/stdout (native-messaging host)."""
        reader, writer = await open_stdio()
        logger.info("Companion serving on stdio")
        await self.handle_connection(reader, writer)


def _install_stop_signals(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            logger.debug("Signal handler for {} unavailable", sig)


async def run_companion(
    config: Config,
    *,
    socket_path: str | None = None,
    stdio: bool = False,
    backend: Any = None,
) -> None:
    """Start the browser backend and serve until stopped or stdio closes."""
    from webterm.browser.session import create_browser_session
    from webterm.handlers.browser import build_handler_table

    session = backend if backend is not None else create_browser_session(config.browser)
    if hasattr(session, "start"):
        await session.start()
    server = CompanionServer(
        build_handler_table(session),
        max_concurrent_handlers=config.bridge.max_concurrent_handlers,
        max_frame_bytes=config.bridge.max_frame_bytes,
    )
    try:
        if stdio:
            await server.serve_stdio()
        else:
            stop = asyncio.Event()
            _install_stop_signals(stop)
            await server.serve_unix(socket_path or config.bridge.socket, stop)
    finally:
        if hasattr(session, "stop"):
            await session.stop()
