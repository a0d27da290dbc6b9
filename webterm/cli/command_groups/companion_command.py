"""Companion command group: run the process that owns the browser."""

from __future__ import annotations

import asyncio

import typer
from loguru import logger
from rich.console import Console

from webterm.cli.shared.logging_utils import configure_logging, ensure_rotating_log_file
from webterm.cli.shared.rpc_utils import EXIT_CONNECTION_FAILED
from webterm.config.access import get_config
from webterm.utils.exceptions import TransportError


def register_companion_commands(app: typer.Typer, console: Console) -> None:
    """Register companion command group."""
    companion_app = typer.Typer(help="Run the browser companion", no_args_is_help=True)
    app.add_typer(companion_app, name="companion")

    @companion_app.command("serve")
    def companion_serve(
        socket_path: str = typer.Option(None, "--socket", "-s", help="Unix socket path to listen on"),
        stdio: bool = typer.Option(False, "--stdio", help="Serve one connection over stdin/stdout"),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    ) -> None:
        """Launch the browser and serve bridge commands until interrupted."""
        from webterm.companion import run_companion

        config = get_config()
        level = "DEBUG" if verbose else config.logging.level
        configure_logging(level)
        if config.logging.file:
            log_path = ensure_rotating_log_file("companion", level=level)
            logger.debug("Logging to {}", log_path)
        if not stdio:
            # stdout carries frames in stdio mode
            console.print(f"Starting companion on {socket_path or config.bridge.socket}")
        try:
            asyncio.run(run_companion(config, socket_path=socket_path, stdio=stdio))
        except KeyboardInterrupt:
            logger.info("Companion interrupted")
        except TransportError as e:
            logger.error("Companion failed: {}", e.message)
            raise typer.Exit(EXIT_CONNECTION_FAILED)
