"""CLI commands for webterm.

The CLI is a thin client: every browser command opens one bridge connection to
the companion, sends one request, prints the result and exits. The companion
itself is started with `webterm companion serve`.
"""

from __future__ import annotations

from typing import Any

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape

from webterm import __logo__, __version__
from webterm.cli.command_groups.group_registry import register_command_groups
from webterm.cli.shared.logging_utils import configure_logging
from webterm.cli.shared.rpc_utils import exit_code_for, rpc_call
from webterm.config.access import get_config
from webterm.utils.exceptions import WebtermError, format_cli_error

app = typer.Typer(
    name="webterm",
    help=f"{__logo__} webterm - control your browser from the terminal",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

# Global options from the root callback, applied to every companion call.
_overrides: dict[str, Any] = {}


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} webterm v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(None, "--version", "-v", callback=version_callback, is_eager=True),
    socket_path: str = typer.Option(None, "--socket", "-s", help="Companion socket path"),
    timeout: float = typer.Option(None, "--timeout", "-t", help="Request timeout in seconds (0 waits forever)"),
    verbose: bool = typer.Option(False, "--verbose", help="Debug logging on stderr"),
):
    """webterm - control your browser from the terminal."""
    _overrides.clear()
    _overrides["socket_path"] = socket_path
    _overrides["timeout"] = timeout
    configure_logging("DEBUG" if verbose else "WARNING")


def call_companion(command: str, params: Any = None) -> Any:
    """Run one command on the companion; print the error and exit non-zero on failure."""
    config = get_config()
    socket_path = _overrides.get("socket_path") or config.bridge.socket
    timeout = _overrides.get("timeout")
    timeout_s = config.bridge.request_timeout if timeout is None else (timeout if timeout > 0 else None)
    logger.debug("Calling {} on {}", command, socket_path)
    try:
        return rpc_call(
            command,
            params,
            socket_path=socket_path,
            timeout_s=timeout_s,
            max_frame_bytes=config.bridge.max_frame_bytes,
        )
    except WebtermError as e:
        err_console.print(f"[red]Error:[/red] {escape(format_cli_error(e))}")
        raise typer.Exit(exit_code_for(e))


register_command_groups(app, console, call_companion)


if __name__ == "__main__":
    app()
