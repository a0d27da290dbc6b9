"""Registry for grouped CLI command modules."""

from __future__ import annotations

from typing import Any, Callable

import typer
from rich.console import Console

from .bookmark_command import register_bookmark_commands
from .browser_data_commands import register_browser_data_commands
from .companion_command import register_companion_commands
from .selection_command import register_selection_commands
from .tab_command import register_tab_commands
from .window_command import register_window_commands


def register_command_groups(app: typer.Typer, console: Console, call: Callable[..., Any]) -> None:
    """Attach grouped command modules to the main app."""
    register_tab_commands(app=app, console=console, call=call)
    register_selection_commands(app=app, call=call)
    register_window_commands(app=app, console=console, call=call)
    register_bookmark_commands(app=app, console=console, call=call)
    register_browser_data_commands(app=app, console=console, call=call)
    register_companion_commands(app=app, console=console)
