"""Companion-side command handlers."""

from .backend import BrowserBackend
from .browser import BrowserCommands, build_handler_table
from .models import PARAMS_MODELS

__all__ = ["BrowserBackend", "BrowserCommands", "PARAMS_MODELS", "build_handler_table"]
