"""Loguru helpers for consistent logging in CLI commands and the companion."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from webterm.utils.helpers import get_data_path

_SINK_IDS: dict[str, int] = {}

STDERR_FORMAT = "<dim>{time:HH:mm:ss.SSS}</dim> | <level>{level: <8}</level> | <level>{message}</level>"


def configure_logging(level: str = "WARNING", *, enabled: bool = True) -> None:
    """Send webterm logs to stderr only; stdout may carry bridge frames.

    Drops every existing sink, rotating files included; call
    ensure_rotating_log_file again afterwards to keep file logging.
    """
    logger.remove()
    _SINK_IDS.clear()
    if not enabled:
        logger.disable("webterm")
        return
    logger.add(sys.stderr, level=level.upper(), format=STDERR_FORMAT)
    logger.enable("webterm")


def ensure_rotating_log_file(name: str, level: str = "INFO") -> Path:
    """Ensure a rotating log sink for the given command name."""
    log_dir = get_data_path() / "logs"
    log_path = log_dir / f"{name}.log"
    if name in _SINK_IDS:
        return log_path
    log_dir.mkdir(parents=True, exist_ok=True)
    sink_id = logger.add(
        str(log_path),
        level=level,
        rotation="10 MB",
        retention="14 days",
        enqueue=True,
        encoding="utf-8",
        backtrace=False,
        diagnose=False,
    )
    _SINK_IDS[name] = sink_id
    return log_path
