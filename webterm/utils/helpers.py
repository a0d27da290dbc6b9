"""Filesystem helpers shared by config, logging and the companion."""

from __future__ import annotations

from pathlib import Path


def ensure_dir(path: Path) -> Path:
    """Create the directory (and parents) if missing and return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """Return ~/.webterm, creating it on first use."""
    return ensure_dir(Path.home() / ".webterm")
