"""Process-wide config cache shared by CLI commands and the companion."""

from __future__ import annotations

import os
import threading
from pathlib import Path

from webterm.config.loader import get_config_path, load_config
from webterm.config.schema import Config

CONFIG_PATH_ENV = "WEBTERM_CONFIG"

_lock = threading.RLock()
_configs: dict[Path, Config] = {}


def resolve_config_path(config_path: Path | str | None = None) -> Path:
    """Explicit path, then $WEBTERM_CONFIG, then ~/.webterm/config.json."""
    if config_path is None:
        config_path = os.environ.get(CONFIG_PATH_ENV) or get_config_path()
    return Path(config_path).expanduser().resolve()


def get_config(*, config_path: Path | str | None = None, force_reload: bool = False) -> Config:
    """Load the config once per path; force_reload re-reads the file."""
    path = resolve_config_path(config_path)
    with _lock:
        config = None if force_reload else _configs.get(path)
        if config is None:
            config = _configs[path] = load_config(path)
        return config


def clear_config_cache(*, config_path: Path | str | None = None) -> None:
    """Drop one cached path, or everything when no path is given."""
    with _lock:
        if config_path is None:
            _configs.clear()
        else:
            _configs.pop(resolve_config_path(config_path), None)
