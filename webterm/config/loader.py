"""Reading and writing ~/.webterm/config.json.

The file uses camelCase keys (``bridge.socketPath``); the pydantic schema uses
snake_case. Keys are converted on the way in and out.
"""

import json
import re
from pathlib import Path
from typing import Any

from webterm.config.schema import Config

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def get_config_path() -> Path:
    """Default location of the config file."""
    return get_data_dir() / "config.json"


def get_data_dir() -> Path:
    """webterm's data directory (config, socket, logs, bookmarks)."""
    from webterm.utils.helpers import get_data_path
    return get_data_path()


def load_config(config_path: Path | None = None) -> Config:
    """
    Load the config file, or defaults when it does not exist.

    Raises:
        ValueError: the file exists but is not valid JSON or fails validation.
    """
    path = Path(config_path) if config_path else get_config_path()
    if not path.exists():
        return Config()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        return Config.model_validate(convert_keys(raw))
    except ValueError as e:
        raise ValueError(f"Failed to load config from {path}: {e}") from e


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Write the config as camelCase JSON and invalidate the cached copy."""
    path = Path(config_path) if config_path else get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(convert_to_camel(config.model_dump()), indent=2), encoding="utf-8")
    tmp.replace(path)

    from webterm.config.access import clear_config_cache

    clear_config_cache(config_path=path)


def convert_keys(data: Any) -> Any:
    """Recursively rename camelCase dict keys to snake_case."""
    return _rename_keys(data, camel_to_snake)


def convert_to_camel(data: Any) -> Any:
    """Recursively rename snake_case dict keys to camelCase."""
    return _rename_keys(data, snake_to_camel)


def _rename_keys(data: Any, rename) -> Any:
    if isinstance(data, dict):
        return {rename(k): _rename_keys(v, rename) for k, v in data.items()}
    if isinstance(data, list):
        return [_rename_keys(item, rename) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)
