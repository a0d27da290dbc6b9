"""Configuration module for webterm."""

from webterm.config.loader import load_config, get_config_path, save_config
from webterm.config.schema import Config
from webterm.config.access import get_config, clear_config_cache

__all__ = ["Config", "load_config", "save_config", "get_config_path", "get_config", "clear_config_cache"]
