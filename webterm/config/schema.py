"""Configuration schema using Pydantic.

Persisted as camelCase JSON at ~/.webterm/config.json; every field can also be
set from the environment (WEBTERM_BRIDGE__SOCKET_PATH=...).
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings


def _default_socket_path() -> str:
    return str(Path.home() / ".webterm" / "companion.sock")


def _default_bookmarks_file() -> str:
    return str(Path.home() / ".webterm" / "bookmarks.json")


def _default_user_data_dir() -> str:
    return str(Path.home() / ".webterm" / "profile")


class BridgeConfig(BaseModel):
    """RPC bridge between the CLI and the companion process."""
    socket_path: str = Field(default_factory=_default_socket_path)
    request_timeout_seconds: float = 30.0  # 0 = wait until reply or disconnect
    max_frame_bytes: int = 64 * 1024 * 1024
    max_concurrent_handlers: int = 0  # 0 = unbounded

    @property
    def socket(self) -> Path:
        return Path(self.socket_path).expanduser()

    @property
    def request_timeout(self) -> float | None:
        return self.request_timeout_seconds if self.request_timeout_seconds > 0 else None


class BrowserConfig(BaseModel):
    """Browser driven by the companion process."""
    executable_path: str = ""  # Chromium path; empty = Playwright bundled build
    headless: bool = False
    user_data_dir: str = Field(default_factory=_default_user_data_dir)
    start_url: str = "about:blank"
    extension_paths: list[str] = Field(default_factory=list)  # unpacked extension dirs
    bookmarks_file: str = Field(default_factory=_default_bookmarks_file)


class LoggingConfig(BaseModel):
    """Log sinks for CLI and companion."""
    level: str = "INFO"
    file: bool = True  # rotating file under ~/.webterm/logs


class Config(BaseSettings):
    """Root configuration for webterm."""
    bridge: BridgeConfig = Field(default_factory=BridgeConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(
        env_prefix="WEBTERM_",
        env_nested_delimiter="__"
    )
