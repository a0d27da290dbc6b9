"""Utility functions for webterm."""

from webterm.utils.helpers import ensure_dir, get_data_path
from webterm.utils.exceptions import (
    WebtermError,
    FramingError,
    SchemaError,
    TransportError,
    RemoteError,
    RpcTimeoutError,
    UnknownCommandError,
    ValidationError,
    NotFoundError,
    ErrorCategory,
    classify_exception,
    sanitize_error_message,
    is_connection_error,
    format_cli_error,
)

__all__ = [
    "ensure_dir",
    "get_data_path",
    "WebtermError",
    "FramingError",
    "SchemaError",
    "TransportError",
    "RemoteError",
    "RpcTimeoutError",
    "UnknownCommandError",
    "ValidationError",
    "NotFoundError",
    "ErrorCategory",
    "classify_exception",
    "sanitize_error_message",
    "is_connection_error",
    "format_cli_error",
]
