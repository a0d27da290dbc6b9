"""
Exception hierarchy and error handling utilities for webterm.

Provides:
- Custom exception classes with error codes
- Error categorization (recoverable, retryable, fatal)
- Safe error message formatting (no sensitive data leak)

Connection-level failures (framing, schema, transport) tear the connection
down. Remote, timeout and unknown-command failures are reported to the one
caller that triggered them and leave the connection usable.
"""

from __future__ import annotations

import asyncio
import json
import re
from enum import Enum
from typing import Any


class ErrorCategory(Enum):
    """Error categories for classification."""
    RECOVERABLE = "recoverable"
    RETRYABLE = "retryable"
    FATAL = "fatal"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"


class WebtermError(Exception):
    """Base exception for all webterm errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        category: ErrorCategory = ErrorCategory.FATAL,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "category": self.category.value,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class FramingError(WebtermError):
    """Byte stream cannot be split into frames or a frame is not JSON."""

    def __init__(self, message: str):
        super().__init__(message, code="FRAMING_ERROR", category=ErrorCategory.FATAL)


class SchemaError(WebtermError):
    """A well-formed frame does not have the envelope shape."""

    def __init__(self, message: str, envelope_id: Any = None):
        details = {"id": envelope_id} if envelope_id is not None else {}
        super().__init__(message, code="SCHEMA_ERROR", category=ErrorCategory.FATAL, details=details)


class TransportError(WebtermError):
    """The underlying stream failed or closed."""

    def __init__(self, message: str = "connection closed"):
        super().__init__(message, code="TRANSPORT_ERROR", category=ErrorCategory.RETRYABLE)


class RemoteError(WebtermError):
    """The companion answered a request with an error."""

    def __init__(self, message: str, command: str | None = None):
        details = {"command": command} if command else {}
        super().__init__(message, code="REMOTE_ERROR", category=ErrorCategory.RECOVERABLE, details=details)


class RpcTimeoutError(WebtermError):
    """No reply arrived before the caller's deadline."""

    def __init__(self, command: str, timeout_seconds: float):
        super().__init__(
            f"command '{command}' timed out after {timeout_seconds}s",
            code="TIMEOUT",
            category=ErrorCategory.TIMEOUT,
            details={"command": command, "timeout_seconds": timeout_seconds},
        )


class UnknownCommandError(WebtermError):
    """The router has no handler for the requested command."""

    def __init__(self, command: str):
        super().__init__(
            f"unknown command: {command}",
            code="UNKNOWN_COMMAND",
            category=ErrorCategory.VALIDATION,
            details={"command": command},
        )


class ValidationError(WebtermError):
    """Input validation error."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", category=ErrorCategory.VALIDATION, details=details)


class NotFoundError(WebtermError):
    """Browser resource not found (tab, window, bookmark)."""

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            code="NOT_FOUND",
            category=ErrorCategory.NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


CONNECTION_ERRORS: tuple[type[WebtermError], ...] = (FramingError, SchemaError, TransportError)


_SENSITIVE_PATTERNS = [
    re.compile(r"(api[_-]?key|token|secret|password|auth)[=:]\s*['\"]?([^\s'\"]+)['\"]?", re.IGNORECASE),
    re.compile(r"bearer\s+[a-zA-Z0-9\-._~+/]+=*", re.IGNORECASE),
    re.compile(r"[a-zA-Z0-9]{32,}"),
]


def sanitize_error_message(message: str, replacement: str = "[REDACTED]") -> str:
    """Remove sensitive information from error messages."""
    sanitized = message
    for pattern in _SENSITIVE_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)
    return sanitized


def is_connection_error(exc: BaseException) -> bool:
    """True when the error means the connection itself is unusable."""
    return isinstance(exc, CONNECTION_ERRORS)


def classify_exception(exc: Exception) -> tuple[str, ErrorCategory, bool]:
    """
    Classify an exception and return (error_code, category, should_retry).

    Returns:
        Tuple of (error_code, category, should_retry)
    """
    if isinstance(exc, WebtermError):
        return exc.code, exc.category, exc.category is ErrorCategory.RETRYABLE

    if isinstance(exc, asyncio.TimeoutError):
        return "TIMEOUT", ErrorCategory.TIMEOUT, True

    if isinstance(exc, (ConnectionError, EOFError)):
        return "CONNECTION_ERROR", ErrorCategory.RETRYABLE, True

    if isinstance(exc, FileNotFoundError):
        return "FILE_NOT_FOUND", ErrorCategory.NOT_FOUND, False

    if isinstance(exc, json.JSONDecodeError):
        return "JSON_PARSE_ERROR", ErrorCategory.VALIDATION, False

    if isinstance(exc, (ValueError, KeyError, TypeError)):
        return "INVALID_VALUE", ErrorCategory.VALIDATION, False

    if "not found" in str(exc).lower():
        return "NOT_FOUND", ErrorCategory.NOT_FOUND, False

    return "INTERNAL_ERROR", ErrorCategory.FATAL, False


def format_cli_error(exc: Exception) -> str:
    """Render an error for the terminal; connection failures stay generic."""
    if is_connection_error(exc):
        return f"cannot reach the webterm companion: {exc.message}"
    if isinstance(exc, WebtermError):
        return exc.message
    return sanitize_error_message(str(exc)) or exc.__class__.__name__
