"""
Exception hierarchy for tabctl.

Provides:
- TabctlError with an error code and category
- One subclass per failure kind crossing the bridge/client boundary
- classify_exception() for turning arbitrary exceptions into wire messages

The ``message`` attribute is what travels on the socket protocol and what the
CLI prints; clients pattern-match on it, so wording is part of the contract.
"""

from __future__ import annotations

import asyncio
import json
from enum import Enum
from typing import Any


class ErrorCategory(Enum):
    """Error categories for classification."""
    RECOVERABLE = "recoverable"
    FATAL = "fatal"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    TRANSPORT = "transport"


NO_BRIDGES_MESSAGE = (
    "No browsers connected. Make sure:\n"
    '  1. Run "tabctl install" to register the native host\n'
    "  2. Open your browser with the tabctl extension installed\n"
    "  3. The extension will auto-launch the native host"
)


class TabctlError(Exception):
    """Base exception for all tabctl errors."""

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


class NotConnectedError(TabctlError):
    """No browser channel has said hello yet."""

    def __init__(self):
        super().__init__("No browser connected", code="NOT_CONNECTED", category=ErrorCategory.RECOVERABLE)


class RequestTimeoutError(TabctlError):
    """No matching response arrived in time (bridge->browser or client->bridge)."""

    def __init__(self, timeout_seconds: float | None = None, action: str | None = None):
        details: dict[str, Any] = {}
        if timeout_seconds is not None:
            details["timeout_seconds"] = timeout_seconds
        if action:
            details["action"] = action
        super().__init__("Request timed out", code="TIMEOUT", category=ErrorCategory.TIMEOUT, details=details)


class InvalidIdError(TabctlError):
    """Tab identifier could not be parsed."""

    def __init__(self, raw: Any):
        super().__init__(
            f"Invalid tab ID: {raw}",
            code="INVALID_ID",
            category=ErrorCategory.VALIDATION,
            details={"id": str(raw)},
        )


class AmbiguousIdError(InvalidIdError):
    """Bare tab id while several bridges are live."""

    def __init__(self, raw: Any, labels: list[str]):
        super().__init__(raw)
        self.message = f"Ambiguous tab ID: {raw}. Prefix it with a browser, e.g. {labels[0] if labels else 'chrome'}:{raw}"
        self.code = "AMBIGUOUS_ID"
        self.details["browsers"] = list(labels)


class InvalidWindowIdError(TabctlError):
    """Window identifier could not be parsed."""

    def __init__(self, raw: Any):
        super().__init__(
            f"Invalid window ID: {raw}",
            code="INVALID_WINDOW_ID",
            category=ErrorCategory.VALIDATION,
            details={"id": str(raw)},
        )


class InvalidDurationError(TabctlError):
    """Duration string such as 7d / 24h / 30m could not be parsed."""

    def __init__(self, raw: str):
        super().__init__(
            f"Invalid duration: {raw}. Use format like 7d, 24h, 30m",
            code="INVALID_DURATION",
            category=ErrorCategory.VALIDATION,
            details={"duration": raw},
        )


class NoBridgesFoundError(TabctlError):
    """Discovery returned no reachable bridge."""

    def __init__(self, label: str | None = None):
        details = {"label": label} if label else {}
        super().__init__(NO_BRIDGES_MESSAGE, code="NO_BRIDGES", category=ErrorCategory.NOT_FOUND, details=details)


class BridgeNotRunningError(TabctlError):
    """Socket address is absent or refuses connections."""

    def __init__(self, label: str, address: str = ""):
        super().__init__(
            f"{label} bridge is not running",
            code="NOT_RUNNING",
            category=ErrorCategory.TRANSPORT,
            details={"label": label, "address": address},
        )


class BridgeProtocolError(TabctlError):
    """Bridge replied with something that is not a JSON response line."""

    def __init__(self, label: str | None = None):
        details = {"label": label} if label else {}
        super().__init__(
            "Invalid response from bridge",
            code="PROTOCOL_ERROR",
            category=ErrorCategory.TRANSPORT,
            details=details,
        )


class BrowserCommandError(TabctlError):
    """Error string reported by the browser side (or relayed by a bridge)."""

    def __init__(self, message: str, action: str | None = None):
        details = {"action": action} if action else {}
        super().__init__(message, code="BROWSER_ERROR", category=ErrorCategory.RECOVERABLE, details=details)


def error_message(exc: BaseException) -> str:
    """Return the single-line message carried on the wire for an exception."""
    if isinstance(exc, TabctlError):
        return exc.message
    if isinstance(exc, asyncio.TimeoutError):
        return "Request timed out"
    return str(exc) or exc.__class__.__name__


def classify_exception(exc: BaseException) -> tuple[str, ErrorCategory]:
    """Classify an exception and return (error_code, category)."""
    if isinstance(exc, TabctlError):
        return exc.code, exc.category
    if isinstance(exc, asyncio.TimeoutError):
        return "TIMEOUT", ErrorCategory.TIMEOUT
    if isinstance(exc, (FileNotFoundError, ConnectionRefusedError)):
        return "NOT_RUNNING", ErrorCategory.TRANSPORT
    if isinstance(exc, ConnectionError):
        return "CONNECTION_ERROR", ErrorCategory.TRANSPORT
    if isinstance(exc, json.JSONDecodeError):
        return "JSON_PARSE_ERROR", ErrorCategory.VALIDATION
    if isinstance(exc, ValueError):
        return "INVALID_VALUE", ErrorCategory.VALIDATION
    return "INTERNAL_ERROR", ErrorCategory.FATAL
