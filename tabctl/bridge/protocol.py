"""Message records exchanged between the bridge and the browser extension."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

ACTIONS: frozenset[str] = frozenset(
    {
        "listTabs",
        "closeTab",
        "closeTabs",
        "activateTab",
        "moveTab",
        "openTab",
        "listWindows",
        "getTrackingData",
    }
)


@dataclass(slots=True)
class BrowserCommand:
    """Command frame sent into the browser."""

    request_id: str
    action: str
    params: dict[str, Any] = field(default_factory=dict)

    def to_frame(self) -> dict[str, Any]:
        # params first so they can never clobber the envelope keys
        frame = dict(self.params)
        frame.update({"type": "command", "requestId": self.request_id, "action": self.action})
        return frame


@dataclass(slots=True)
class BrowserHello:
    """First frame a browser sends after connecting."""

    browser: str


@dataclass(slots=True)
class BrowserResponse:
    """Browser answer to a previously issued command."""

    request_id: str
    data: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


BrowserEvent = BrowserHello | BrowserResponse


def safe_dict(value: Any) -> dict[str, Any]:
    """Return the value when dict-like, otherwise an empty dict."""
    return value if isinstance(value, dict) else {}


def decode_browser_event(payload: Any) -> BrowserEvent | None:
    """Decode a raw frame into a BrowserEvent, or None when it is neither shape."""
    row = safe_dict(payload)
    if row.get("type") == "hello":
        return BrowserHello(browser=str(row.get("browser") or "unknown"))
    request_id = row.get("requestId")
    if not request_id:
        return None
    error = row.get("error")
    if error:
        message = error.get("message") if isinstance(error, dict) else error
        return BrowserResponse(request_id=str(request_id), error=str(message or "browser error"))
    return BrowserResponse(request_id=str(request_id), data=row.get("data"))


def split_socket_request(payload: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    """Split `{action, ...params}` into (action, params)."""
    params = dict(payload)
    action = str(params.pop("action", "") or "")
    return action, params
