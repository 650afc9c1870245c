"""Normalize raw tab/window records from the extension into the CLI shape."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlsplit

from tabctl.client.identity import format_qualified_id
from tabctl.utils.exceptions import InvalidDurationError

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

_DURATION_RE = re.compile(r"^(\d+)(d|h|m)$")
_DURATION_UNITS = {"d": DAY_MS, "h": HOUR_MS, "m": MINUTE_MS}


def now_ms() -> int:
    return int(time.time() * 1000)


def format_age(ms: float) -> str:
    """Render a duration at minute granularity: "1d 2h", "2h 15m", "5m"."""
    minutes = max(0, int(ms // MINUTE_MS))
    hours = minutes // 60
    days = hours // 24
    if days > 0:
        return f"{days}d {hours % 24}h"
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    return f"{minutes}m"


def parse_duration(text: str) -> int:
    """Parse "7d" / "24h" / "30m" into milliseconds."""
    match = _DURATION_RE.match((text or "").strip())
    if not match:
        raise InvalidDurationError(text)
    return int(match.group(1)) * _DURATION_UNITS[match.group(2)]


def iso_from_ms(ms: Any) -> str | None:
    """Epoch milliseconds -> "2025-01-10T12:00:00.000Z"; falsy or bad input -> None."""
    if not ms:
        return None
    try:
        dt = datetime.fromtimestamp(float(ms) / 1000.0, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def domain_of(url: Any) -> str | None:
    """Host of a URL, or None when it cannot be parsed."""
    if not url or not isinstance(url, str):
        return None
    try:
        return urlsplit(url).hostname or None
    except ValueError:
        return None


def _text(value: Any, default: str = "") -> str:
    return default if value is None or value == "" else str(value)


@dataclass(frozen=True, slots=True)
class TabTracking:
    """Usage statistics the extension keeps per tab."""

    created_at: str | None
    last_activated: str | None
    last_updated: str | None
    activation_count: int
    navigation_count: int
    age: str | None = None


@dataclass(frozen=True, slots=True)
class NormalizedTab:
    id: str
    browser: str | None
    window_id: str
    index: int | None
    title: str
    url: str
    domain: str | None
    active: bool
    pinned: bool
    audible: bool
    discarded: bool
    status: str
    opener_tab_id: str | None = None
    tracking: TabTracking | None = None

    @property
    def created_at(self) -> str | None:
        return self.tracking.created_at if self.tracking else None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "browser": self.browser,
            "windowId": self.window_id,
            "index": self.index,
            "title": self.title,
            "url": self.url,
            "domain": self.domain,
            "active": self.active,
            "pinned": self.pinned,
            "audible": self.audible,
            "discarded": self.discarded,
            "status": self.status,
        }
        if self.opener_tab_id is not None:
            out["openerTabId"] = self.opener_tab_id
        if self.tracking is not None:
            t = self.tracking
            out["createdAt"] = t.created_at
            out["lastActivated"] = t.last_activated
            out["lastUpdated"] = t.last_updated
            out["activationCount"] = t.activation_count
            out["navigationCount"] = t.navigation_count
            if t.age is not None:
                out["age"] = t.age
        return out


@dataclass(frozen=True, slots=True)
class NormalizedWindow:
    id: str
    browser: str | None
    focused: bool
    incognito: bool
    tab_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "browser": self.browser,
            "focused": self.focused,
            "incognito": self.incognito,
            "tabCount": self.tab_count,
        }


def _tracking(raw: Any, now: int) -> TabTracking | None:
    if not isinstance(raw, dict):
        return None
    created = raw.get("createdAt")
    return TabTracking(
        created_at=iso_from_ms(created),
        last_activated=iso_from_ms(raw.get("lastActivated")),
        last_updated=iso_from_ms(raw.get("lastUpdated")),
        activation_count=int(raw.get("activationCount") or 0),
        navigation_count=int(raw.get("navigationCount") or 0),
        age=format_age(now - float(created)) if isinstance(created, (int, float)) and created else None,
    )


def normalize_tab(raw: dict[str, Any], label: str | None = None, *, now: int | None = None) -> NormalizedTab:
    """Build the client-visible view of one raw tab. Never raises on odd URLs."""
    url = _text(raw.get("url"))
    opener = raw.get("openerTabId")
    index = raw.get("index")
    return NormalizedTab(
        id=format_qualified_id(label, raw.get("id")),
        browser=label or None,
        window_id=f"w{raw.get('windowId')}",
        index=index if isinstance(index, int) else None,
        title=_text(raw.get("title")),
        url=url,
        domain=domain_of(url),
        active=bool(raw.get("active")),
        pinned=bool(raw.get("pinned")),
        audible=bool(raw.get("audible")),
        discarded=bool(raw.get("discarded")),
        status=_text(raw.get("status"), "unknown"),
        opener_tab_id=str(opener) if opener is not None else None,
        tracking=_tracking(raw.get("tracking"), now if now is not None else now_ms()),
    )


def normalize_window(raw: dict[str, Any], label: str | None = None) -> NormalizedWindow:
    tabs = raw.get("tabs")
    return NormalizedWindow(
        id=f"w{raw.get('id')}",
        browser=label or None,
        focused=bool(raw.get("focused")),
        incognito=bool(raw.get("incognito")),
        tab_count=len(tabs) if isinstance(tabs, list) else 0,
    )
