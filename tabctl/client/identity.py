"""Browser-qualified tab ids ("chrome:42") and window ids ("w7")."""

from __future__ import annotations

import re
from typing import Any, Sequence

from tabctl.client.discovery import BridgeEndpoint
from tabctl.utils.exceptions import InvalidIdError, InvalidWindowIdError

_INT_RE = re.compile(r"^-?\d+$")
_WINDOW_RE = re.compile(r"^w?(\d+)$")


def parse_tab_id(raw: Any) -> int:
    """Parse a bare numeric tab id."""
    text = str(raw).strip()
    if not _INT_RE.match(text):
        raise InvalidIdError(raw)
    return int(text, 10)


def parse_qualified_id(raw: Any) -> tuple[str | None, int]:
    """Split "label:id" on the first colon; a bare id yields (None, id)."""
    text = str(raw)
    label, sep, rest = text.partition(":")
    if not sep:
        return None, parse_tab_id(text)
    if not label or not _INT_RE.match(rest.strip()):
        raise InvalidIdError(raw)
    return label, int(rest.strip(), 10)


def resolve_qualified_id(raw: Any, endpoints: Sequence[BridgeEndpoint]) -> tuple[str | None, int]:
    """Like parse_qualified_id, inferring the label when exactly one bridge is live."""
    label, tab_id = parse_qualified_id(raw)
    if label is None and len(endpoints) == 1:
        label = endpoints[0].label
    return label, tab_id


def parse_window_id(raw: Any) -> int:
    """Accept "7" or "w7"."""
    match = _WINDOW_RE.match(str(raw).strip())
    if not match:
        raise InvalidWindowIdError(raw)
    return int(match.group(1), 10)


def format_qualified_id(label: str | None, entity_id: Any) -> str:
    return f"{label}:{entity_id}" if label else str(entity_id)
