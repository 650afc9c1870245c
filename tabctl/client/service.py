"""Tab and window operations across every connected browser."""

from __future__ import annotations

import asyncio
from typing import Any, Iterable

from tabctl.client.discovery import discover
from tabctl.client.formatting import (
    NormalizedTab,
    NormalizedWindow,
    iso_from_ms,
    normalize_tab,
    normalize_window,
    now_ms,
)
from tabctl.client.identity import parse_window_id, resolve_qualified_id
from tabctl.client.transport import pick_endpoint, request_all, request_first, request_one
from tabctl.config.schema import Config
from tabctl.utils.exceptions import AmbiguousIdError, NoBridgesFoundError


class TabService:
    """Client-side operations used by the CLI."""

    def __init__(self, config: Config | None = None):
        self.config = config or Config()

    def _resolve(self, tab_id: Any) -> tuple[str | None, int]:
        endpoints = discover(config=self.config)
        label, numeric = resolve_qualified_id(tab_id, endpoints)
        if label is None:
            if not endpoints:
                raise NoBridgesFoundError()
            raise AmbiguousIdError(tab_id, [ep.label for ep in endpoints])
        return label, numeric

    async def list_tabs(self, browser: str | None = None) -> list[NormalizedTab]:
        results = await request_all({"action": "listTabs"}, browser, config=self.config)
        now = now_ms()
        tabs: list[NormalizedTab] = []
        for result in results:
            for raw in result.data or []:
                if isinstance(raw, dict):
                    tabs.append(normalize_tab(raw, result.label, now=now))
        return tabs

    async def list_windows(self, browser: str | None = None) -> list[NormalizedWindow]:
        results = await request_all({"action": "listWindows"}, browser, config=self.config)
        return [
            normalize_window(raw, result.label)
            for result in results
            for raw in (result.data or [])
            if isinstance(raw, dict)
        ]

    async def close_tab(self, tab_id: str) -> dict[str, Any]:
        label, numeric = self._resolve(tab_id)
        await request_first({"action": "closeTab", "tabId": numeric}, label, config=self.config)
        return {"success": True, "closed": tab_id}

    async def close_tabs(self, tab_ids: list[str]) -> dict[str, Any]:
        """Close tabs, one closeTabs request per browser, browsers in parallel."""
        groups: dict[str, list[int]] = {}
        for tab_id in tab_ids:
            label, numeric = self._resolve(tab_id)
            groups.setdefault(label, []).append(numeric)
        await asyncio.gather(
            *(
                request_first({"action": "closeTabs", "tabIds": ids}, label, config=self.config)
                for label, ids in groups.items()
            )
        )
        return {"success": True, "closed": list(tab_ids), "count": len(tab_ids)}

    async def activate_tab(self, tab_id: str) -> dict[str, Any]:
        label, numeric = self._resolve(tab_id)
        await request_first({"action": "activateTab", "tabId": numeric}, label, config=self.config)
        return {"success": True, "activated": tab_id}

    async def move_tab(self, tab_id: str, window_id: str) -> dict[str, Any]:
        target_window = parse_window_id(window_id)
        label, numeric = self._resolve(tab_id)
        await request_first(
            {"action": "moveTab", "tabId": numeric, "windowId": target_window},
            label,
            config=self.config,
        )
        return {"success": True, "moved": tab_id, "windowId": window_id}

    async def open_tab(self, url: str, browser: str | None = None) -> dict[str, Any]:
        endpoint = pick_endpoint(browser, config=self.config)
        raw = await request_one(
            endpoint,
            {"action": "openTab", "url": url},
            timeout_s=self.config.client.request_timeout_s,
        )
        tab = normalize_tab(raw if isinstance(raw, dict) else {}, endpoint.label)
        return {"success": True, "tab": tab.to_dict()}

    async def get_tracking_data(self, browser: str | None = None) -> dict[str, Any]:
        results = await request_all({"action": "getTrackingData"}, browser, config=self.config)
        return {result.label: result.data for result in results}

    async def get_status(self) -> dict[str, Any]:
        """Browsers reported by every live bridge; never raises for zero bridges."""
        try:
            results = await request_all({"action": "status"}, config=self.config)
        except NoBridgesFoundError:
            return {"browsers": []}
        browsers: list[str] = []
        for result in results:
            data = result.data if isinstance(result.data, dict) else {}
            for name in data.get("browsers") or []:
                if name not in browsers:
                    browsers.append(str(name))
        return {"browsers": browsers}


# ----------------------------------------------------------------------
# Batch selectors for `close --domain / --older-than / --duplicates`
# ----------------------------------------------------------------------


def tabs_for_domain(tabs: Iterable[NormalizedTab], domain: str) -> list[NormalizedTab]:
    return [t for t in tabs if t.domain == domain]


def tabs_older_than(tabs: Iterable[NormalizedTab], age_ms: int, *, now: int | None = None) -> list[NormalizedTab]:
    cutoff = iso_from_ms((now if now is not None else now_ms()) - age_ms)
    if cutoff is None:
        return []
    return [t for t in tabs if t.created_at and t.created_at < cutoff]


def duplicate_tabs(tabs: Iterable[NormalizedTab]) -> list[NormalizedTab]:
    """Every tab whose URL was already seen earlier in the list (first one kept)."""
    seen: set[str] = set()
    duplicates: list[NormalizedTab] = []
    for tab in tabs:
        if not tab.url:
            continue
        if tab.url in seen:
            duplicates.append(tab)
        else:
            seen.add(tab.url)
    return duplicates


def group_by_domain(tabs: Iterable[NormalizedTab], sort: str = "count") -> list[dict[str, Any]]:
    groups: dict[str, dict[str, Any]] = {}
    for tab in tabs:
        domain = tab.domain or "(no domain)"
        entry = groups.setdefault(
            domain,
            {"domain": domain, "tabCount": 0, "tabs": [], "oldestTab": None, "newestTab": None},
        )
        entry["tabCount"] += 1
        entry["tabs"].append(tab.id)
        created = tab.created_at
        if created:
            if not entry["oldestTab"] or created < entry["oldestTab"]:
                entry["oldestTab"] = created
            if not entry["newestTab"] or created > entry["newestTab"]:
                entry["newestTab"] = created
    domains = list(groups.values())
    if sort == "name":
        domains.sort(key=lambda d: d["domain"].lower())
    else:
        domains.sort(key=lambda d: d["tabCount"], reverse=True)
    return domains
