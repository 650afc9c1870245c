from datetime import datetime, timezone

import pytest

from tabctl.client.formatting import (
    DAY_MS,
    HOUR_MS,
    MINUTE_MS,
    domain_of,
    format_age,
    iso_from_ms,
    normalize_tab,
    normalize_window,
    parse_duration,
)
from tabctl.utils.exceptions import InvalidDurationError

FIXED_NOW = int(datetime(2025, 1, 10, 12, 0, tzinfo=timezone.utc).timestamp() * 1000)


def test_format_age_renders_minutes_hours_and_days():
    assert format_age(5 * MINUTE_MS) == "5m"
    assert format_age(2 * HOUR_MS + 15 * MINUTE_MS) == "2h 15m"
    assert format_age(26 * HOUR_MS) == "1d 2h"
    assert format_age(59 * 1000) == "0m"
    assert format_age(-5000) == "0m"


def test_parse_duration():
    assert parse_duration("7d") == 7 * DAY_MS
    assert parse_duration("24h") == 24 * HOUR_MS
    assert parse_duration("30m") == 30 * MINUTE_MS
    for bad in ("7", "d", "1w", "1.5h", "-3d", ""):
        with pytest.raises(InvalidDurationError) as exc_info:
            parse_duration(bad)
        assert "Use format like 7d, 24h, 30m" in exc_info.value.message


def test_iso_from_ms():
    assert iso_from_ms(FIXED_NOW) == "2025-01-10T12:00:00.000Z"
    assert iso_from_ms(0) is None
    assert iso_from_ms(None) is None
    assert iso_from_ms("garbage") is None


def test_domain_of_tolerates_odd_urls():
    assert domain_of("https://Example.com:8080/x") == "example.com"
    assert domain_of("about:blank") is None
    assert domain_of("") is None
    assert domain_of("http://[::1") is None


def test_normalize_tab_fields_and_timestamps():
    created = FIXED_NOW - (2 * HOUR_MS + 3 * MINUTE_MS)
    tab = normalize_tab(
        {
            "id": 7,
            "windowId": 3,
            "index": 1,
            "title": None,
            "url": "https://example.com/path",
            "active": True,
            "pinned": False,
            "audible": True,
            "discarded": False,
            "status": "complete",
            "tracking": {
                "createdAt": created,
                "lastActivated": FIXED_NOW - MINUTE_MS,
                "lastUpdated": FIXED_NOW - 30 * 1000,
                "activationCount": 2,
                "navigationCount": 5,
            },
        },
        "chrome",
        now=FIXED_NOW,
    )
    out = tab.to_dict()
    assert out["id"] == "chrome:7"
    assert out["browser"] == "chrome"
    assert out["windowId"] == "w3"
    assert out["domain"] == "example.com"
    assert out["title"] == ""
    assert out["active"] is True
    assert out["audible"] is True
    assert out["createdAt"] == "2025-01-10T09:57:00.000Z"
    assert out["lastActivated"] == "2025-01-10T11:59:00.000Z"
    assert out["lastUpdated"] == "2025-01-10T11:59:30.000Z"
    assert out["activationCount"] == 2
    assert out["navigationCount"] == 5
    assert out["age"] == "2h 3m"


def test_normalize_tab_without_tracking_omits_tracking_keys():
    out = normalize_tab({"id": 1, "windowId": 2, "url": "chrome://newtab/"}, "chrome").to_dict()
    assert out["status"] == "unknown"
    assert out["domain"] == "newtab"
    assert "createdAt" not in out
    assert "age" not in out


def test_normalize_window_counts_tabs():
    window = normalize_window({"id": 4, "focused": True, "tabs": [{}, {}, {}]}, "firefox")
    assert window.to_dict() == {
        "id": "w4",
        "browser": "firefox",
        "focused": True,
        "incognito": False,
        "tabCount": 3,
    }
    assert normalize_window({"id": 5}, "firefox").tab_count == 0
