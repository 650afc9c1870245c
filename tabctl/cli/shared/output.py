"""Output helpers: JSON for scripts, a rich table for people."""

from __future__ import annotations

import json
from typing import Any, Sequence

from rich.console import Console
from rich.table import Table

from tabctl.client.formatting import NormalizedTab

MAX_TITLE = 40
MAX_URL = 50


def truncate(text: str, length: int) -> str:
    text = str(text or "")
    return text if len(text) <= length else text[: length - 1] + "…"


def print_json(console: Console, data: Any) -> None:
    console.print(json.dumps(data, indent=2, ensure_ascii=False), markup=False, highlight=False, soft_wrap=True)


def print_tab_table(console: Console, tabs: Sequence[NormalizedTab]) -> None:
    if not tabs:
        console.print("No tabs found.")
        return
    table = Table(title="Tabs")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", max_width=MAX_TITLE)
    table.add_column("URL", max_width=MAX_URL)
    table.add_column("Active")
    table.add_column("Age")
    for tab in tabs:
        age = tab.tracking.age if tab.tracking and tab.tracking.age else "-"
        table.add_row(
            tab.id,
            truncate(tab.title, MAX_TITLE - 2),
            truncate(tab.url, MAX_URL - 2),
            "[green]yes[/green]" if tab.active else "no",
            age,
        )
    console.print(table)
