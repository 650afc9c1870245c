"""Well-known socket addresses shared by the bridge and the CLI."""

from __future__ import annotations

import os
from pathlib import Path

from tabctl.config.schema import Config

SOCKET_PREFIX = "tabctl"


def get_socket_dir(config: Config | None = None) -> Path:
    configured = (config.bridge.socket_dir if config else "").strip()
    if configured:
        return Path(configured).expanduser()
    runtime_dir = os.environ.get("XDG_RUNTIME_DIR")
    if runtime_dir:
        return Path(runtime_dir)
    return Path("/tmp")


def get_socket_path(label: str | None = None, config: Config | None = None) -> Path:
    """Socket path for a browser label; None selects the single-browser shared path."""
    name = f"{SOCKET_PREFIX}-{label}.sock" if label else f"{SOCKET_PREFIX}.sock"
    return get_socket_dir(config) / name
