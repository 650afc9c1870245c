"""Process-local config cache used by the CLI and the bridge host."""

from __future__ import annotations

from pathlib import Path

from tabctl.config.loader import get_config_path, load_config
from tabctl.config.schema import Config

_cache: dict[Path, Config] = {}


def get_config(*, config_path: Path | None = None, force_reload: bool = False) -> Config:
    """Load the config once per path; `force_reload` re-reads the file."""
    path = (config_path or get_config_path()).expanduser()
    if force_reload or path not in _cache:
        _cache[path] = load_config(path)
    return _cache[path]


def clear_config_cache(*, config_path: Path | None = None) -> None:
    if config_path is None:
        _cache.clear()
    else:
        _cache.pop(Path(config_path).expanduser(), None)
