"""Loguru helpers for consistent file logging in CLI commands and the bridge."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from tabctl.config.loader import get_data_dir

_SINK_IDS: dict[str, int] = {}


def get_log_dir() -> Path:
    return get_data_dir() / "logs"


def ensure_rotating_log_file(
    name: str,
    level: str = "INFO",
    *,
    rotation: str = "10 MB",
    retention: str = "14 days",
) -> Path:
    """Ensure a rotating log sink for the given command name."""
    log_path = get_log_dir() / f"{name}.log"
    if name in _SINK_IDS:
        return log_path
    log_path.parent.mkdir(parents=True, exist_ok=True)
    sink_id = logger.add(
        str(log_path),
        level=level,
        rotation=rotation,
        retention=retention,
        enqueue=True,
        encoding="utf-8",
        backtrace=False,
        diagnose=False,
    )
    _SINK_IDS[name] = sink_id
    return log_path

