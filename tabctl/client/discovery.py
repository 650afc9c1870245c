"""Find bridges that are currently listening."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from tabctl.config.schema import Config
from tabctl.paths import get_socket_path


@dataclass(frozen=True, slots=True)
class BridgeEndpoint:
    """A discoverable bridge: browser label plus socket address."""

    label: str
    address: Path


def candidate_endpoints(label_filter: str | None = None, *, config: Config | None = None) -> list[BridgeEndpoint]:
    """Every address a bridge could be listening on, live or not."""
    cfg = config or Config()
    labels = [label_filter] if label_filter else list(cfg.client.known_browsers)
    candidates = [BridgeEndpoint(label=label, address=get_socket_path(label, cfg)) for label in labels]
    shared = cfg.bridge.shared_label
    if label_filter in (None, shared):
        candidates.append(BridgeEndpoint(label=shared, address=get_socket_path(None, cfg)))
    return candidates


def discover(label_filter: str | None = None, *, config: Config | None = None) -> list[BridgeEndpoint]:
    """Return endpoints whose socket file exists right now. No caching."""
    return [ep for ep in candidate_endpoints(label_filter, config=config) if ep.address.exists()]
