"""Client side: bridge discovery, fan-out and result normalization."""

from tabctl.client.discovery import BridgeEndpoint, discover
from tabctl.client.service import TabService
from tabctl.client.transport import BridgeResult, request_all, request_first, request_one

__all__ = [
    "BridgeEndpoint",
    "BridgeResult",
    "TabService",
    "discover",
    "request_all",
    "request_first",
    "request_one",
]
