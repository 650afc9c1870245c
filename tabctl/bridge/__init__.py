"""Bridge between the browser's native messaging channel and the CLI socket."""

from tabctl.bridge.correlator import RequestCorrelator
from tabctl.bridge.framing import FrameCodec, encode
from tabctl.bridge.server import BridgeServer

__all__ = ["BridgeServer", "FrameCodec", "RequestCorrelator", "encode"]
