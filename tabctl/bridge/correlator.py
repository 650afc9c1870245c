"""Correlates commands sent into the browser with the responses coming back."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable
from uuid import uuid4

from loguru import logger

from tabctl.bridge.framing import encode
from tabctl.bridge.protocol import BrowserCommand, BrowserResponse
from tabctl.utils.exceptions import BrowserCommandError, NotConnectedError, RequestTimeoutError

DEFAULT_TIMEOUT_S = 10.0


@dataclass
class PendingRequest:
    action: str
    future: asyncio.Future[Any]
    timer: asyncio.TimerHandle | None = None


class RequestCorrelator:
    """Tracks in-flight browser commands by requestId.

    Whoever pops a PendingRequest out of the table (the response handler or the
    timeout callback) owns its resolution; the other path finds nothing and
    does nothing.
    """

    def __init__(self, write_frame: Callable[[bytes], None], *, timeout_s: float = DEFAULT_TIMEOUT_S):
        self._write_frame = write_frame
        self.timeout_s = timeout_s
        self.connected = False
        self._pending: dict[str, PendingRequest] = {}

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def has_pending(self, request_id: str) -> bool:
        return request_id in self._pending

    async def send(self, action: str, params: dict[str, Any] | None = None) -> Any:
        """Forward one command to the browser and wait for its answer."""
        if not self.connected:
            raise NotConnectedError()
        loop = asyncio.get_running_loop()
        request_id = str(uuid4())
        future: asyncio.Future[Any] = loop.create_future()
        pending = PendingRequest(action=action, future=future)
        self._pending[request_id] = pending
        pending.timer = loop.call_later(self.timeout_s, self._expire, request_id)
        try:
            self._write_frame(encode(BrowserCommand(request_id, action, params or {}).to_frame()))
        except Exception:
            self._discard(request_id)
            raise
        logger.debug("-> {} {}", action, request_id)
        return await future

    def resolve(self, response: BrowserResponse) -> bool:
        """Settle the matching request. Returns False for unknown or late responses."""
        pending = self._pending.pop(response.request_id, None)
        if pending is None:
            logger.debug("Discarding response for unknown request {}", response.request_id)
            return False
        if pending.timer is not None:
            pending.timer.cancel()
        if pending.future.done():
            return False
        if response.ok:
            pending.future.set_result(response.data)
        else:
            pending.future.set_exception(BrowserCommandError(response.error or "browser error", action=pending.action))
        logger.debug("<- {} {} ok={}", pending.action, response.request_id, response.ok)
        return True

    def _expire(self, request_id: str) -> None:
        pending = self._pending.pop(request_id, None)
        if pending is None or pending.future.done():
            return
        logger.warning("Browser did not answer {} ({}) within {}s", pending.action, request_id, self.timeout_s)
        pending.future.set_exception(RequestTimeoutError(self.timeout_s, action=pending.action))

    def _discard(self, request_id: str) -> None:
        pending = self._pending.pop(request_id, None)
        if pending is not None and pending.timer is not None:
            pending.timer.cancel()
