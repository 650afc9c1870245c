"""Bridge server: browser native messaging on stdio <-> Unix socket for the CLI."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Callable

from loguru import logger

from tabctl.bridge.correlator import DEFAULT_TIMEOUT_S, RequestCorrelator
from tabctl.bridge.framing import FrameCodec
from tabctl.bridge.protocol import (
    ACTIONS,
    BrowserHello,
    BrowserResponse,
    decode_browser_event,
    split_socket_request,
)
from tabctl.utils.exceptions import classify_exception, error_message

READ_CHUNK = 64 * 1024

# Dispatch queue items
_FRAME = "frame"
_EOF = "eof"
_STOP = "stop"


def remove_socket_file(path: Path) -> bool:
    """Best-effort unlink; absence is not an error."""
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError as exc:
        logger.warning("Could not remove socket {}: {}", path, exc)
        return False


class BridgeServer:
    """One bridge per browser connection.

    Owns the frame codec for the browser channel, the correlator for
    in-flight commands and the listening socket for CLI connections.
    """

    def __init__(
        self,
        socket_path: Path,
        write_frame: Callable[[bytes], None],
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ):
        self.socket_path = Path(socket_path)
        self.codec = FrameCodec()
        self.correlator = RequestCorrelator(write_frame, timeout_s=timeout_s)
        self.browser_label: str | None = None
        self._server: asyncio.AbstractServer | None = None
        self._events: asyncio.Queue[tuple[str, Any]] | None = None
        self._connections: dict[asyncio.Task[Any], asyncio.StreamWriter] = {}

    @property
    def connected(self) -> bool:
        return self.correlator.connected

    @property
    def listening(self) -> bool:
        return self._server is not None and self._server.is_serving()

    def status(self) -> dict[str, Any]:
        return {"browsers": [self.browser_label] if self.connected and self.browser_label else []}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Clear a stale socket, bind a fresh one and restrict it to the owner."""
        self._events = asyncio.Queue()
        self.socket_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        remove_socket_file(self.socket_path)
        self._server = await asyncio.start_unix_server(self._handle_client, path=str(self.socket_path))
        os.chmod(self.socket_path, 0o600)
        logger.info("Listening on {}", self.socket_path)

    async def close(self) -> None:
        """Stop accepting connections and remove the socket file."""
        server, self._server = self._server, None
        if server is not None:
            server.close()
        await self._drain_connections()
        if server is not None:
            try:
                await asyncio.wait_for(server.wait_closed(), timeout=1.0)
            except asyncio.TimeoutError:
                logger.debug("Timed out waiting for client connections to close")
        remove_socket_file(self.socket_path)

    async def _drain_connections(self, timeout_s: float = 1.0) -> None:
        """Close client transports so handlers see EOF; cancel any still stuck after the grace period."""
        if not self._connections:
            return
        for writer in list(self._connections.values()):
            writer.close()
        _, stuck = await asyncio.wait(list(self._connections), timeout=timeout_s)
        for task in stuck:
            task.cancel()
        await asyncio.gather(*stuck, return_exceptions=True)

    def request_stop(self) -> None:
        """Ask the dispatch loop to exit (safe to call from a signal handler)."""
        if self._events is not None:
            self._events.put_nowait((_STOP, None))

    async def serve(self, browser_in: asyncio.StreamReader) -> str:
        """Run until the browser channel closes or a stop is requested.

        Returns the reason the loop ended ("eof" or "stop"). The socket file
        is removed on every exit path.
        """
        try:
            if self._server is None:
                await self.start()
            pump = asyncio.create_task(self._pump_stdin(browser_in))
            try:
                return await self._dispatch_loop()
            finally:
                pump.cancel()
                await asyncio.gather(pump, return_exceptions=True)
        finally:
            await self.close()

    async def _pump_stdin(self, browser_in: asyncio.StreamReader) -> None:
        assert self._events is not None
        try:
            while True:
                chunk = await browser_in.read(READ_CHUNK)
                if not chunk:
                    break
                for message in self.codec.feed(chunk):
                    self._events.put_nowait((_FRAME, message))
        except (ConnectionError, OSError) as exc:
            logger.warning("Browser channel read failed: {}", exc)
        finally:
            self._events.put_nowait((_EOF, None))

    async def _dispatch_loop(self) -> str:
        assert self._events is not None
        while True:
            kind, payload = await self._events.get()
            if kind == _FRAME:
                self.handle_browser_message(payload)
            elif kind == _EOF:
                logger.info("Browser channel closed")
                return _EOF
            elif kind == _STOP:
                logger.info("Stop requested")
                return _STOP

    # ------------------------------------------------------------------
    # Browser side
    # ------------------------------------------------------------------

    def handle_browser_message(self, message: Any) -> None:
        event = decode_browser_event(message)
        if isinstance(event, BrowserHello):
            self.browser_label = event.browser
            self.correlator.connected = True
            logger.info("Browser connected: {}", event.browser)
        elif isinstance(event, BrowserResponse):
            self.correlator.resolve(event)
        else:
            logger.debug("Ignoring unrecognised browser frame: {}", str(message)[:200])

    # ------------------------------------------------------------------
    # CLI side
    # ------------------------------------------------------------------

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._connections[task] = writer
        buffer = b""
        try:
            while True:
                chunk = await reader.read(READ_CHUNK)
                if not chunk:
                    break
                buffer += chunk
                *lines, buffer = buffer.split(b"\n")
                for line in lines:
                    if not line.strip():
                        continue
                    reply = await self.handle_line(line)
                    writer.write((json.dumps(reply, ensure_ascii=False) + "\n").encode("utf-8"))
                    await writer.drain()
        except (ConnectionError, OSError) as exc:
            logger.debug("Client connection dropped: {}", exc)
        finally:
            if task is not None:
                self._connections.pop(task, None)
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass

    async def handle_line(self, line: str | bytes) -> dict[str, Any]:
        """Answer one socket protocol line with `{data}` or `{error}`.

        Byte lines are decoded only once complete, so multibyte characters split
        across reads survive; bytes that are not UTF-8 count as invalid JSON.
        """
        try:
            payload = json.loads(line.decode("utf-8") if isinstance(line, bytes) else line)
        except (UnicodeDecodeError, json.JSONDecodeError):
            return {"error": "Invalid JSON"}
        if not isinstance(payload, dict):
            return {"error": "Invalid request"}
        action, params = split_socket_request(payload)
        if action == "status":
            return {"data": self.status()}
        if not action:
            return {"error": "Missing action"}
        if action not in ACTIONS:
            logger.debug("Forwarding unlisted action {}", action)
        try:
            data = await self.correlator.send(action, params)
        except Exception as exc:
            code, _ = classify_exception(exc)
            logger.debug("{} failed [{}]: {}", action, code, error_message(exc))
            return {"error": error_message(exc)}
        return {"data": data}
