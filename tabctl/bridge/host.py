"""Native messaging host process launched by the browser.

stdout carries length-prefixed frames only; logs go to stderr and a rotating
file under ~/.tabctl/logs.
"""

from __future__ import annotations

import asyncio
import atexit
import os
import signal
import sys
from pathlib import Path
from typing import BinaryIO, Callable

from loguru import logger

from tabctl.bridge.server import BridgeServer, remove_socket_file
from tabctl.cli.shared.logging_utils import ensure_rotating_log_file
from tabctl.config.schema import Config
from tabctl.paths import get_socket_path


async def open_frame_writer(stream: BinaryIO) -> Callable[[bytes], None]:
    """Non-blocking writer for the stdout pipe; frames queue in the transport when the pipe is full."""
    loop = asyncio.get_running_loop()
    transport, _ = await loop.connect_write_pipe(asyncio.Protocol, stream)
    return transport.write


async def _stdin_reader() -> asyncio.StreamReader:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin.buffer)
    return reader


async def run_bridge(socket_path: Path, timeout_s: float) -> int:
    server = BridgeServer(socket_path, await open_frame_writer(sys.stdout.buffer), timeout_s=timeout_s)
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, server.request_stop)
        except (NotImplementedError, RuntimeError):
            logger.debug("Signal handler for {} unavailable on this platform", sig)
    try:
        await server.start()
    except OSError as exc:
        logger.error("Could not bind {}: {}", socket_path, exc)
        return 1
    reason = await server.serve(await _stdin_reader())
    logger.info("Bridge exiting ({})", reason)
    return 0


def main(label: str | None = None, config: Config | None = None) -> int:
    """Run one bridge until the browser disconnects or a signal arrives."""
    cfg = config or Config()
    socket_path = get_socket_path(label, cfg)
    log_name = f"bridge-{label}" if label else "bridge"
    logger.remove()
    logger.add(sys.stderr, level=cfg.logging.level, format="[native-host] {time:HH:mm:ss} {level} {message}")
    ensure_rotating_log_file(
        log_name,
        level=cfg.logging.level,
        rotation=cfg.logging.rotation,
        retention=cfg.logging.retention,
    )
    logger.info("Native host starting (python {}, pid {})", sys.version.split()[0], os.getpid())
    # Last-chance cleanup for exit paths that skip the server's own teardown.
    atexit.register(remove_socket_file, socket_path)
    try:
        return asyncio.run(run_bridge(socket_path, cfg.bridge.request_timeout_s))
    except KeyboardInterrupt:
        return 0
    except Exception:
        logger.exception("Bridge crashed")
        remove_socket_file(socket_path)
        return 1
