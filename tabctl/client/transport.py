"""Socket client for bridges: one request per connection, optional fan-out."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any

from loguru import logger

from tabctl.client.discovery import BridgeEndpoint, discover
from tabctl.config.schema import Config
from tabctl.utils.exceptions import (
    BridgeNotRunningError,
    BridgeProtocolError,
    BrowserCommandError,
    NoBridgesFoundError,
    RequestTimeoutError,
    error_message,
)

DEFAULT_TIMEOUT_S = 10.0
READ_CHUNK = 64 * 1024


@dataclass(slots=True)
class BridgeResult:
    """Successful answer from one bridge during fan-out."""

    label: str
    data: Any


async def read_reply_line(reader: asyncio.StreamReader) -> bytes:
    """Read up to and including the first newline. No 64 KiB cap, unlike readline()."""
    line = bytearray()
    while True:
        chunk = await reader.read(READ_CHUNK)
        if not chunk:
            return bytes(line)
        newline = chunk.find(b"\n")
        if newline >= 0:
            line += chunk[: newline + 1]
            return bytes(line)
        line += chunk


async def _exchange(endpoint: BridgeEndpoint, request: dict[str, Any]) -> Any:
    try:
        reader, writer = await asyncio.open_unix_connection(str(endpoint.address))
    except (FileNotFoundError, ConnectionRefusedError) as exc:
        raise BridgeNotRunningError(endpoint.label, str(endpoint.address)) from exc
    try:
        writer.write((json.dumps(request, ensure_ascii=False) + "\n").encode("utf-8"))
        await writer.drain()
        line = await read_reply_line(reader)
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError):
            pass
    try:
        response = json.loads(line.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise BridgeProtocolError(endpoint.label) from exc
    if not isinstance(response, dict):
        raise BridgeProtocolError(endpoint.label)
    if response.get("error"):
        raise BrowserCommandError(str(response["error"]), action=str(request.get("action") or ""))
    return response["data"] if "data" in response else response


async def request_one(
    endpoint: BridgeEndpoint,
    request: dict[str, Any],
    *,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> Any:
    """Send one request line to a bridge and return the `data` of its reply."""
    try:
        return await asyncio.wait_for(_exchange(endpoint, request), timeout=timeout_s)
    except asyncio.TimeoutError as exc:
        raise RequestTimeoutError(timeout_s, action=str(request.get("action") or "")) from exc


def _timeout(config: Config | None) -> float:
    return config.client.request_timeout_s if config else DEFAULT_TIMEOUT_S


async def request_all(
    request: dict[str, Any],
    label_filter: str | None = None,
    *,
    config: Config | None = None,
) -> list[BridgeResult]:
    """Send a request to every discovered bridge concurrently; keep the successes."""
    endpoints = discover(label_filter, config=config)
    if not endpoints:
        raise NoBridgesFoundError(label_filter)
    timeout_s = _timeout(config)
    outcomes = await asyncio.gather(
        *(request_one(ep, request, timeout_s=timeout_s) for ep in endpoints),
        return_exceptions=True,
    )
    results: list[BridgeResult] = []
    for endpoint, outcome in zip(endpoints, outcomes):
        if isinstance(outcome, BaseException):
            logger.debug("Dropping {} from {}: {}", endpoint.label, request.get("action"), error_message(outcome))
            continue
        results.append(BridgeResult(label=endpoint.label, data=outcome))
    return results


def pick_endpoint(label: str | None = None, *, config: Config | None = None) -> BridgeEndpoint:
    """The bridge for `label`, else the first discovered one."""
    endpoints = discover(label, config=config)
    if not endpoints:
        raise NoBridgesFoundError(label)
    return endpoints[0]


async def request_first(
    request: dict[str, Any],
    label: str | None = None,
    *,
    config: Config | None = None,
) -> Any:
    """Send a request to exactly one bridge: the labelled one, else the first discovered."""
    endpoint = pick_endpoint(label, config=config)
    return await request_one(endpoint, request, timeout_s=_timeout(config))
