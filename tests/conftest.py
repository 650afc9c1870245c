"""Pytest hooks and fixtures."""

import asyncio
import json
import shutil
import tempfile
from pathlib import Path
from typing import Any, Callable

import pytest

from tabctl.config.schema import BridgeConfig, ClientConfig, Config
from tabctl.paths import get_socket_path


def pytest_configure(config):
    """Register custom markers (also in pyproject.toml)."""
    config.addinivalue_line(
        "markers",
        "e2e: exercises a real bridge over a Unix socket",
    )


@pytest.fixture
def socket_dir():
    """Short directory for Unix sockets (sun_path is limited to ~108 bytes)."""
    path = Path(tempfile.mkdtemp(prefix="tabctl-", dir="/tmp"))
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def config(socket_dir) -> Config:
    return Config(
        bridge=BridgeConfig(socket_dir=str(socket_dir), request_timeout_s=1.0),
        client=ClientConfig(known_browsers=["firefox", "chrome"], request_timeout_s=1.0),
    )


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    """Point ~ at a temp dir so config and logs never touch the real home."""
    from tabctl.config.access import clear_config_cache

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    clear_config_cache()
    yield home
    clear_config_cache()


class FakeBridge:
    """Minimal socket-protocol server answering actions from a handler table."""

    def __init__(self, path: Path, handlers: dict[str, Callable[[dict[str, Any]], Any]]):
        self.path = path
        self.handlers = handlers
        self.requests: list[dict[str, Any]] = []
        self._server: asyncio.AbstractServer | None = None

    async def __aenter__(self) -> "FakeBridge":
        self._server = await asyncio.start_unix_server(self._handle, path=str(self.path))
        return self

    async def __aexit__(self, *exc: Any) -> None:
        assert self._server is not None
        self._server.close()
        await self._server.wait_closed()
        self.path.unlink(missing_ok=True)

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        line = await reader.readline()
        request = json.loads(line)
        self.requests.append(request)
        handler = self.handlers.get(request.get("action"))
        if handler is None:
            reply: dict[str, Any] = {"error": f"Unknown action: {request.get('action')}"}
        else:
            result = handler(request)
            if asyncio.iscoroutine(result):
                result = await result
            reply = {"data": result}
        try:
            writer.write((json.dumps(reply) + "\n").encode())
            await writer.drain()
        except ConnectionError:
            pass  # client gave up (timeout tests)
        finally:
            writer.close()


@pytest.fixture
def fake_bridge(config):
    """Factory: fake_bridge("chrome", {"listTabs": lambda req: [...]})."""

    def _make(label: str | None, handlers: dict[str, Callable[[dict[str, Any]], Any]]) -> FakeBridge:
        return FakeBridge(get_socket_path(label, config), handlers)

    return _make
