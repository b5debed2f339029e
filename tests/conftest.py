"""Shared test fixtures for the loadtest test suite."""

from __future__ import annotations

import asyncio
import socket
import socketserver
import threading
from typing import TYPE_CHECKING

import pytest
from aiohttp import web

from loadtest._internal.logging import teardown_logging

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterator


# =============================================================================
# Pytest configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)


@pytest.fixture(autouse=True)
def _reset_loadtest_logging() -> Iterator[None]:
    """Undo any setup_logging() call so caplog sees every record."""
    teardown_logging()
    yield
    teardown_logging()


# =============================================================================
# Network utilities
# =============================================================================


def _get_free_port() -> int:
    """Find an available port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# =============================================================================
# Target HTTP server
# =============================================================================


class TargetServer:
    """Handle on the background aiohttp server used as a load test target.

    Attributes:
        url: Base URL, e.g. ``http://127.0.0.1:54321``.
        hits: Number of requests received so far.
        seen: ``(method, path, user_agent)`` for every request received.
        on_request: Optional hook called with the running hit count
            before the handler answers. Runs on the server thread.
    """

    def __init__(self, port: int) -> None:
        self.url = f"http://127.0.0.1:{port}"
        self.hits = 0
        self.seen: list[tuple[str, str, str]] = []
        self.on_request: Callable[[int], None] | None = None

    def url_for(self, path: str) -> str:
        return f"{self.url}{path}"


_TARGET_KEY = web.AppKey("target", TargetServer)


@web.middleware
async def _count_hits(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    target = request.app[_TARGET_KEY]
    target.hits += 1
    target.seen.append((request.method, request.path, request.headers.get("User-Agent", "")))
    if target.on_request is not None:
        target.on_request(target.hits)
    return await handler(request)


async def _ok_handler(request: web.Request) -> web.Response:
    return web.Response(text="ok")


async def _status_handler(request: web.Request) -> web.Response:
    """Answer with the status code given in the path (``/status/503``)."""
    return web.Response(status=int(request.match_info["code"]))


async def _delay_handler(request: web.Request) -> web.Response:
    """Respond after a configurable delay (query param: ?delay=0.5)."""
    delay = float(request.query.get("delay", "0.1"))
    await asyncio.sleep(delay)
    return web.Response(text="late")


def _create_target_app(target: TargetServer) -> web.Application:
    app = web.Application(middlewares=[_count_hits])
    app[_TARGET_KEY] = target
    app.router.add_route("*", "/", _ok_handler)
    app.router.add_route("*", "/ok", _ok_handler)
    app.router.add_route("*", "/status/{code:\\d+}", _status_handler)
    app.router.add_get("/delay", _delay_handler)
    return app


@pytest.fixture
def target_server() -> Iterator[TargetServer]:
    """Aiohttp target server running in a background thread.

    The engine blocks the calling thread while it runs, so the server
    needs its own loop on its own thread.
    """
    port = _get_free_port()
    target = TargetServer(port)
    started = threading.Event()
    loop_holder: list[asyncio.AbstractEventLoop] = []

    def _thread_target() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        runner = web.AppRunner(_create_target_app(target))
        loop.run_until_complete(runner.setup())
        site = web.TCPSite(runner, "127.0.0.1", port)
        loop.run_until_complete(site.start())
        loop_holder.append(loop)
        started.set()
        loop.run_forever()
        loop.run_until_complete(runner.cleanup())
        loop.close()

    thread = threading.Thread(target=_thread_target, daemon=True)
    thread.start()
    started.wait(timeout=5.0)

    yield target

    if loop_holder:
        loop_holder[0].call_soon_threadsafe(loop_holder[0].stop)
    thread.join(timeout=5.0)


# =============================================================================
# Misbehaving targets
# =============================================================================


class _HangUpHandler(socketserver.BaseRequestHandler):
    """Accept a connection and close it without sending anything."""

    def handle(self) -> None:
        server = self.server
        with server.lock:  # type: ignore[attr-defined]
            server.connections += 1  # type: ignore[attr-defined]


class ClosingServer(socketserver.ThreadingTCPServer):
    daemon_threads = True
    allow_reuse_address = True

    def __init__(self) -> None:
        super().__init__(("127.0.0.1", 0), _HangUpHandler)
        self.lock = threading.Lock()
        self.connections = 0

    @property
    def url(self) -> str:
        host, port = self.server_address[:2]
        return f"http://{host}:{port}/"


@pytest.fixture
def closing_server() -> Iterator[ClosingServer]:
    """TCP server that hangs up on every connection without responding."""
    server = ClosingServer()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    yield server

    server.shutdown()
    server.server_close()
    thread.join(timeout=5.0)


@pytest.fixture
def refused_url() -> str:
    """URL of a local port nothing is listening on."""
    return f"http://127.0.0.1:{_get_free_port()}/"
