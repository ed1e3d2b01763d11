"""Shared fixtures for the resultscan tests."""

import asyncio
import socket
import threading
import time
from collections.abc import Generator
from contextlib import closing

import httpx
import pytest
from aiohttp import web

from resultscan.common.request_manager import SyncRequestManager
from resultscan.config import SiteConfig
from tests.mock_server import MockResultsService, create_app

MOCK_BASE_URL = "http://results.test"


@pytest.fixture
def service() -> MockResultsService:
    """A fresh mock results service."""
    return MockResultsService()


@pytest.fixture
def mock_config() -> SiteConfig:
    """SiteConfig pointing at the httpx.MockTransport base URL."""
    return SiteConfig(
        form_url=f"{MOCK_BASE_URL}/form",
        results_url=f"{MOCK_BASE_URL}/results",
    )


@pytest.fixture
def mock_transport(service: MockResultsService) -> httpx.MockTransport:
    return httpx.MockTransport(service.handle_httpx)


@pytest.fixture
def request_manager(
    mock_transport: httpx.MockTransport,
) -> Generator[SyncRequestManager, None, None]:
    """SyncRequestManager wired to the in-process mock service."""
    manager = SyncRequestManager(timeout=5.0, transport=mock_transport)
    yield manager
    manager.close()


# =============================================================================
# aiohttp test server fixtures
# =============================================================================


def find_free_port() -> int:
    """Find a free port on localhost."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


class AioHttpTestServer:
    """Wrapper to run aiohttp server in a background thread."""

    def __init__(self, app: web.Application, port: int) -> None:
        self.app = app
        self.port = port
        self.host = "127.0.0.1"
        self._loop: asyncio.AbstractEventLoop | None = None
        self._runner: web.AppRunner | None = None
        self._thread: threading.Thread | None = None
        self._started = threading.Event()

    @property
    def url(self) -> str:
        """Get the base URL of the server."""
        return f"http://{self.host}:{self.port}"

    def start(self) -> None:
        """Start the server in a background thread."""
        self._thread = threading.Thread(target=self._run_server, daemon=True)
        self._thread.start()
        if not self._started.wait(timeout=5.0):
            raise RuntimeError("aiohttp test server did not start")

    def _run_server(self) -> None:
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)

        async def start() -> None:
            self._runner = web.AppRunner(self.app)
            await self._runner.setup()
            site = web.TCPSite(self._runner, self.host, self.port)
            await site.start()

        self._loop.run_until_complete(start())
        self._started.set()
        self._loop.run_forever()

    def stop(self) -> None:
        """Stop the server and clean up resources."""
        if self._loop and self._runner:
            runner = self._runner

            async def cleanup() -> None:
                await runner.cleanup()

            future = asyncio.run_coroutine_threadsafe(cleanup(), self._loop)
            try:
                future.result(timeout=2.0)
            except Exception:
                pass  # Best effort cleanup

        if self._loop:
            self._loop.call_soon_threadsafe(self._loop.stop)

        if self._thread:
            self._thread.join(timeout=2.0)


@pytest.fixture
def results_server(
    service: MockResultsService,
) -> Generator[AioHttpTestServer, None, None]:
    """Start a real HTTP server running the mock results service.

    Yields:
        AioHttpTestServer instance; ``service`` holds its request log.
    """
    server = AioHttpTestServer(create_app(service), find_free_port())
    server.start()
    # Small grace period so the first connection is not refused.
    time.sleep(0.05)
    yield server
    server.stop()


@pytest.fixture
def server_url(results_server: AioHttpTestServer) -> str:
    return results_server.url


@pytest.fixture
def server_config(server_url: str) -> SiteConfig:
    """SiteConfig pointing at the live aiohttp server."""
    return SiteConfig(
        form_url=f"{server_url}/form",
        results_url=f"{server_url}/results",
        timeout=5.0,
    )
