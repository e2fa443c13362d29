"""Shared fixtures: a scriptable upstream origin and worker wiring."""
from pathlib import Path
from typing import Callable, Optional, Union

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from src.client.transport import Network
from src.state.cache_storage import CacheStorage
from src.state.database import DatabaseManager
from src.worker.app import create_app
from src.worker.clients import ClientRegistry
from src.worker.config import CacheConfig, WorkerConfig

ORIGIN = "https://chat.example.com"
PRECACHE = ("/", "/offline")
OFFLINE_HTML = b"<html><body>You are offline</body></html>"

Handler = Callable[[httpx.Request], httpx.Response]


class FakeOrigin:
    """Upstream stand-in served through ``httpx.MockTransport``.

    Routes are keyed by (method, path). Setting ``offline`` makes every
    request fail to connect, like a dropped network.
    """

    def __init__(self) -> None:
        self.offline = False
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], Union[tuple, Handler]] = {}

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        content: bytes = b"",
        json: Optional[object] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self._routes[(method.upper(), path)] = (status, content, json, headers or {})

    def add_handler(self, method: str, path: str, handler: Handler) -> None:
        self._routes[(method.upper(), path)] = handler

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.offline:
            raise httpx.ConnectError("Network is unreachable", request=request)
        route = self._routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            return route(request)
        status, content, json_body, headers = route
        if json_body is not None:
            return httpx.Response(status, json=json_body, headers=headers)
        return httpx.Response(status, content=content, headers=headers)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


@pytest.fixture
def fake_origin() -> FakeOrigin:
    origin = FakeOrigin()
    origin.add("GET", "/", content=b"<html>home</html>", headers={"content-type": "text/html"})
    origin.add("GET", "/offline", content=OFFLINE_HTML, headers={"content-type": "text/html"})
    return origin


@pytest.fixture
def worker_config(tmp_path: Path) -> WorkerConfig:
    return WorkerConfig(
        origin=ORIGIN,
        cache=CacheConfig(version="3.0.0", precache_urls=PRECACHE),
        db_path=tmp_path / "worker.db",
    )


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> DatabaseManager:
    """Create and initialize a temp database."""
    manager = DatabaseManager(tmp_path / "worker.db")
    await manager.initialize()
    return manager


@pytest_asyncio.fixture
async def network(fake_origin: FakeOrigin):
    async with Network(transport=fake_origin.transport()) as net:
        yield net


@pytest.fixture
def caches(db: DatabaseManager) -> CacheStorage:
    return CacheStorage(db)


class RecordingPage:
    """Collects frames posted to one page."""

    def __init__(self, fail: bool = False) -> None:
        self.frames: list[dict] = []
        self.fail = fail

    async def send(self, message: dict) -> None:
        if self.fail:
            raise ConnectionError("page went away")
        self.frames.append(message)


class WindowRecorder:
    """Window opener that records the URLs it was asked to open."""

    def __init__(self) -> None:
        self.urls: list[str] = []

    async def __call__(self, url: str) -> None:
        self.urls.append(url)


@pytest.fixture
def windows() -> WindowRecorder:
    return WindowRecorder()


@pytest.fixture
def clients(windows: WindowRecorder) -> ClientRegistry:
    return ClientRegistry(window_opener=windows)


@pytest.fixture
def client(worker_config: WorkerConfig, fake_origin: FakeOrigin, windows: WindowRecorder) -> TestClient:
    app = create_app(
        worker_config, network=Network(transport=fake_origin.transport()), window_opener=windows,
    )
    with TestClient(app, base_url=ORIGIN) as c:
        yield c
