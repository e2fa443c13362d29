"""Tests for install/activate phases."""
import sqlite3

import pytest

from src.client.transport import Network
from src.client.types import FetchResponse
from src.state.cache_storage import CacheStorage
from src.state.repositories.cache import CacheRepository
from src.worker.clients import ClientRegistry
from src.worker.config import WorkerConfig
from src.worker.errors import InstallError
from src.worker.lifecycle import WorkerLifecycle, WorkerState
from tests.conftest import OFFLINE_HTML, ORIGIN, FakeOrigin, RecordingPage


@pytest.fixture
def lifecycle(
    worker_config: WorkerConfig, caches: CacheStorage, network: Network, clients: ClientRegistry,
) -> WorkerLifecycle:
    return WorkerLifecycle(worker_config, caches, network, clients)


class TestInstall:
    @pytest.mark.asyncio
    async def test_precaches_manifest(
        self, lifecycle: WorkerLifecycle, caches: CacheStorage, worker_config: WorkerConfig,
    ) -> None:
        assert lifecycle.state == WorkerState.PARSED
        await lifecycle.install()
        assert lifecycle.state == WorkerState.INSTALLED
        static = await caches.open(worker_config.cache.static_name)
        assert sorted(await static.keys()) == [f"{ORIGIN}/", f"{ORIGIN}/offline"]
        assert (await static.match(f"{ORIGIN}/offline")).body == OFFLINE_HTML

    @pytest.mark.asyncio
    async def test_failed_url_aborts_install(
        self, lifecycle: WorkerLifecycle, caches: CacheStorage, worker_config: WorkerConfig, fake_origin: FakeOrigin,
    ) -> None:
        fake_origin.add("GET", "/offline", status=500)

        with pytest.raises(InstallError) as exc_info:
            await lifecycle.install()

        assert exc_info.value.details == {"url": f"{ORIGIN}/offline"}
        assert lifecycle.state == WorkerState.REDUNDANT
        assert not await caches.has(worker_config.cache.static_name)

    @pytest.mark.asyncio
    async def test_offline_install_fails(
        self, lifecycle: WorkerLifecycle, caches: CacheStorage, fake_origin: FakeOrigin,
    ) -> None:
        fake_origin.offline = True
        with pytest.raises(InstallError):
            await lifecycle.install()
        assert await caches.keys() == []

    @pytest.mark.asyncio
    async def test_storage_failure_leaves_no_cache(
        self, lifecycle: WorkerLifecycle, caches: CacheStorage, worker_config: WorkerConfig,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        async def failing_put_many(self, entries) -> None:
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(CacheRepository, "put_many", failing_put_many)

        with pytest.raises(InstallError, match="disk I/O error") as exc_info:
            await lifecycle.install()

        assert exc_info.value.details is None
        assert lifecycle.state == WorkerState.REDUNDANT
        assert not await caches.has(worker_config.cache.static_name)

    @pytest.mark.asyncio
    async def test_complete_static_cache_skips_install(
        self, lifecycle: WorkerLifecycle, worker_config: WorkerConfig, fake_origin: FakeOrigin,
    ) -> None:
        await lifecycle.install()
        fake_origin.requests.clear()

        assert await lifecycle.ensure_installed() is False
        assert lifecycle.state == WorkerState.INSTALLED
        assert fake_origin.requests == []

    @pytest.mark.asyncio
    async def test_empty_static_cache_is_reinstalled(
        self, lifecycle: WorkerLifecycle, caches: CacheStorage, worker_config: WorkerConfig,
    ) -> None:
        # An install interrupted before its entries were written.
        await caches.open(worker_config.cache.static_name)

        assert await lifecycle.ensure_installed() is True

        assert lifecycle.state == WorkerState.INSTALLED
        assert (await caches.match(f"{ORIGIN}/offline")).body == OFFLINE_HTML

    @pytest.mark.asyncio
    async def test_partial_static_cache_is_reinstalled(
        self, lifecycle: WorkerLifecycle, caches: CacheStorage, worker_config: WorkerConfig, fake_origin: FakeOrigin,
    ) -> None:
        static = await caches.open(worker_config.cache.static_name)
        await static.put(f"{ORIGIN}/", FetchResponse(status=200, body=b"<html>home</html>"))

        assert await lifecycle.ensure_installed() is True

        assert sorted(await static.keys()) == [f"{ORIGIN}/", f"{ORIGIN}/offline"]
        assert len(fake_origin.calls("GET", "/offline")) == 1

    @pytest.mark.asyncio
    async def test_failed_reinstall_removes_partial_cache(
        self, lifecycle: WorkerLifecycle, caches: CacheStorage, worker_config: WorkerConfig, fake_origin: FakeOrigin,
    ) -> None:
        await caches.open(worker_config.cache.static_name)
        fake_origin.offline = True

        with pytest.raises(InstallError):
            await lifecycle.ensure_installed()

        assert not await caches.has(worker_config.cache.static_name)


class TestActivate:
    @pytest.mark.asyncio
    async def test_deletes_other_version_caches(
        self, lifecycle: WorkerLifecycle, caches: CacheStorage, worker_config: WorkerConfig,
    ) -> None:
        old = await caches.open("inkhaven-static-v2.0.0")
        await old.put(f"{ORIGIN}/app.js", FetchResponse(status=200, body=b"old"))
        await caches.open("inkhaven-dynamic-v2.0.0")
        await caches.open(worker_config.cache.static_name)
        await caches.open(worker_config.cache.dynamic_name)
        await caches.open(worker_config.cache.umbrella_name)

        deleted = await lifecycle.activate()

        assert sorted(deleted) == ["inkhaven-dynamic-v2.0.0", "inkhaven-static-v2.0.0"]
        assert sorted(await caches.keys()) == sorted(worker_config.cache.valid_names)
        assert await caches.match(f"{ORIGIN}/app.js") is None
        assert lifecycle.state == WorkerState.ACTIVATED

    @pytest.mark.asyncio
    async def test_claims_open_pages(self, lifecycle: WorkerLifecycle, clients: ClientRegistry) -> None:
        page = RecordingPage()
        registered = clients.register(f"{ORIGIN}/chat/s1", page.send)
        assert clients.match_all() == []

        await lifecycle.activate()

        assert registered.controlled
        assert clients.match_all() == [registered]

    @pytest.mark.asyncio
    async def test_start_installs_then_activates(
        self, lifecycle: WorkerLifecycle, caches: CacheStorage, worker_config: WorkerConfig,
    ) -> None:
        await lifecycle.start()
        assert lifecycle.state == WorkerState.ACTIVATED
        assert await caches.keys() == [worker_config.cache.static_name]
