"""Install and activate phases: precaching and stale cache cleanup."""
import logging
from enum import Enum

from src.client.transport import Network
from src.state.cache_storage import CacheAddError, CacheStorage
from src.worker.clients import ClientRegistry
from src.worker.config import CacheConfig, WorkerConfig
from src.worker.errors import InstallError

logger = logging.getLogger(__name__)


class WorkerState(Enum):
    PARSED = "parsed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVATED = "activated"
    REDUNDANT = "redundant"


class WorkerLifecycle:
    """Owns the cache set of one worker version."""

    def __init__(
        self,
        config: WorkerConfig,
        caches: CacheStorage,
        network: Network,
        clients: ClientRegistry,
    ) -> None:
        self._config = config
        self._caches = caches
        self._network = network
        self._clients = clients
        self.state = WorkerState.PARSED

    @property
    def cache_config(self) -> CacheConfig:
        return self._config.cache

    async def install(self) -> None:
        """Populate the static cache with the precache manifest.

        All-or-nothing: if any URL fails, the static cache is left out
        entirely and the worker becomes redundant.

        Raises:
            InstallError: A manifest URL could not be fetched, or the
                fetched responses could not be stored.
        """
        self.state = WorkerState.INSTALLING
        cache_cfg = self._config.cache
        urls = self._precache_urls()
        logger.info("Installing %s: precaching %d asset(s)", cache_cfg.static_name, len(urls))
        try:
            await self._caches.cache(cache_cfg.static_name).add_all(urls, self._network.get)
        except Exception as e:
            # Also drops a partial cache left by an interrupted earlier run.
            await self._caches.delete(cache_cfg.static_name)
            self.state = WorkerState.REDUNDANT
            logger.error("Install failed: %s", e)
            url = e.url if isinstance(e, CacheAddError) else None
            raise InstallError(str(e), {"url": url} if url else None) from e
        self.state = WorkerState.INSTALLED

    async def ensure_installed(self) -> bool:
        """Install unless this version's static cache holds the full manifest.

        Returns True when an install ran.
        """
        static_name = self._config.cache.static_name
        if await self._caches.has(static_name):
            stored = set(await self._caches.cache(static_name).keys())
            missing = [url for url in self._precache_urls() if url not in stored]
            if not missing:
                logger.info("Static cache %s present, skipping install", static_name)
                self.state = WorkerState.INSTALLED
                return False
            logger.warning("Static cache %s is missing %d asset(s), reinstalling", static_name, len(missing))
        await self.install()
        return True

    def _precache_urls(self) -> list[str]:
        return [self._config.url_for(path) for path in self._config.cache.precache_urls]

    async def activate(self) -> list[str]:
        """Delete caches from other versions and claim open pages.

        Returns the deleted cache names.
        """
        self.state = WorkerState.ACTIVATING
        valid = self._config.cache.valid_names
        deleted = []
        for name in await self._caches.keys():
            if name not in valid:
                logger.info("Deleting stale cache %s", name)
                await self._caches.delete(name)
                deleted.append(name)
        await self._clients.claim()
        self.state = WorkerState.ACTIVATED
        return deleted

    async def start(self) -> None:
        """Install if needed, then activate immediately."""
        await self.ensure_installed()
        await self.activate()
