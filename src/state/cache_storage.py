"""Named response caches with a CacheStorage-like interface."""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence

from src.client.types import FetchRequest, FetchResponse
from src.state.database import DatabaseManager
from src.state.models.cache import CachedResponse, CacheInfo
from src.state.repositories.cache import CacheRepository

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Awaitable[FetchResponse]]


class CacheAddError(Exception):
    """``add_all`` could not fetch every URL; nothing was stored."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


def _to_response(entry: CachedResponse) -> FetchResponse:
    return FetchResponse(status=entry.status, headers=entry.headers, body=entry.body, url=entry.url)


def _matchable(request: FetchRequest) -> bool:
    return request.method == "GET"


class Cache:
    """One named cache. Entries are keyed by absolute request URL."""

    def __init__(self, db: DatabaseManager, name: str) -> None:
        self._db = db
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    async def match(self, request: FetchRequest | str) -> Optional[FetchResponse]:
        if isinstance(request, FetchRequest):
            if not _matchable(request):
                return None
            url = request.url
        else:
            url = request
        async with self._db.connection() as conn:
            entry = await CacheRepository(conn).get(self._name, url)
        return _to_response(entry) if entry else None

    async def put(self, request: FetchRequest | str, response: FetchResponse) -> None:
        url = request.url if isinstance(request, FetchRequest) else request
        async with self._db.connection() as conn:
            await CacheRepository(conn).put(CachedResponse(
                cache_name=self._name, url=url, status=response.status,
                headers=response.headers, body=response.body,
            ))

    async def add_all(self, urls: Sequence[str], fetch: Fetcher) -> None:
        """Fetch every URL, then store them all, or store nothing.

        The cache itself is created together with its entries, so a
        handle from :meth:`CacheStorage.cache` leaves no trace on failure.

        Raises:
            CacheAddError: A fetch raised or returned a non-2xx status.
        """
        async def _one(url: str) -> CachedResponse:
            try:
                response = await fetch(url)
            except Exception as exc:
                raise CacheAddError(f"Failed to fetch {url}: {exc}", url) from exc
            if not response.ok:
                raise CacheAddError(f"Failed to fetch {url}: HTTP {response.status}", url)
            return CachedResponse(
                cache_name=self._name, url=url, status=response.status,
                headers=response.headers, body=response.body,
            )

        results = await asyncio.gather(*(_one(u) for u in urls), return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result
        async with self._db.connection() as conn:
            await CacheRepository(conn).put_many(list(results))

    async def delete(self, request: FetchRequest | str) -> bool:
        url = request.url if isinstance(request, FetchRequest) else request
        async with self._db.connection() as conn:
            return await CacheRepository(conn).delete_entry(self._name, url)

    async def keys(self) -> list[str]:
        async with self._db.connection() as conn:
            return await CacheRepository(conn).urls(self._name)


class CacheStorage:
    """The set of named caches owned by the worker."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def open(self, name: str) -> Cache:
        async with self._db.connection() as conn:
            if await CacheRepository(conn).create_cache(name):
                logger.debug("Created cache %s", name)
        return Cache(self._db, name)

    def cache(self, name: str) -> Cache:
        """A handle to a cache that may not exist yet.

        Only :meth:`Cache.add_all` creates the cache through this handle.
        """
        return Cache(self._db, name)

    async def has(self, name: str) -> bool:
        async with self._db.connection() as conn:
            return await CacheRepository(conn).has_cache(name)

    async def keys(self) -> list[str]:
        async with self._db.connection() as conn:
            return await CacheRepository(conn).cache_names()

    async def info(self) -> list[CacheInfo]:
        async with self._db.connection() as conn:
            return await CacheRepository(conn).list_caches()

    async def delete(self, name: str) -> bool:
        async with self._db.connection() as conn:
            return await CacheRepository(conn).delete_cache(name)

    async def match(self, request: FetchRequest | str) -> Optional[FetchResponse]:
        """Look up a request in every cache, oldest cache first."""
        if isinstance(request, FetchRequest):
            if not _matchable(request):
                return None
            url = request.url
        else:
            url = request
        async with self._db.connection() as conn:
            entry = await CacheRepository(conn).match_any(url)
        return _to_response(entry) if entry else None
