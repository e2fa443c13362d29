"""Fetch interception: cache-first for assets, network-first for the API."""
import asyncio
import logging
from typing import Any, Coroutine

from src.client.exceptions import NetworkError
from src.client.transport import Network
from src.client.types import FetchRequest, FetchResponse
from src.state.cache_storage import CacheStorage
from src.worker.config import WorkerConfig
from src.worker.errors import UpstreamUnavailableError
from src.worker.models.responses import OfflineResponse, QueuedResponse
from src.worker.offline_queue import OfflineMessageQueue

logger = logging.getLogger(__name__)


class FetchInterceptor:
    def __init__(
        self,
        config: WorkerConfig,
        caches: CacheStorage,
        network: Network,
        queue: OfflineMessageQueue,
    ) -> None:
        self._config = config
        self._caches = caches
        self._network = network
        self._queue = queue
        self._tasks: set[asyncio.Task] = set()

    async def handle(self, request: FetchRequest) -> FetchResponse:
        """Produce the response the page sees for ``request``.

        Raises:
            UpstreamUnavailableError: The network failed and no offline
                substitute applies.
        """
        if request.origin != self._config.origin:
            return await self._passthrough(request)
        if request.path.startswith(self._config.queue.api_prefix):
            return await self._handle_api(request)
        return await self._handle_asset(request)

    def is_message_send(self, request: FetchRequest) -> bool:
        return request.method == "POST" and request.path == self._config.queue.message_send_path

    async def _passthrough(self, request: FetchRequest) -> FetchResponse:
        try:
            return await self._network.fetch(request)
        except NetworkError as e:
            raise UpstreamUnavailableError(str(e), url=request.url) from e

    async def _handle_asset(self, request: FetchRequest) -> FetchResponse:
        cached = await self._caches.match(request)
        if cached is not None:
            logger.debug("Cache hit: %s", request.url)
            return cached
        try:
            response = await self._network.fetch(request)
        except NetworkError as e:
            if request.is_navigation:
                offline = await self._caches.match(
                    self._config.url_for(self._config.cache.offline_page)
                )
                if offline is not None:
                    logger.info("Offline navigation to %s, serving offline page", request.url)
                    return offline
            raise UpstreamUnavailableError(str(e), url=request.url) from e
        if request.method == "GET" and response.status == 200:
            self._write_through(request, response)
        return response

    async def _handle_api(self, request: FetchRequest) -> FetchResponse:
        try:
            response = await self._network.fetch(request)
        except NetworkError as e:
            if self.is_message_send(request):
                return await self._queue_send(request, e)
            if request.method == "GET":
                cached = await self._caches.match(request)
                if cached is not None:
                    logger.info("Offline API read served from cache: %s", request.url)
                    return cached
                return FetchResponse.from_json(503, OfflineResponse().model_dump(), url=request.url)
            raise UpstreamUnavailableError(str(e), url=request.url) from e

        if request.method == "GET" and response.status == 200:
            self._write_through(request, response)
        if self.is_message_send(request) and response.ok:
            self._queue.schedule_drain()
        return response

    async def _queue_send(self, request: FetchRequest, cause: NetworkError) -> FetchResponse:
        try:
            payload = request.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            raise UpstreamUnavailableError(
                "Network request failed and the message body is not a JSON object",
                url=request.url,
            ) from cause
        message = await self._queue.enqueue(payload)
        body = QueuedResponse(message_id=message.id).model_dump(by_alias=True)
        return FetchResponse.from_json(202, body, url=request.url)

    def _write_through(self, request: FetchRequest, response: FetchResponse) -> None:
        self._spawn(self._store_dynamic(request, response))

    async def _store_dynamic(self, request: FetchRequest, response: FetchResponse) -> None:
        cache = await self._caches.open(self._config.cache.dynamic_name)
        await cache.put(request, response)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Cache write-through failed: %s", task.exception())

    async def wait_idle(self) -> None:
        """Wait for pending cache writes and background drains."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self._queue.wait_idle()

    async def close(self) -> None:
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()
