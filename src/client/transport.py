"""HTTP transport to the upstream origin with connection pooling."""

import json
import logging
from typing import Any, Optional

import httpx

from .exceptions import NetworkError, TransportError
from .types import FetchRequest, FetchResponse

logger = logging.getLogger(__name__)

# Headers owned by a single hop; never forwarded in either direction.
HOP_BY_HOP_HEADERS = frozenset({
    "connection", "keep-alive", "proxy-authenticate", "proxy-authorization",
    "te", "trailer", "transfer-encoding", "upgrade", "host", "content-length",
})
# httpx decodes bodies, so the encoding header no longer applies.
_DROP_RESPONSE_HEADERS = HOP_BY_HOP_HEADERS | {"content-encoding"}


def _filter_headers(headers: Any, drop: frozenset[str]) -> dict[str, str]:
    return {k: v for k, v in headers.items() if k.lower() not in drop}


class Network:
    """Performs real network fetches on behalf of the worker.

    Failures to reach the upstream surface as :class:`NetworkError`; any HTTP
    status, including 5xx, is a successful fetch. There is no retry here,
    the offline queue owns retries for message sends.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "Network":
        await self.open()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def open(self) -> None:
        if self._client is not None:
            return
        if self._transport is not None:
            self._client = httpx.AsyncClient(
                transport=self._transport, timeout=httpx.Timeout(self._timeout),
            )
        else:
            self._client = httpx.AsyncClient(
                http2=True, timeout=httpx.Timeout(self._timeout),
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def fetch(self, request: FetchRequest) -> FetchResponse:
        if not self._client:
            raise TransportError("Network not opened", url=request.url)
        try:
            resp = await self._client.request(
                request.method,
                request.url,
                headers=_filter_headers(request.headers, HOP_BY_HOP_HEADERS),
                content=request.body or None,
            )
        except (httpx.TimeoutException, httpx.RequestError) as e:
            logger.debug("Fetch failed: %s %s: %s", request.method, request.url, e)
            raise NetworkError(f"{request.method} {request.url} failed: {e}", url=request.url) from e
        # multi_items keeps repeated headers such as set-cookie apart.
        return FetchResponse(
            status=resp.status_code,
            headers=[
                (k, v) for k, v in resp.headers.multi_items()
                if k.lower() not in _DROP_RESPONSE_HEADERS
            ],
            body=resp.content,
            url=str(resp.url),
        )

    async def get(self, url: str) -> FetchResponse:
        return await self.fetch(FetchRequest(method="GET", url=url))

    async def post_json(self, url: str, data: dict) -> FetchResponse:
        return await self.fetch(FetchRequest(
            method="POST", url=url,
            headers={"Content-Type": "application/json"},
            body=json.dumps(data).encode("utf-8"),
        ))
