"""Catch-all route: every page request goes through the fetch interceptor."""
import logging
from typing import Optional

from fastapi import APIRouter, Request, Response

from src.client.types import FetchRequest, FetchResponse, RequestMode
from src.worker.middleware.logging import sanitize_headers
from src.worker.worker import EdgeWorker

logger = logging.getLogger(__name__)

_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _request_mode(value: Optional[str]) -> Optional[RequestMode]:
    if not value:
        return None
    try:
        return RequestMode(value.lower())
    except ValueError:
        return None


async def to_fetch_request(request: Request, origin: str) -> FetchRequest:
    """Address a proxied request on the application origin."""
    url = f"{origin}{request.url.path}"
    if request.url.query:
        url = f"{url}?{request.url.query}"
    headers = {k: v for k, v in request.headers.items() if k.lower() != "host"}
    return FetchRequest(
        method=request.method,
        url=url,
        headers=headers,
        body=await request.body(),
        mode=_request_mode(request.headers.get("sec-fetch-mode")),
    )


def to_response(fetched: FetchResponse) -> Response:
    response = Response(content=fetched.body, status_code=fetched.status)
    for name, value in fetched.headers:
        response.headers.append(name, value)
    return response


def create_fetch_router(worker: EdgeWorker) -> APIRouter:
    """Create the catch-all router. Include it last."""
    router = APIRouter()

    @router.api_route("/{path:path}", methods=_METHODS, include_in_schema=False)
    async def intercept(request: Request, path: str) -> Response:
        fetch_request = await to_fetch_request(request, worker.config.origin)
        logger.debug(
            "Intercepting %s %s headers=%s",
            fetch_request.method, fetch_request.url, sanitize_headers(fetch_request.headers),
        )
        fetched = await worker.interceptor.handle(fetch_request)
        return to_response(fetched)

    return router
