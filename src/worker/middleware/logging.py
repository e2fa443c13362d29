"""Request logging middleware."""
import logging
import time
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger("edge_worker.http")
SENSITIVE_FIELDS = frozenset({"authorization", "cookie", "set-cookie", "x-push-signature", "x-api-key"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every intercepted request with its outcome and duration."""

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        start_time = time.perf_counter()
        mode = request.headers.get("Sec-Fetch-Mode", "-")
        logger.info("Request: %s %s mode=%s", request.method, request.url.path, mode)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info("Response: %s %s status=%d duration=%.2fms", request.method, request.url.path, response.status_code, duration_ms)
        return response


def sanitize_headers(headers: dict) -> dict:
    """Redact credentials and signatures from headers for logging."""
    result = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_FIELDS:
            result[key] = "[REDACTED]"
        else:
            result[key] = value
    return result
