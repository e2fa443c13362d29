"""Worker middleware."""
from src.worker.middleware.logging import RequestLoggingMiddleware, sanitize_headers

__all__ = ["RequestLoggingMiddleware", "sanitize_headers"]
