"""CLI commands."""

from . import (
    caches,
    push,
    queue,
    serve,
    status,
)

__all__ = [
    "caches",
    "push",
    "queue",
    "serve",
    "status",
]
