"""Cache storage models."""
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class CachedResponse:
    """A stored response, keyed by request URL within one named cache."""

    cache_name: str
    url: str
    status: int
    headers: tuple[tuple[str, str], ...] = ()
    body: bytes = b""
    stored_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", tuple((k, v) for k, v in self.headers))
        if not self.cache_name:
            raise ValueError("cache_name cannot be empty")
        if not self.url:
            raise ValueError("url cannot be empty")


@dataclass(frozen=True)
class CacheInfo:
    name: str
    created_at: datetime
    entry_count: int = 0
