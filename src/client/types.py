"""Request and response types passed between the worker and the network."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence, Union
from urllib.parse import urlsplit


class RequestMode(str, Enum):
    NAVIGATE = "navigate"
    SAME_ORIGIN = "same-origin"
    NO_CORS = "no-cors"
    CORS = "cors"


def origin_of(url: str) -> str:
    """Return the scheme://host[:port] part of an absolute URL."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


@dataclass(frozen=True)
class FetchRequest:
    """An intercepted request, addressed by its absolute URL."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    mode: Optional[RequestMode] = None

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("url cannot be empty")
        object.__setattr__(self, "method", self.method.upper())

    @property
    def origin(self) -> str:
        return origin_of(self.url)

    @property
    def path(self) -> str:
        return urlsplit(self.url).path or "/"

    @property
    def is_navigation(self) -> bool:
        """True for top-level page loads.

        An explicit mode wins; otherwise a GET that accepts HTML counts.
        """
        if self.mode is not None:
            return self.mode == RequestMode.NAVIGATE
        accept = self.header("accept") or ""
        return self.method == "GET" and "text/html" in accept

    def header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def json(self) -> Any:
        return json.loads(self.body) if self.body else None


HeaderList = tuple[tuple[str, str], ...]


def header_pairs(headers: Union[Mapping[str, str], Iterable[Sequence[str]], None]) -> HeaderList:
    """Normalize headers to ordered (name, value) pairs.

    Repeated names such as ``set-cookie`` stay separate pairs.
    """
    if not headers:
        return ()
    if isinstance(headers, Mapping):
        return tuple((str(k), str(v)) for k, v in headers.items())
    return tuple((str(k), str(v)) for k, v in headers)


@dataclass(frozen=True)
class FetchResponse:
    """A response as seen by the page, whether from network or cache.

    Headers are kept as ordered pairs; a mapping is accepted and converted.
    """

    status: int
    headers: HeaderList = ()
    body: bytes = b""
    url: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", header_pairs(self.headers))

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> Optional[str]:
        """First value of a header, case-insensitive."""
        values = self.header_values(name)
        return values[0] if values else None

    def header_values(self, name: str) -> list[str]:
        lowered = name.lower()
        return [value for key, value in self.headers if key.lower() == lowered]

    def json(self) -> Any:
        return json.loads(self.body) if self.body else None

    @classmethod
    def from_json(cls, status: int, data: Any, url: str = "") -> "FetchResponse":
        """Build a synthetic JSON response."""
        return cls(
            status=status,
            headers={"content-type": "application/json"},
            body=json.dumps(data).encode("utf-8"),
            url=url,
        )
