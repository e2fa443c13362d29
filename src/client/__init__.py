"""Upstream network access for the edge worker."""

from .exceptions import NetworkError, TransportError
from .transport import HOP_BY_HOP_HEADERS, Network
from .types import FetchRequest, FetchResponse, RequestMode, origin_of

__all__ = [
    "Network", "HOP_BY_HOP_HEADERS",
    "FetchRequest", "FetchResponse", "RequestMode", "origin_of",
    "NetworkError", "TransportError",
]
