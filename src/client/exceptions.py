"""Exception types for the upstream network layer."""


class NetworkError(Exception):
    """The upstream could not be reached (offline, refused, timed out)."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class TransportError(NetworkError):
    """Transport used before it was opened or after it was closed."""
    pass
