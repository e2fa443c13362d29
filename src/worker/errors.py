"""Custom exception types for the worker."""
from typing import Optional, Any


class WorkerError(Exception):
    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class UpstreamUnavailableError(WorkerError):
    """A non-recoverable request failed because the network is unreachable."""

    status_code = 500
    error_code = "NETWORK_ERROR"

    def __init__(self, message: str = "Network request failed", url: Optional[str] = None) -> None:
        super().__init__(message, {"url": url} if url else None)
        self.url = url


class QueueStorageError(WorkerError):
    status_code = 500
    error_code = "STORAGE_ERROR"


class InstallError(WorkerError):
    """The precache manifest could not be fully populated."""

    error_code = "INSTALL_FAILED"


class InvalidPushSignatureError(WorkerError):
    status_code = 401
    error_code = "INVALID_SIGNATURE"


class NotificationNotFoundError(WorkerError):
    status_code = 404
    error_code = "NOT_FOUND"
