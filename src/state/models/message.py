"""Offline message queue models."""
import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional


class MessageState(Enum):
    """Lifecycle of a queued outbound message.

    ``SENT`` and ``FAILED_TERMINAL`` are terminal: the message leaves both
    the durable store and the in-memory queue.
    """

    PENDING = "pending"
    SENDING = "sending"
    SENT = "sent"
    FAILED_RETRYABLE = "failed_retryable"
    FAILED_TERMINAL = "failed_terminal"

    @property
    def is_terminal(self) -> bool:
        return self in (MessageState.SENT, MessageState.FAILED_TERMINAL)


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_message_id(timestamp: Optional[int] = None) -> str:
    """Timestamp plus a random suffix, e.g. ``1760742000000-3f9a1c2b7``."""
    ts = timestamp if timestamp is not None else now_ms()
    return f"{ts}-{uuid.uuid4().hex[:9]}"


@dataclass(frozen=True)
class QueuedMessage:
    """An outbound chat message waiting for connectivity.

    Attributes:
        id: Correlation id, unique per enqueue.
        payload: Caller-supplied JSON body (``content``, ``sessionId``, ...),
            carried through to replay untouched.
        timestamp: Enqueue time in epoch milliseconds.
        retry_count: Failed replay attempts so far.
    """

    id: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: int = field(default_factory=now_ms)
    retry_count: int = 0

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("id cannot be empty")
        if self.retry_count < 0:
            raise ValueError("retry_count cannot be negative")

    @classmethod
    def create(cls, payload: dict[str, Any]) -> "QueuedMessage":
        ts = now_ms()
        return cls(id=generate_message_id(ts), payload=dict(payload), timestamp=ts)

    @property
    def content(self) -> Any:
        return self.payload.get("content")

    @property
    def session_id(self) -> Optional[str]:
        value = self.payload.get("sessionId")
        return str(value) if value is not None else None

    def with_retry(self) -> "QueuedMessage":
        return replace(self, retry_count=self.retry_count + 1)

    def to_record(self) -> dict[str, Any]:
        """Flat representation: payload fields plus queue bookkeeping."""
        return {
            **self.payload,
            "id": self.id,
            "timestamp": self.timestamp,
            "retryCount": self.retry_count,
        }
