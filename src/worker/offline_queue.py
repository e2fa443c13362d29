"""Offline message queue with bounded replay.

Outbound chat messages that could not reach the network are written to the
durable ``offline_messages`` store and mirrored in memory. ``drain()``
replays them; each message either gets delivered, goes back to the queue
for the next pass, or is dropped and reported after ``max_attempts``
failed replays.

The durable store is the source of truth: ``enqueue`` writes it before
touching the mirror, and ``reconcile`` rebuilds the mirror from it at
startup.
"""
import asyncio
import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from src.client.exceptions import NetworkError
from src.client.transport import Network
from src.state.database import DatabaseManager
from src.state.models.message import MessageState, QueuedMessage
from src.state.repositories.messages import OfflineMessageRepository
from src.worker.clients import ClientRegistry
from src.worker.errors import QueueStorageError
from src.worker.models.messages import QueuedMessageSent

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
CORRELATION_KEY = "queuedId"


class DeliveryError(Exception):
    """A replay attempt reached the network but was not accepted."""


# Resends one message; raises NetworkError or DeliveryError on failure.
Resender = Callable[[QueuedMessage], Awaitable[None]]


@dataclass(frozen=True)
class Transition:
    state: MessageState
    message: QueuedMessage


def advance(message: QueuedMessage, delivered: bool, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> Transition:
    """Next state of a message after one replay attempt. No I/O."""
    if delivered:
        return Transition(MessageState.SENT, message)
    failed = message.with_retry()
    if failed.retry_count < max_attempts:
        return Transition(MessageState.FAILED_RETRYABLE, failed)
    return Transition(MessageState.FAILED_TERMINAL, failed)


@dataclass
class DrainReport:
    sent: list[str] = field(default_factory=list)
    retrying: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.sent) + len(self.retrying) + len(self.failed)


class HttpResender:
    """Replays a message to the message-send endpoint.

    The body is the original payload plus the queue id under ``queuedId``.
    Any 2xx counts as delivered.
    """

    def __init__(self, network: Network, url: str) -> None:
        self._network = network
        self._url = url

    async def __call__(self, message: QueuedMessage) -> None:
        body: dict[str, Any] = {**message.payload, CORRELATION_KEY: message.id}
        response = await self._network.post_json(self._url, body)
        if not response.ok:
            raise DeliveryError(f"Send rejected with HTTP {response.status}")


class OfflineMessageQueue:
    def __init__(
        self,
        db: DatabaseManager,
        clients: ClientRegistry,
        resend: Resender,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._db = db
        self._clients = clients
        self._resend = resend
        self._max_attempts = max_attempts
        self._pending: list[QueuedMessage] = []
        self._states: dict[str, MessageState] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def pending(self) -> list[QueuedMessage]:
        """Copy of the in-memory queue, FIFO."""
        return list(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    def state_of(self, message_id: str) -> Optional[MessageState]:
        return self._states.get(message_id)

    async def reconcile(self) -> int:
        """Rebuild the in-memory mirror from durable storage."""
        async with self._db.connection() as conn:
            stored = await OfflineMessageRepository(conn).list_all()
        in_flight = {mid for mid, s in self._states.items() if s == MessageState.SENDING}
        self._pending = [m for m in stored if m.id not in in_flight]
        for msg in self._pending:
            self._states[msg.id] = MessageState.PENDING
        logger.info("Reconciled offline queue: %d message(s)", len(self._pending))
        return len(self._pending)

    async def enqueue(self, payload: dict[str, Any]) -> QueuedMessage:
        """Persist a message for later replay and return it.

        Raises:
            QueueStorageError: The durable write failed; nothing was queued.
        """
        message = QueuedMessage.create(payload)
        try:
            async with self._db.connection() as conn:
                await OfflineMessageRepository(conn).insert(message)
        except sqlite3.Error as exc:
            raise QueueStorageError(
                "Failed to persist offline message", {"reason": str(exc)},
            ) from exc
        self._pending.append(message)
        self._states[message.id] = MessageState.PENDING
        logger.info(
            "Queued offline message %s session=%s", message.id, message.session_id,
        )
        return message

    async def drain(self) -> DrainReport:
        """Replay every message queued at the time of the call.

        Messages enqueued while the pass runs wait for the next one.
        """
        report = DrainReport()
        if not self._pending:
            return report
        snapshot = self._pending
        self._pending = []
        logger.info("Draining %d offline message(s)", len(snapshot))

        remaining = list(snapshot)
        try:
            while remaining:
                message = remaining[0]
                await self._replay(message, report)
                remaining.pop(0)
        finally:
            # Storage failure mid-pass: unprocessed messages stay queued.
            if remaining:
                self._pending = remaining + self._pending
                for msg in remaining:
                    self._states[msg.id] = MessageState.PENDING
        return report

    async def _replay(self, message: QueuedMessage, report: DrainReport) -> None:
        self._states[message.id] = MessageState.SENDING
        error: Optional[str] = None
        try:
            await self._resend(message)
            delivered = True
        except (NetworkError, DeliveryError) as exc:
            delivered = False
            error = str(exc)

        step = advance(message, delivered, self._max_attempts)
        async with self._db.connection() as conn:
            repo = OfflineMessageRepository(conn)
            if step.state == MessageState.FAILED_RETRYABLE:
                await repo.update_retry_count(message.id, step.message.retry_count)
            else:
                await repo.delete(message.id)

        if step.state == MessageState.SENT:
            self._states.pop(message.id, None)
            report.sent.append(message.id)
            logger.info("Delivered offline message %s", message.id)
            await self._clients.broadcast(
                QueuedMessageSent(message_id=message.id, success=True).to_wire()
            )
        elif step.state == MessageState.FAILED_RETRYABLE:
            self._states[message.id] = MessageState.PENDING
            self._pending.append(step.message)
            report.retrying.append(message.id)
            logger.info(
                "Replay of %s failed (attempt %d/%d): %s",
                message.id, step.message.retry_count, self._max_attempts, error,
            )
        else:
            self._states.pop(message.id, None)
            report.failed.append(message.id)
            logger.warning(
                "Dropping offline message %s after %d attempts: %s",
                message.id, step.message.retry_count, error,
            )
            await self._clients.broadcast(
                QueuedMessageSent(
                    message_id=message.id,
                    success=False,
                    error=f"Failed after {step.message.retry_count} attempts: {error}",
                ).to_wire()
            )

    def schedule_drain(self) -> asyncio.Task:
        """Start a drain in the background; failures are logged."""
        task = asyncio.get_running_loop().create_task(self._drain_logged())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _drain_logged(self) -> None:
        try:
            await self.drain()
        except Exception:
            logger.exception("Background drain failed")

    async def wait_idle(self) -> None:
        """Wait for every scheduled drain to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()
