"""Durable store for the offline message queue."""
import json
import aiosqlite
from typing import Optional

from src.state.models.message import QueuedMessage

_MAX_LIST_LIMIT = 1000


class OfflineMessageRepository:
    """Stores one record per queued message, keyed by message id."""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def insert(self, msg: QueuedMessage) -> None:
        """Insert a new queued message.

        Raises:
            sqlite3.IntegrityError: If a record with the same id exists.
        """
        await self._conn.execute(
            "INSERT INTO offline_messages (id, session_id, payload, timestamp, retry_count) "
            "VALUES (?, ?, ?, ?, ?)",
            (msg.id, msg.session_id, json.dumps(msg.payload), msg.timestamp, msg.retry_count),
        )
        await self._conn.commit()

    async def get(self, message_id: str) -> Optional[QueuedMessage]:
        cursor = await self._conn.execute(
            "SELECT * FROM offline_messages WHERE id = ?", (message_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_message(row) if row else None

    async def list_all(self, limit: Optional[int] = None) -> list[QueuedMessage]:
        """All records in enqueue (FIFO) order."""
        if limit is not None and (not isinstance(limit, int) or limit < 1):
            raise ValueError(f"limit must be a positive integer, got {limit!r}")
        capped = min(limit, _MAX_LIST_LIMIT) if limit is not None else -1
        cursor = await self._conn.execute(
            "SELECT * FROM offline_messages ORDER BY timestamp ASC, rowid ASC LIMIT ?",
            (capped,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_message(r) for r in rows]

    async def update_retry_count(self, message_id: str, retry_count: int) -> bool:
        cursor = await self._conn.execute(
            "UPDATE offline_messages SET retry_count = ? WHERE id = ?",
            (retry_count, message_id),
        )
        await self._conn.commit()
        return cursor.rowcount > 0

    async def delete(self, message_id: str) -> bool:
        cursor = await self._conn.execute(
            "DELETE FROM offline_messages WHERE id = ?", (message_id,),
        )
        await self._conn.commit()
        return cursor.rowcount > 0

    async def count(self) -> int:
        cursor = await self._conn.execute("SELECT COUNT(*) FROM offline_messages")
        return (await cursor.fetchone())[0]

    @staticmethod
    def _row_to_message(row: aiosqlite.Row) -> QueuedMessage:
        return QueuedMessage(
            id=row["id"],
            payload=json.loads(row["payload"]),
            timestamp=row["timestamp"],
            retry_count=row["retry_count"],
        )
