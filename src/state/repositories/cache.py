"""Cache repository for named response caches."""
import json
import aiosqlite
from datetime import datetime, timezone
from typing import Optional

from src.state.models.cache import CachedResponse, CacheInfo


class CacheRepository:
    """Manages the ``caches`` and ``cache_entries`` tables.

    Deleting a cache cascades to its entries.
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_cache(self, name: str) -> bool:
        """Create a named cache if missing. Returns True when created."""
        cursor = await self._conn.execute(
            "INSERT OR IGNORE INTO caches (name, created_at) VALUES (?, ?)",
            (name, datetime.now(timezone.utc).isoformat()),
        )
        await self._conn.commit()
        return cursor.rowcount > 0

    async def has_cache(self, name: str) -> bool:
        cursor = await self._conn.execute("SELECT 1 FROM caches WHERE name = ?", (name,))
        return await cursor.fetchone() is not None

    async def cache_names(self) -> list[str]:
        """Names in creation order."""
        cursor = await self._conn.execute(
            "SELECT name FROM caches ORDER BY created_at ASC, rowid ASC"
        )
        return [row["name"] for row in await cursor.fetchall()]

    async def list_caches(self) -> list[CacheInfo]:
        cursor = await self._conn.execute(
            "SELECT c.name, c.created_at, COUNT(e.url) AS entry_count "
            "FROM caches c LEFT JOIN cache_entries e ON e.cache_name = c.name "
            "GROUP BY c.name ORDER BY c.created_at ASC, c.rowid ASC"
        )
        return [
            CacheInfo(
                name=row["name"],
                created_at=datetime.fromisoformat(row["created_at"]),
                entry_count=row["entry_count"],
            )
            for row in await cursor.fetchall()
        ]

    async def delete_cache(self, name: str) -> bool:
        cursor = await self._conn.execute("DELETE FROM caches WHERE name = ?", (name,))
        await self._conn.commit()
        return cursor.rowcount > 0

    async def put(self, entry: CachedResponse) -> None:
        """Store an entry, replacing any previous response for the URL."""
        await self._conn.execute(
            "INSERT OR REPLACE INTO cache_entries "
            "(cache_name, url, status, headers, body, stored_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                entry.cache_name,
                entry.url,
                entry.status,
                json.dumps(entry.headers),
                entry.body,
                (entry.stored_at or datetime.now(timezone.utc)).isoformat(),
            ),
        )
        await self._conn.commit()

    async def put_many(self, entries: list[CachedResponse]) -> None:
        """Store several entries in one transaction.

        Missing caches are created in the same transaction, so a failure
        leaves neither the cache nor any of its entries behind.
        """
        now = datetime.now(timezone.utc).isoformat()
        names = list(dict.fromkeys(e.cache_name for e in entries))
        try:
            await self._conn.executemany(
                "INSERT OR IGNORE INTO caches (name, created_at) VALUES (?, ?)",
                [(name, now) for name in names],
            )
            await self._conn.executemany(
                "INSERT OR REPLACE INTO cache_entries "
                "(cache_name, url, status, headers, body, stored_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                [
                    (e.cache_name, e.url, e.status, json.dumps(e.headers), e.body,
                     (e.stored_at.isoformat() if e.stored_at else now))
                    for e in entries
                ],
            )
        except Exception:
            await self._conn.rollback()
            raise
        await self._conn.commit()

    async def get(self, cache_name: str, url: str) -> Optional[CachedResponse]:
        cursor = await self._conn.execute(
            "SELECT * FROM cache_entries WHERE cache_name = ? AND url = ?",
            (cache_name, url),
        )
        row = await cursor.fetchone()
        return self._row_to_entry(row) if row else None

    async def match_any(self, url: str) -> Optional[CachedResponse]:
        """First entry for ``url`` across caches, oldest cache first."""
        cursor = await self._conn.execute(
            "SELECT e.* FROM cache_entries e JOIN caches c ON c.name = e.cache_name "
            "WHERE e.url = ? ORDER BY c.created_at ASC, c.rowid ASC LIMIT 1",
            (url,),
        )
        row = await cursor.fetchone()
        return self._row_to_entry(row) if row else None

    async def urls(self, cache_name: str) -> list[str]:
        cursor = await self._conn.execute(
            "SELECT url FROM cache_entries WHERE cache_name = ? ORDER BY stored_at ASC",
            (cache_name,),
        )
        return [row["url"] for row in await cursor.fetchall()]

    async def delete_entry(self, cache_name: str, url: str) -> bool:
        cursor = await self._conn.execute(
            "DELETE FROM cache_entries WHERE cache_name = ? AND url = ?",
            (cache_name, url),
        )
        await self._conn.commit()
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_entry(row: aiosqlite.Row) -> CachedResponse:
        return CachedResponse(
            cache_name=row["cache_name"],
            url=row["url"],
            status=row["status"],
            headers=json.loads(row["headers"]),
            body=bytes(row["body"]),
            stored_at=datetime.fromisoformat(row["stored_at"]),
        )
