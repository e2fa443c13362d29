"""List messages waiting in the offline queue."""

import asyncio
from datetime import datetime, timezone

import typer
from rich.console import Console

from src.cli.output import format_error, format_table, json_output
from src.cli.utils import ConfigError, resolve_config
from src.state import DatabaseManager, OfflineMessageRepository, QueuedMessage
from src.worker.config import WorkerConfig

console = Console()


async def _list_queued(config: WorkerConfig, limit: int) -> list[QueuedMessage]:
    db = DatabaseManager(config.db_path)
    await db.initialize()
    async with db.connection() as conn:
        return await OfflineMessageRepository(conn).list_all(limit=limit)


def _age(timestamp_ms: int) -> str:
    queued_at = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    seconds = int((datetime.now(timezone.utc) - queued_at).total_seconds())
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    return f"{seconds // 3600}h"


def queue_command(limit: int, json_flag: bool, config_path: str | None) -> None:
    """Show queued messages, oldest first."""
    if limit < 1:
        format_error(console, "--limit must be at least 1")
        raise typer.Exit(code=2)
    try:
        config = resolve_config(config_path)
        messages = asyncio.run(_list_queued(config, limit))
    except ConfigError as e:
        format_error(console, str(e), hint="Set UPSTREAM_ORIGIN or pass --config")
        raise typer.Exit(code=1)
    except Exception as e:
        format_error(console, f"Failed to read queue: {e}")
        raise typer.Exit(code=1)

    if json_flag:
        json_output(console, {"count": len(messages), "messages": [m.to_record() for m in messages]})
        return

    rows = [
        (
            m.id,
            m.session_id or "-",
            f"{m.retry_count}/{config.queue.max_attempts}",
            _age(m.timestamp),
            str(m.content or "")[:40],
        )
        for m in messages
    ]
    format_table(
        console, "Offline Queue", ["ID", "Session", "Attempts", "Age", "Content"], rows,
        empty_message="Offline queue is empty",
    )
