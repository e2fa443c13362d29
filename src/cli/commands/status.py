"""Show worker version, caches and queue size from the local database."""

import asyncio

import typer
from rich.console import Console

from src.cli.output import format_error, format_table, format_warning, json_output
from src.cli.utils import ConfigError, resolve_config
from src.state import CacheStorage, DatabaseManager, OfflineMessageRepository
from src.worker.config import WorkerConfig

console = Console()


async def _get_status(config: WorkerConfig) -> dict:
    db = DatabaseManager(config.db_path)
    await db.initialize()
    caches = await CacheStorage(db).info()
    async with db.connection() as conn:
        queued = await OfflineMessageRepository(conn).count()

    valid = config.cache.valid_names
    return {
        "version": config.cache.version,
        "origin": config.origin,
        "db_path": str(config.db_path),
        "queued_messages": queued,
        "caches": [
            {"name": c.name, "entries": c.entry_count, "stale": c.name not in valid}
            for c in caches
        ],
    }


def status_command(json_flag: bool, config_path: str | None) -> None:
    """Show worker configuration and stored state."""
    try:
        config = resolve_config(config_path)
        status = asyncio.run(_get_status(config))
    except ConfigError as e:
        if json_flag:
            json_output(console, {"status": "not_configured", "error": str(e)})
        else:
            format_error(console, str(e), hint="Set UPSTREAM_ORIGIN or pass --config")
        raise typer.Exit(code=1)
    except Exception as e:
        format_error(console, f"Failed to get status: {e}")
        raise typer.Exit(code=1)

    if json_flag:
        json_output(console, {"status": "configured", **status})
        return

    console.print("[bold]Worker Status[/bold]")
    console.print()
    console.print(f"[cyan]Version:[/cyan]  {status['version']}")
    console.print(f"[cyan]Origin:[/cyan]   {status['origin']}")
    console.print(f"[cyan]Database:[/cyan] {status['db_path']}")
    console.print(f"[cyan]Queued:[/cyan]   {status['queued_messages']}")
    console.print()
    rows = [
        (c["name"], c["entries"], "stale" if c["stale"] else "current")
        for c in status["caches"]
    ]
    format_table(console, "Caches", ["Name", "Entries", "Version"], rows, empty_message="No caches")
    stale = sum(1 for c in status["caches"] if c["stale"])
    if stale:
        format_warning(console, f"{stale} stale cache(s); removed on next worker start")
