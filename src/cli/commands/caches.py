"""Inspect and delete response caches."""

import asyncio

import typer
from rich.console import Console

from src.cli.output import format_error, format_success, format_table, json_output
from src.cli.utils import ConfigError, resolve_config
from src.state import CacheInfo, CacheStorage, DatabaseManager
from src.worker.config import WorkerConfig

console = Console()


async def _list_caches(config: WorkerConfig) -> list[CacheInfo]:
    db = DatabaseManager(config.db_path)
    await db.initialize()
    return await CacheStorage(db).info()


async def _delete_cache(config: WorkerConfig, name: str) -> bool:
    db = DatabaseManager(config.db_path)
    await db.initialize()
    return await CacheStorage(db).delete(name)


def caches_command(delete: str | None, json_flag: bool, config_path: str | None) -> None:
    """List caches, or delete one by name."""
    try:
        config = resolve_config(config_path)
    except ConfigError as e:
        format_error(console, str(e), hint="Set UPSTREAM_ORIGIN or pass --config")
        raise typer.Exit(code=1)

    if delete:
        try:
            deleted = asyncio.run(_delete_cache(config, delete))
        except Exception as e:
            format_error(console, f"Failed to delete cache: {e}")
            raise typer.Exit(code=1)
        if json_flag:
            json_output(console, {"name": delete, "deleted": deleted})
        elif deleted:
            format_success(console, f"Deleted cache {delete}")
        else:
            format_error(console, f"Cache {delete} not found")
        if not deleted:
            raise typer.Exit(code=5)
        return

    try:
        caches = asyncio.run(_list_caches(config))
    except Exception as e:
        format_error(console, f"Failed to list caches: {e}")
        raise typer.Exit(code=1)

    if json_flag:
        json_output(console, {"count": len(caches), "caches": caches})
        return
    rows = [(c.name, c.entry_count, c.created_at.strftime("%Y-%m-%d %H:%M")) for c in caches]
    format_table(console, "Caches", ["Name", "Entries", "Created"], rows, empty_message="No caches")
