"""Run the edge worker."""

import typer
import uvicorn
from rich.console import Console

from src.cli.output import format_error
from src.cli.utils import ConfigError, resolve_config
from src.worker.app import create_app

console = Console()


def serve_command(host: str, port: int, config_path: str | None) -> None:
    """Start the worker under uvicorn until interrupted."""
    try:
        config = resolve_config(config_path)
    except ConfigError as e:
        format_error(console, str(e), hint="Set UPSTREAM_ORIGIN or pass --config")
        raise typer.Exit(code=1)

    console.print(
        f"[bold]Edge worker[/bold] v{config.cache.version} -> {config.origin} "
        f"on http://{host}:{port}"
    )
    uvicorn.run(create_app(config), host=host, port=port, log_level=config.log_level.lower())
