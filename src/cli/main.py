"""Main CLI entry point for the edge worker."""

import typer
from rich.console import Console

from src.cli.commands.caches import caches_command
from src.cli.commands.push import keygen_command, push_command
from src.cli.commands.queue import queue_command
from src.cli.commands.serve import serve_command
from src.cli.commands.status import status_command

app = typer.Typer(
    name="inkhaven-worker",
    help="InkHaven edge worker - offline cache, message queue and push relay",
    no_args_is_help=True,
    add_completion=False,
)
console = Console()

_CONFIG_HELP = "YAML settings file (default: environment)"


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", "-h", "--host", help="Bind address"),
    port: int = typer.Option(8787, "-p", "--port", help="Bind port"),
    config: str = typer.Option(None, "-c", "--config", help=_CONFIG_HELP),
) -> None:
    """Run the worker in front of the upstream origin."""
    serve_command(host, port, config)


@app.command("status")
def status(
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
    config: str = typer.Option(None, "-c", "--config", help=_CONFIG_HELP),
) -> None:
    """Show version, caches and queue size."""
    status_command(json_flag, config)


@app.command("queue")
def queue(
    limit: int = typer.Option(50, "-l", "--limit", help="Max messages to show"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
    config: str = typer.Option(None, "-c", "--config", help=_CONFIG_HELP),
) -> None:
    """List messages waiting for connectivity."""
    queue_command(limit, json_flag, config)


@app.command("caches")
def caches(
    delete: str = typer.Option(None, "-d", "--delete", help="Delete the named cache"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
    config: str = typer.Option(None, "-c", "--config", help=_CONFIG_HELP),
) -> None:
    """List response caches."""
    caches_command(delete, json_flag, config)


@app.command("push-keygen")
def push_keygen(
    key: str = typer.Option("~/.inkhaven/push.key", "-k", "--key", help="Private key path"),
    force: bool = typer.Option(False, "-f", "--force", help="Overwrite an existing key"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Generate a push signing keypair."""
    keygen_command(key, force, json_flag)


@app.command("push")
def push(
    worker_url: str = typer.Option("http://127.0.0.1:8787", "-u", "--url", help="Worker base URL"),
    title: str = typer.Option(None, "-t", "--title"),
    body: str = typer.Option(None, "-b", "--body"),
    session_id: str = typer.Option(None, "-s", "--session", help="Chat session id"),
    key: str = typer.Option(None, "-k", "--key", help="Sign with this private key"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Deliver a test push notification to a running worker."""
    push_command(worker_url, title, body, session_id, key, json_flag)


def main() -> None:
    """Entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled[/yellow]")
        raise typer.Exit(130)
