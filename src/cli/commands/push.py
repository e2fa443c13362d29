"""Push signing keys and test deliveries to a running worker."""

import asyncio
import json
from pathlib import Path

import httpx
import typer
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from rich.console import Console

from src.cli.output import format_error, format_success, json_output
from src.cli.utils import ConfigError, load_private_key, public_key_base64, save_private_key, sign_body
from src.worker.push_auth import SIGNATURE_HEADER

console = Console()

_HTTP_TIMEOUT = 15.0


def keygen_command(key_path: str, force: bool, json_flag: bool) -> None:
    """Generate the Ed25519 key a push sender signs deliveries with."""
    path = Path(key_path).expanduser()
    if path.exists() and not force:
        format_error(console, f"Key already exists at {path}", hint="Use --force to overwrite")
        raise typer.Exit(code=1)
    private_key = Ed25519PrivateKey.generate()
    save_private_key(path, private_key)
    public_key = public_key_base64(private_key)
    if json_flag:
        json_output(console, {"key_path": str(path), "public_key": public_key})
        return
    format_success(console, f"Push key written to {path}")
    console.print(f"[cyan]PUSH_PUBLIC_KEY=[/cyan]{public_key}")


async def _deliver(url: str, body: bytes, signature: str | None) -> httpx.Response:
    headers = {"Content-Type": "application/json"}
    if signature:
        headers[SIGNATURE_HEADER] = signature
    async with httpx.AsyncClient(timeout=_HTTP_TIMEOUT) as client:
        return await client.post(f"{url.rstrip('/')}/sw/push", content=body, headers=headers)


def push_command(
    worker_url: str,
    title: str | None,
    body_text: str | None,
    session_id: str | None,
    key_path: str | None,
    json_flag: bool,
) -> None:
    """Send one push delivery to a worker, signed when a key is given."""
    payload: dict = {}
    if title:
        payload["title"] = title
    if body_text:
        payload["body"] = body_text
    if session_id:
        payload["data"] = {"sessionId": session_id}
    raw = json.dumps(payload).encode("utf-8")

    signature = None
    if key_path:
        try:
            signature = sign_body(load_private_key(Path(key_path).expanduser()), raw)
        except ConfigError as e:
            format_error(console, str(e))
            raise typer.Exit(code=1)

    try:
        resp = asyncio.run(_deliver(worker_url, raw, signature))
    except httpx.ConnectError:
        format_error(console, f"Could not connect to worker at {worker_url}", hint="Is the worker running?")
        raise typer.Exit(code=3)
    except httpx.TimeoutException:
        format_error(console, "Worker request timed out")
        raise typer.Exit(code=3)

    if resp.status_code != 201:
        format_error(console, f"Worker returned {resp.status_code}: {resp.text}")
        raise typer.Exit(code=3)
    shown = resp.json()
    if json_flag:
        json_output(console, shown)
        return
    format_success(console, f"Notification shown: {shown['title']} ({shown['tag']})")
