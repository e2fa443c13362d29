"""Push signing key files."""

import base64
from pathlib import Path

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)

from .config import ConfigError


def public_key_base64(private_key: Ed25519PrivateKey) -> str:
    raw = private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    return base64.b64encode(raw).decode("utf-8")


def save_private_key(path: Path, private_key: Ed25519PrivateKey) -> None:
    """Write the raw 32-byte key, readable by the owner only."""
    path.parent.mkdir(parents=True, exist_ok=True)
    key_bytes = private_key.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
    with open(path, "wb") as f:
        f.write(key_bytes)
    path.chmod(0o600)


def load_private_key(path: Path) -> Ed25519PrivateKey:
    if not path.exists():
        raise ConfigError(f"Key file not found at {path}. Run 'push-keygen' first.")
    with open(path, "rb") as f:
        key_bytes = f.read()
    try:
        return Ed25519PrivateKey.from_private_bytes(key_bytes)
    except ValueError as e:
        raise ConfigError(f"Invalid key file: {e}") from e


def sign_body(private_key: Ed25519PrivateKey, body: bytes) -> str:
    """Base64 signature for the ``X-Push-Signature`` header."""
    return base64.b64encode(private_key.sign(body)).decode("utf-8")
