"""CLI utilities."""

from .config import ConfigError, resolve_config
from .keys import load_private_key, public_key_base64, save_private_key, sign_body

__all__ = [
    "ConfigError",
    "resolve_config",
    "load_private_key",
    "public_key_base64",
    "save_private_key",
    "sign_body",
]
