"""Configuration loading for CLI commands."""

from pathlib import Path
from typing import Optional

from src.worker.config import WorkerConfig, load_config


class ConfigError(Exception):
    """Configuration is missing or invalid."""

    pass


def resolve_config(config_path: Optional[str] = None) -> WorkerConfig:
    """Load worker settings from a YAML file, or the environment.

    Raises:
        ConfigError: Settings are missing or invalid.
    """
    try:
        return load_config(Path(config_path) if config_path else None)
    except ValueError as e:
        raise ConfigError(str(e)) from e
