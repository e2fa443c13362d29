"""Worker configuration."""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional
import os

import yaml

logger = logging.getLogger(__name__)

_RECOGNISED_BOOL_VALUES = frozenset(
    ("1", "true", "yes", "0", "false", "no")
)

DEFAULT_PRECACHE_URLS: tuple[str, ...] = (
    "/",
    "/offline",
    "/manifest.json",
    "/icons/icon-192x192.png",
    "/icons/icon-512x512.png",
)


@dataclass(frozen=True)
class CacheConfig:
    """Cache naming and install-time manifest.

    Cache names embed ``version``; bumping it makes the next activation
    delete every cache of the previous version.
    """

    version: str = "3.0.0"
    prefix: str = "inkhaven"
    precache_urls: tuple[str, ...] = DEFAULT_PRECACHE_URLS
    offline_page: str = "/offline"

    @property
    def static_name(self) -> str:
        return f"{self.prefix}-static-v{self.version}"

    @property
    def dynamic_name(self) -> str:
        return f"{self.prefix}-dynamic-v{self.version}"

    @property
    def umbrella_name(self) -> str:
        return f"{self.prefix}-chat-v{self.version}"

    @property
    def valid_names(self) -> frozenset[str]:
        return frozenset((self.static_name, self.dynamic_name, self.umbrella_name))


@dataclass(frozen=True)
class QueueConfig:
    api_prefix: str = "/api/"
    message_send_path: str = "/api/messages"
    max_attempts: int = 3


@dataclass(frozen=True)
class NotificationConfig:
    """Defaults merged under every push payload."""

    title: str = "InkHaven Chat"
    body: str = "You have a new message"
    icon: str = "/icons/icon-192x192.png"
    badge: str = "/icons/badge-72x72.png"
    tag: str = "inkhaven-message"
    vibrate: tuple[int, ...] = (200, 100, 200)


@dataclass(frozen=True)
class PushConfig:
    """Push delivery authentication.

    ``public_key``: base64 Ed25519 key of the push sender. Empty disables
    signature checks unless ``require_signature`` is set, in which case
    configuration fails.
    """

    public_key: str = ""
    require_signature: bool = False


@dataclass(frozen=True)
class WorkerConfig:
    origin: str
    cache: CacheConfig = field(default_factory=CacheConfig)
    queue: QueueConfig = field(default_factory=QueueConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    push: PushConfig = field(default_factory=PushConfig)
    db_path: Path = field(default_factory=lambda: Path("data/worker.db"))
    network_timeout: float = 30.0
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not self.origin.startswith(("http://", "https://")):
            raise ValueError("origin must be an absolute http(s) URL")
        object.__setattr__(self, "origin", self.origin.rstrip("/"))
        if self.queue.max_attempts < 1:
            raise ValueError("queue.max_attempts must be at least 1")

    def url_for(self, path: str) -> str:
        """Absolute URL on the application origin."""
        return f"{self.origin}{path if path.startswith('/') else '/' + path}"


def _parse_bool(value: str, default: bool) -> bool:
    """Parse a boolean setting with explicit default.

    Recognises ``true/1/yes`` and ``false/0/no`` (case-insensitive).
    Returns *default* when the value is empty or unset.
    Logs a warning and returns *default* for unrecognised values.
    """
    if not value:
        return default
    normalised = value.lower()
    if normalised not in _RECOGNISED_BOOL_VALUES:
        logger.warning(
            "Unrecognised boolean value %r, using default %s. "
            "Expected one of: true/1/yes or false/0/no.",
            value,
            default,
        )
        return default
    return normalised in ("1", "true", "yes")


def _split_urls(value: str) -> tuple[str, ...]:
    return tuple(u.strip() for u in value.split(",") if u.strip())


def _build_config(get: Mapping[str, Any]) -> WorkerConfig:
    """Build a WorkerConfig from flat UPPER_CASE settings."""
    origin = get.get("UPSTREAM_ORIGIN")
    if not origin:
        raise ValueError("Missing: UPSTREAM_ORIGIN")

    precache_raw = get.get("PRECACHE_URLS")
    if isinstance(precache_raw, (list, tuple)):
        precache = tuple(str(u) for u in precache_raw)
    elif precache_raw:
        precache = _split_urls(str(precache_raw))
    else:
        precache = DEFAULT_PRECACHE_URLS
    offline_page = str(get.get("OFFLINE_PAGE", "/offline"))
    if offline_page not in precache:
        logger.warning(
            "OFFLINE_PAGE %s is not precached; offline navigations will fail",
            offline_page,
        )

    push_key = str(get.get("PUSH_PUBLIC_KEY", "") or "")
    require_signature = _parse_bool(
        str(get.get("PUSH_REQUIRE_SIGNATURE", "") or ""), default=False
    )
    if require_signature and not push_key:
        raise ValueError("PUSH_PUBLIC_KEY required when PUSH_REQUIRE_SIGNATURE is set")
    if not push_key:
        logger.warning(
            "No PUSH_PUBLIC_KEY set -- push deliveries are accepted unsigned."
        )

    notify_defaults = NotificationConfig()
    return WorkerConfig(
        origin=str(origin),
        cache=CacheConfig(
            version=str(get.get("WORKER_VERSION", "3.0.0")),
            prefix=str(get.get("CACHE_PREFIX", "inkhaven")),
            precache_urls=precache,
            offline_page=offline_page,
        ),
        queue=QueueConfig(
            api_prefix=str(get.get("API_PREFIX", "/api/")),
            message_send_path=str(get.get("MESSAGE_SEND_PATH", "/api/messages")),
            max_attempts=int(get.get("QUEUE_MAX_ATTEMPTS", "3")),
        ),
        notifications=NotificationConfig(
            title=str(get.get("NOTIFY_TITLE", notify_defaults.title)),
            body=str(get.get("NOTIFY_BODY", notify_defaults.body)),
        ),
        push=PushConfig(public_key=push_key, require_signature=require_signature),
        db_path=Path(str(get.get("DB_PATH", "data/worker.db"))),
        network_timeout=float(get.get("NETWORK_TIMEOUT", "30.0")),
        log_level=str(get.get("LOG_LEVEL", "INFO")).upper(),
    )


def load_config_from_env() -> WorkerConfig:
    return _build_config(os.environ)


def load_config_from_file(path: Path, env_fallback: bool = True) -> WorkerConfig:
    """Load settings from a YAML mapping of the same UPPER_CASE keys.

    Keys missing from the file fall back to the environment when
    *env_fallback* is set.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise ValueError(f"Config file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    settings: dict[str, Any] = dict(os.environ) if env_fallback else {}
    settings.update({str(k).upper(): v for k, v in data.items() if v is not None})
    return _build_config(settings)


def load_config(path: Optional[Path] = None) -> WorkerConfig:
    if path is not None:
        return load_config_from_file(path)
    return load_config_from_env()
