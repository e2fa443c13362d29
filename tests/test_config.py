"""Tests for worker configuration loading."""
import logging
from pathlib import Path

import pytest

from src.worker.config import (
    DEFAULT_PRECACHE_URLS,
    CacheConfig,
    QueueConfig,
    WorkerConfig,
    _parse_bool,
    load_config,
    load_config_from_env,
    load_config_from_file,
)

_ENV_KEYS = (
    "UPSTREAM_ORIGIN", "WORKER_VERSION", "CACHE_PREFIX", "PRECACHE_URLS", "OFFLINE_PAGE",
    "API_PREFIX", "MESSAGE_SEND_PATH", "QUEUE_MAX_ATTEMPTS", "DB_PATH", "NETWORK_TIMEOUT",
    "PUSH_PUBLIC_KEY", "PUSH_REQUIRE_SIGNATURE", "NOTIFY_TITLE", "NOTIFY_BODY", "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestCacheConfig:
    def test_names_embed_version(self) -> None:
        cfg = CacheConfig(version="3.0.0", prefix="inkhaven")
        assert cfg.static_name == "inkhaven-static-v3.0.0"
        assert cfg.dynamic_name == "inkhaven-dynamic-v3.0.0"
        assert cfg.umbrella_name == "inkhaven-chat-v3.0.0"
        assert cfg.valid_names == {cfg.static_name, cfg.dynamic_name, cfg.umbrella_name}

    def test_default_manifest(self) -> None:
        assert CacheConfig().precache_urls == DEFAULT_PRECACHE_URLS
        assert "/offline" in DEFAULT_PRECACHE_URLS


class TestWorkerConfig:
    def test_origin_trailing_slash_stripped(self) -> None:
        assert WorkerConfig(origin="https://chat.example.com/").origin == "https://chat.example.com"

    def test_origin_must_be_http(self) -> None:
        with pytest.raises(ValueError, match="origin"):
            WorkerConfig(origin="chat.example.com")

    def test_attempts_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="max_attempts"):
            WorkerConfig(origin="https://x.example", queue=QueueConfig(max_attempts=0))

    def test_url_for(self) -> None:
        cfg = WorkerConfig(origin="https://chat.example.com")
        assert cfg.url_for("/offline") == "https://chat.example.com/offline"
        assert cfg.url_for("api/messages") == "https://chat.example.com/api/messages"


class TestParseBool:
    @pytest.mark.parametrize("value", ["1", "true", "YES"])
    def test_truthy(self, value: str) -> None:
        assert _parse_bool(value, default=False) is True

    @pytest.mark.parametrize("value", ["0", "false", "No"])
    def test_falsy(self, value: str) -> None:
        assert _parse_bool(value, default=True) is False

    def test_unrecognised_uses_default(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            assert _parse_bool("maybe", default=True) is True
        assert "Unrecognised boolean value" in caplog.text


class TestLoadFromEnv:
    def test_missing_origin(self) -> None:
        with pytest.raises(ValueError, match="UPSTREAM_ORIGIN"):
            load_config_from_env()

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("UPSTREAM_ORIGIN", "https://chat.example.com")
        cfg = load_config_from_env()
        assert cfg.cache.version == "3.0.0"
        assert cfg.cache.prefix == "inkhaven"
        assert cfg.queue.max_attempts == 3
        assert cfg.queue.message_send_path == "/api/messages"
        assert cfg.db_path == Path("data/worker.db")
        assert cfg.notifications.title == "InkHaven Chat"
        assert cfg.push.public_key == ""

    def test_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("UPSTREAM_ORIGIN", "http://localhost:3000")
        monkeypatch.setenv("WORKER_VERSION", "4.1.0")
        monkeypatch.setenv("PRECACHE_URLS", "/, /offline ,/app.js")
        monkeypatch.setenv("QUEUE_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("NETWORK_TIMEOUT", "2.5")
        monkeypatch.setenv("NOTIFY_TITLE", "Team Chat")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        cfg = load_config_from_env()
        assert cfg.cache.static_name == "inkhaven-static-v4.1.0"
        assert cfg.cache.precache_urls == ("/", "/offline", "/app.js")
        assert cfg.queue.max_attempts == 5
        assert cfg.network_timeout == 2.5
        assert cfg.notifications.title == "Team Chat"
        assert cfg.log_level == "DEBUG"

    def test_require_signature_needs_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("UPSTREAM_ORIGIN", "https://chat.example.com")
        monkeypatch.setenv("PUSH_REQUIRE_SIGNATURE", "true")
        with pytest.raises(ValueError, match="PUSH_PUBLIC_KEY"):
            load_config_from_env()

    def test_offline_page_not_precached_warns(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture,
    ) -> None:
        monkeypatch.setenv("UPSTREAM_ORIGIN", "https://chat.example.com")
        monkeypatch.setenv("PRECACHE_URLS", "/")
        with caplog.at_level(logging.WARNING):
            load_config_from_env()
        assert "is not precached" in caplog.text


class TestLoadFromFile:
    def test_yaml_settings(self, tmp_path: Path) -> None:
        path = tmp_path / "worker.yaml"
        path.write_text(
            "upstream_origin: https://chat.example.com\n"
            "worker_version: 3.1.0\n"
            "precache_urls:\n  - /\n  - /offline\n"
            f"db_path: {tmp_path / 'w.db'}\n"
        )
        cfg = load_config_from_file(path)
        assert cfg.origin == "https://chat.example.com"
        assert cfg.cache.version == "3.1.0"
        assert cfg.cache.precache_urls == ("/", "/offline")
        assert cfg.db_path == tmp_path / "w.db"

    def test_env_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("UPSTREAM_ORIGIN", "https://from-env.example.com")
        path = tmp_path / "worker.yaml"
        path.write_text("worker_version: 9.0.0\n")
        assert load_config_from_file(path).origin == "https://from-env.example.com"
        with pytest.raises(ValueError, match="UPSTREAM_ORIGIN"):
            load_config_from_file(path, env_fallback=False)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="not found"):
            load_config_from_file(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("upstream_origin: [unclosed\n")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config_from_file(path)

    def test_non_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config_from_file(path)

    def test_load_config_dispatch(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("UPSTREAM_ORIGIN", "https://chat.example.com")
        assert load_config().origin == "https://chat.example.com"
        path = tmp_path / "w.yaml"
        path.write_text("upstream_origin: https://file.example.com\n")
        assert load_config(path).origin == "https://file.example.com"
