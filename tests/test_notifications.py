"""Tests for push display and notification click routing."""
import json

import pytest

from src.worker.clients import ClientRegistry
from src.worker.config import NotificationConfig
from src.worker.errors import NotificationNotFoundError
from src.worker.notifications import (
    NotificationCenter,
    NotificationHandler,
    build_notification,
    click_target,
)
from tests.conftest import ORIGIN, RecordingPage, WindowRecorder

CONFIG = NotificationConfig()


def _push(payload: dict) -> bytes:
    return json.dumps(payload).encode()


@pytest.fixture
def center() -> NotificationCenter:
    return NotificationCenter()


@pytest.fixture
def handler(center: NotificationCenter, clients: ClientRegistry) -> NotificationHandler:
    return NotificationHandler(center, clients, CONFIG, ORIGIN)


class TestBuildNotification:
    def test_title_only_keeps_default_body(self) -> None:
        shown = build_notification(_push({"title": "X"}), CONFIG)
        assert shown.title == "X"
        assert shown.body == "You have a new message"
        assert shown.tag == "inkhaven-message"
        assert [a.action for a in shown.actions] == ["reply", "view"]

    def test_empty_payload_uses_defaults(self) -> None:
        shown = build_notification(None, CONFIG)
        assert shown.title == "InkHaven Chat"
        assert shown.vibrate == [200, 100, 200]
        assert shown.data == {}

    def test_malformed_json_uses_defaults(self) -> None:
        assert build_notification(b"{not json", CONFIG).title == "InkHaven Chat"

    def test_non_object_uses_defaults(self) -> None:
        assert build_notification(b'["a", "b"]', CONFIG).title == "InkHaven Chat"

    def test_invalid_fields_use_defaults(self) -> None:
        shown = build_notification(_push({"title": "", "body": "hi"}), CONFIG)
        assert shown.title == "InkHaven Chat"
        assert shown.body == "You have a new message"

    def test_payload_overrides(self) -> None:
        shown = build_notification(
            _push({
                "title": "Ada",
                "body": "See you soon",
                "tag": "session-s1",
                "data": {"sessionId": "s1"},
                "requireInteraction": True,
            }),
            CONFIG,
        )
        assert shown.body == "See you soon"
        assert shown.tag == "session-s1"
        assert shown.session_id == "s1"
        assert shown.require_interaction is True

    def test_configured_defaults(self) -> None:
        config = NotificationConfig(title="Team Chat", body="Ping")
        shown = build_notification(None, config)
        assert (shown.title, shown.body) == ("Team Chat", "Ping")


class TestClickTarget:
    def test_reply_focuses_input(self) -> None:
        assert click_target("reply", "s1") == "/chat/s1?focus=input"

    def test_view_and_default(self) -> None:
        assert click_target("view", "s1") == "/chat/s1"
        assert click_target("default", "s1") == "/chat/s1"

    def test_without_session(self) -> None:
        assert click_target("view", None) == "/chat"

    def test_session_is_escaped(self) -> None:
        assert click_target("view", "a/b") == "/chat/a%2Fb"


class TestNotificationCenter:
    @pytest.mark.asyncio
    async def test_same_tag_replaces(self, center: NotificationCenter) -> None:
        await center.show(build_notification(_push({"title": "one"}), CONFIG))
        await center.show(build_notification(_push({"title": "two"}), CONFIG))
        assert [n.title for n in center.list()] == ["two"]

    @pytest.mark.asyncio
    async def test_close(self, center: NotificationCenter) -> None:
        await center.show(build_notification(None, CONFIG))
        assert center.close("inkhaven-message") is not None
        assert center.close("inkhaven-message") is None


class TestNotificationHandler:
    @pytest.mark.asyncio
    async def test_push_shows_notification(self, handler: NotificationHandler, center: NotificationCenter) -> None:
        shown = await handler.handle_push(_push({"title": "X"}))
        assert center.get("inkhaven-message") == shown

    @pytest.mark.asyncio
    async def test_click_focuses_open_page(
        self, handler: NotificationHandler, clients: ClientRegistry, center: NotificationCenter,
        windows: WindowRecorder,
    ) -> None:
        page = RecordingPage()
        client = clients.register(f"{ORIGIN}/chat/other", page.send)
        await handler.handle_push(_push({"title": "X", "data": {"sessionId": "s1"}}))

        routing = await handler.handle_click("inkhaven-message", "reply")

        assert routing.routed == "focused"
        assert routing.client_id == client.id
        assert client.focused
        assert page.frames == [{
            "type": "NOTIFICATION_CLICK",
            "action": "reply",
            "sessionId": "s1",
            "url": "/chat/s1?focus=input",
        }]
        assert center.list() == []
        assert windows.urls == []

    @pytest.mark.asyncio
    async def test_click_without_pages_opens_window(
        self, center: NotificationCenter, clients: ClientRegistry,
    ) -> None:
        opened: list[str] = []

        async def opener(url: str) -> None:
            opened.append(url)

        registry = ClientRegistry(window_opener=opener)
        handler = NotificationHandler(center, registry, CONFIG, ORIGIN)
        await handler.handle_push(_push({"data": {"sessionId": "s9"}}))

        routing = await handler.handle_click("inkhaven-message")

        assert routing.routed == "opened"
        assert routing.url == "/chat/s9"
        assert opened == ["/chat/s9"]

    @pytest.mark.asyncio
    async def test_click_skips_other_origins(
        self, handler: NotificationHandler, clients: ClientRegistry, windows: WindowRecorder,
    ) -> None:
        page = RecordingPage()
        clients.register("https://elsewhere.example.org/chat", page.send)
        await handler.handle_push(None)

        routing = await handler.handle_click("inkhaven-message", "view")

        assert routing.routed == "opened"
        assert page.frames == []
        assert windows.urls == ["/chat"]

    @pytest.mark.asyncio
    async def test_click_falls_back_when_page_is_gone(
        self, handler: NotificationHandler, clients: ClientRegistry,
    ) -> None:
        clients.register(f"{ORIGIN}/chat/s1", RecordingPage(fail=True).send)
        await handler.handle_push(None)

        routing = await handler.handle_click("inkhaven-message")

        assert routing.routed == "opened"
        assert len(clients) == 0

    @pytest.mark.asyncio
    async def test_click_unknown_tag(self, handler: NotificationHandler) -> None:
        with pytest.raises(NotificationNotFoundError):
            await handler.handle_click("missing")

    @pytest.mark.asyncio
    async def test_close_dismisses(self, handler: NotificationHandler, center: NotificationCenter) -> None:
        await handler.handle_push(_push({"data": {"sessionId": "s1"}}))
        closed = await handler.handle_close("inkhaven-message")
        assert closed.session_id == "s1"
        assert center.list() == []
        assert await handler.handle_close("inkhaven-message") is None
