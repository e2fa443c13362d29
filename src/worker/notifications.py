"""Push notification display and click routing.

Push deliveries become displayed notifications; clicks are routed back to
an open page (focused, then told where to navigate) or to a new window.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

from pydantic import ValidationError

from src.worker.clients import ClientRegistry
from src.worker.config import NotificationConfig
from src.worker.errors import NotificationNotFoundError
from src.worker.models.messages import NotificationClick
from src.worker.models.notifications import NotificationOptions

logger = logging.getLogger(__name__)

REPLY_ACTION = "reply"
VIEW_ACTION = "view"


def default_notification(config: NotificationConfig) -> dict[str, Any]:
    return {
        "title": config.title,
        "body": config.body,
        "icon": config.icon,
        "badge": config.badge,
        "tag": config.tag,
        "vibrate": list(config.vibrate),
        "actions": [
            {"action": REPLY_ACTION, "title": "Reply"},
            {"action": VIEW_ACTION, "title": "View"},
        ],
        "data": {},
    }


def build_notification(data: Optional[bytes], config: NotificationConfig) -> NotificationOptions:
    """Merge a push payload over the defaults.

    An absent, non-JSON, non-object or invalid payload yields the defaults.
    """
    defaults = default_notification(config)
    if not data:
        return NotificationOptions.model_validate(defaults)
    try:
        payload = json.loads(data)
    except (ValueError, UnicodeDecodeError):
        logger.warning("Malformed push payload, using defaults")
        return NotificationOptions.model_validate(defaults)
    if not isinstance(payload, dict):
        logger.warning("Push payload is not an object, using defaults")
        return NotificationOptions.model_validate(defaults)
    try:
        return NotificationOptions.model_validate({**defaults, **payload})
    except ValidationError as exc:
        logger.warning("Invalid push payload fields, using defaults: %s", exc.error_count())
        return NotificationOptions.model_validate(defaults)


def click_target(action: str, session_id: Optional[str]) -> str:
    """In-app URL for a notification click."""
    base = f"/chat/{quote(session_id, safe='')}" if session_id else "/chat"
    if action == REPLY_ACTION:
        return f"{base}?focus=input"
    return base


@dataclass(frozen=True)
class ClickRouting:
    routed: str
    url: str
    client_id: Optional[str] = None


class NotificationCenter:
    """Notifications currently on screen, one per tag.

    Showing a notification with a tag already on screen replaces it.
    """

    def __init__(self) -> None:
        self._active: dict[str, NotificationOptions] = {}

    async def show(self, notification: NotificationOptions) -> None:
        self._active[notification.tag] = notification
        logger.info("Showing notification tag=%s title=%r", notification.tag, notification.title)

    def get(self, tag: str) -> Optional[NotificationOptions]:
        return self._active.get(tag)

    def close(self, tag: str) -> Optional[NotificationOptions]:
        return self._active.pop(tag, None)

    def list(self) -> list[NotificationOptions]:
        return list(self._active.values())


class NotificationHandler:
    def __init__(
        self,
        center: NotificationCenter,
        clients: ClientRegistry,
        config: NotificationConfig,
        origin: str,
    ) -> None:
        self._center = center
        self._clients = clients
        self._config = config
        self._origin = origin

    async def handle_push(self, data: Optional[bytes]) -> NotificationOptions:
        notification = build_notification(data, self._config)
        await self._center.show(notification)
        return notification

    async def handle_click(self, tag: str, action: Optional[str] = None) -> ClickRouting:
        """Close the notification and route the click to a page.

        Raises:
            NotificationNotFoundError: No notification with this tag is shown.
        """
        notification = self._center.close(tag)
        if notification is None:
            raise NotificationNotFoundError(f"No notification with tag {tag!r}")
        action = action or "default"
        session_id = notification.session_id
        url = click_target(action, session_id)

        for client in self._clients.match_all(include_uncontrolled=True):
            if not self._same_origin(client.url):
                continue
            await self._clients.focus(client)
            frame = NotificationClick(action=action, session_id=session_id, url=url)
            if await self._clients.post_message(client, frame.to_wire()):
                logger.info("Routed %s click to client %s url=%s", action, client.id, url)
                return ClickRouting(routed="focused", url=url, client_id=client.id)

        await self._clients.open_window(url)
        logger.info("Opened window for %s click url=%s", action, url)
        return ClickRouting(routed="opened", url=url)

    async def handle_close(self, tag: str) -> Optional[NotificationOptions]:
        notification = self._center.close(tag)
        session_id = notification.session_id if notification else None
        if session_id:
            logger.info("Notification %s dismissed for session %s", tag, session_id)
        else:
            logger.info("Notification %s dismissed", tag)
        return notification

    def _same_origin(self, url: str) -> bool:
        return url == self._origin or url.startswith(self._origin + "/")
