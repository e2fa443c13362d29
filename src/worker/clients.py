"""Registry of open pages connected to the worker."""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

SendFn = Callable[[dict[str, Any]], Awaitable[None]]
WindowOpener = Callable[[str], Awaitable[None]]


@dataclass
class WindowClient:
    """One open page instance.

    ``controlled`` pages are the ones this worker version serves; pages
    that connected before activation become controlled on ``claim()``.
    """

    url: str
    send: SendFn
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    focused: bool = False
    controlled: bool = False

    async def post_message(self, message: dict[str, Any]) -> None:
        await self.send(message)


class ClientRegistry:
    def __init__(self, window_opener: Optional[WindowOpener] = None) -> None:
        self._clients: dict[str, WindowClient] = {}
        self._claimed = False
        self._window_opener = window_opener

    def register(self, url: str, send: SendFn) -> WindowClient:
        client = WindowClient(url=url, send=send, controlled=self._claimed)
        self._clients[client.id] = client
        logger.info("Client connected: id=%s url=%s", client.id, url)
        return client

    def unregister(self, client_id: str) -> None:
        if self._clients.pop(client_id, None) is not None:
            logger.info("Client disconnected: id=%s", client_id)

    def get(self, client_id: str) -> Optional[WindowClient]:
        return self._clients.get(client_id)

    def match_all(self, include_uncontrolled: bool = False) -> list[WindowClient]:
        """Connected pages in connection order."""
        return [
            c for c in self._clients.values()
            if include_uncontrolled or c.controlled
        ]

    def __len__(self) -> int:
        return len(self._clients)

    async def claim(self) -> int:
        """Take control of every connected page without a reload."""
        self._claimed = True
        for client in self._clients.values():
            client.controlled = True
        logger.info("Claimed %d client(s)", len(self._clients))
        return len(self._clients)

    async def focus(self, client: WindowClient) -> WindowClient:
        for other in self._clients.values():
            other.focused = other.id == client.id
        return client

    async def post_message(self, client: WindowClient, message: dict[str, Any]) -> bool:
        """Deliver to one page; a page whose connection is gone is dropped."""
        try:
            await client.post_message(message)
            return True
        except Exception as exc:
            logger.warning("Dropping client %s after failed send: %s", client.id, exc)
            self.unregister(client.id)
            return False

    async def broadcast(self, message: dict[str, Any]) -> int:
        """Deliver to every controlled page. Returns the delivery count."""
        delivered = 0
        for client in self.match_all():
            if await self.post_message(client, message):
                delivered += 1
        return delivered

    async def open_window(self, url: str) -> None:
        if self._window_opener is None:
            logger.info("No window opener configured; requested window at %s", url)
            return
        await self._window_opener(url)
