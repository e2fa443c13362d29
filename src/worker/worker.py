"""The edge worker: one object wiring caches, queue, clients and network."""
import logging
from typing import Optional

from src.client.transport import Network
from src.state.cache_storage import CacheStorage
from src.state.database import DatabaseManager
from src.worker.clients import ClientRegistry, WindowClient, WindowOpener
from src.worker.config import WorkerConfig
from src.worker.interceptor import FetchInterceptor
from src.worker.lifecycle import WorkerLifecycle
from src.worker.models.messages import ClientMessage, OnlineStatusChanged
from src.worker.notifications import NotificationCenter, NotificationHandler
from src.worker.offline_queue import DrainReport, HttpResender, OfflineMessageQueue
from src.worker.push_auth import PushVerifier

logger = logging.getLogger(__name__)


class EdgeWorker:
    def __init__(
        self,
        config: WorkerConfig,
        network: Optional[Network] = None,
        window_opener: Optional[WindowOpener] = None,
    ) -> None:
        self.config = config
        self.db = DatabaseManager(config.db_path)
        self.network = network or Network(timeout=config.network_timeout)
        self.clients = ClientRegistry(window_opener)
        self.caches = CacheStorage(self.db)
        self.queue = OfflineMessageQueue(
            self.db,
            self.clients,
            HttpResender(self.network, config.url_for(config.queue.message_send_path)),
            max_attempts=config.queue.max_attempts,
        )
        self.lifecycle = WorkerLifecycle(config, self.caches, self.network, self.clients)
        self.interceptor = FetchInterceptor(config, self.caches, self.network, self.queue)
        self.notification_center = NotificationCenter()
        self.notifications = NotificationHandler(
            self.notification_center, self.clients, config.notifications, config.origin,
        )
        self.push_verifier = PushVerifier.from_config(config.push.public_key)
        self.online: Optional[bool] = None

    async def start(self) -> None:
        """Open storage and network, restore the queue, install and activate."""
        await self.db.initialize()
        logger.info("Database initialized at %s", self.config.db_path)
        await self.network.open()
        await self.queue.reconcile()
        await self.lifecycle.start()
        logger.info(
            "Worker %s active for %s", self.config.cache.version, self.config.origin,
        )

    async def stop(self) -> None:
        await self.interceptor.close()
        await self.queue.close()
        await self.network.close()
        await self.db.close()

    async def handle_client_message(
        self,
        message: ClientMessage,
        source: Optional[WindowClient] = None,
        wait: bool = False,
    ) -> Optional[DrainReport]:
        """React to a page message.

        Going online triggers a drain: awaited when *wait* is set, else
        scheduled in the background.
        """
        if isinstance(message, OnlineStatusChanged):
            self.online = message.is_online
            logger.info(
                "Client %s reports %s",
                source.id if source else "-", "online" if message.is_online else "offline",
            )
            if not message.is_online:
                return None
            if wait:
                return await self.queue.drain()
            self.queue.schedule_drain()
        return None
