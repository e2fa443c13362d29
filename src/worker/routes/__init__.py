"""Route handlers for the edge worker."""
from src.worker.routes.clients import create_clients_router
from src.worker.routes.fetch import create_fetch_router
from src.worker.routes.health import create_health_router
from src.worker.routes.push import create_push_router
__all__ = [
    "create_clients_router",
    "create_fetch_router",
    "create_health_router",
    "create_push_router",
]
