"""Push delivery and notification interaction endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Body, Request, status
from pydantic import BaseModel

from src.worker.models.notifications import NotificationOptions
from src.worker.models.responses import ClickRoutingResponse, NotificationListResponse
from src.worker.push_auth import SIGNATURE_HEADER
from src.worker.worker import EdgeWorker

logger = logging.getLogger(__name__)


class ClickRequest(BaseModel):
    action: Optional[str] = None


def create_push_router(worker: EdgeWorker) -> APIRouter:
    """Create the push/notification router with the worker injected."""
    router = APIRouter()

    @router.post(
        "/sw/push",
        response_model=NotificationOptions,
        status_code=status.HTTP_201_CREATED,
        tags=["push"],
    )
    async def push(request: Request) -> NotificationOptions:
        """Receive a push delivery and display it.

        The body is read raw: a malformed payload still produces the
        default notification.
        """
        body = await request.body()
        worker.push_verifier.verify(body, request.headers.get(SIGNATURE_HEADER))
        return await worker.notifications.handle_push(body or None)

    @router.get(
        "/sw/notifications",
        response_model=NotificationListResponse,
        tags=["push"],
    )
    async def list_notifications() -> NotificationListResponse:
        shown = worker.notification_center.list()
        return NotificationListResponse(count=len(shown), notifications=shown)

    @router.post(
        "/sw/notifications/{tag}/click",
        response_model=ClickRoutingResponse,
        tags=["push"],
    )
    async def click(tag: str, body: Optional[ClickRequest] = Body(default=None)) -> ClickRoutingResponse:
        routing = await worker.notifications.handle_click(tag, body.action if body else None)
        return ClickRoutingResponse(routed=routing.routed, url=routing.url, client_id=routing.client_id)

    @router.post(
        "/sw/notifications/{tag}/close",
        status_code=status.HTTP_204_NO_CONTENT,
        tags=["push"],
    )
    async def close(tag: str) -> None:
        await worker.notifications.handle_close(tag)

    return router
