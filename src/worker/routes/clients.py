"""Page connections and the page -> worker message channel."""
import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Query, WebSocket, WebSocketDisconnect, status

from src.worker.models.messages import parse_client_message
from src.worker.models.responses import ClientMessageAck, DrainReportResponse
from src.worker.worker import EdgeWorker

logger = logging.getLogger(__name__)


def create_clients_router(worker: EdgeWorker) -> APIRouter:
    """Create the client messaging router with the worker injected."""
    router = APIRouter()

    @router.websocket("/sw/clients")
    async def client_channel(
        websocket: WebSocket,
        url: Optional[str] = Query(default=None),
    ) -> None:
        """One open page. Outbound frames are pushed; inbound frames parsed."""
        await websocket.accept()
        # Only an accepted socket can receive broadcasts.
        client = worker.clients.register(url or worker.config.url_for("/"), websocket.send_json)
        try:
            while True:
                text = await websocket.receive_text()
                try:
                    message = parse_client_message(json.loads(text))
                except ValueError as exc:
                    # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors
                    logger.warning("Ignoring malformed frame from %s: %s", client.id, exc)
                    continue
                if message is None:
                    logger.info("Ignoring unknown frame from %s", client.id)
                    continue
                await worker.handle_client_message(message, source=client)
        except WebSocketDisconnect:
            pass
        finally:
            worker.clients.unregister(client.id)

    @router.post(
        "/sw/message",
        response_model=ClientMessageAck,
        status_code=status.HTTP_200_OK,
        tags=["clients"],
    )
    async def post_message(body: Any = Body(...)) -> ClientMessageAck:
        """Deliver a page message without a socket; drains run inline."""
        message = parse_client_message(body)
        if message is None:
            logger.info("Ignoring unknown message type %r", body.get("type") if isinstance(body, dict) else None)
            return ClientMessageAck(accepted=False)
        report = await worker.handle_client_message(message, wait=True)
        drain = None
        if report is not None:
            drain = DrainReportResponse(sent=report.sent, retrying=report.retrying, failed=report.failed)
        return ClientMessageAck(accepted=True, drain=drain)

    return router
