"""Pydantic models for the worker's wire formats."""
from src.worker.models.messages import (
    NotificationClick,
    OnlineStatusChanged,
    QueuedMessageSent,
    parse_client_message,
)
from src.worker.models.notifications import NotificationAction, NotificationOptions
from src.worker.models.responses import (
    ClickRoutingResponse,
    ClientMessageAck,
    DrainReportResponse,
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    NotificationListResponse,
    OfflineResponse,
    QueuedResponse,
    StatusResponse,
)

__all__ = [
    "NotificationClick",
    "OnlineStatusChanged",
    "QueuedMessageSent",
    "parse_client_message",
    "NotificationAction",
    "NotificationOptions",
    "ClickRoutingResponse",
    "ClientMessageAck",
    "DrainReportResponse",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
    "NotificationListResponse",
    "OfflineResponse",
    "QueuedResponse",
    "StatusResponse",
]
