"""Response models for worker endpoints."""
from typing import Annotated, Literal, Optional, Any
from pydantic import BaseModel, ConfigDict, Field
from src.worker.models.notifications import NotificationOptions


class QueuedResponse(BaseModel):
    """Synthetic 202 body for a message send accepted while offline."""

    model_config = ConfigDict(populate_by_name=True)

    success: Literal[True] = True
    queued: Literal[True] = True
    message_id: Annotated[str, Field(alias="messageId")]
    message: str = "Message queued for delivery when online"


class OfflineResponse(BaseModel):
    error: Literal["offline"] = "offline"
    message: str = "You are offline and this data is not cached"


class HealthResponse(BaseModel):
    status: Annotated[Literal["healthy", "degraded"], Field()]
    state: Annotated[str, Field()]
    version: Annotated[str, Field()]
    queue_length: Annotated[int, Field(ge=0)]
    timestamp: Annotated[str, Field()]
    message: Optional[str] = None


class StatusResponse(BaseModel):
    version: str
    state: str
    origin: str
    caches: list[str]
    queued_messages: int
    queued_message_ids: list[str]
    connected_clients: int


class DrainReportResponse(BaseModel):
    sent: list[str]
    retrying: list[str]
    failed: list[str]


class ClientMessageAck(BaseModel):
    accepted: bool
    drain: Optional[DrainReportResponse] = None


class NotificationListResponse(BaseModel):
    count: int
    notifications: list[NotificationOptions]


class ClickRoutingResponse(BaseModel):
    routed: Literal["focused", "opened"]
    url: str
    client_id: Optional[str] = None


class ErrorDetail(BaseModel):
    code: Annotated[
        Literal[
            "INVALID_FORMAT",
            "INVALID_SIGNATURE",
            "NETWORK_ERROR",
            "STORAGE_ERROR",
            "INSTALL_FAILED",
            "NOT_FOUND",
            "INTERNAL_ERROR",
        ],
        Field(),
    ]
    message: Annotated[str, Field()]
    details: Optional[dict[str, Any]] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail
