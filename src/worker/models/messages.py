"""Page <-> worker messaging protocol.

Frames are JSON objects with a ``type`` discriminator and camelCase keys.
"""
from typing import Annotated, Any, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

ONLINE_STATUS_CHANGED = "ONLINE_STATUS_CHANGED"
QUEUED_MESSAGE_SENT = "QUEUED_MESSAGE_SENT"
NOTIFICATION_CLICK = "NOTIFICATION_CLICK"


class _Frame(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class OnlineStatusChanged(_Frame):
    """Page -> worker: connectivity transition seen by the page."""

    type: Literal["ONLINE_STATUS_CHANGED"] = ONLINE_STATUS_CHANGED
    is_online: Annotated[bool, Field(alias="isOnline")]


class QueuedMessageSent(_Frame):
    """Worker -> pages: replay outcome of one queued message."""

    type: Literal["QUEUED_MESSAGE_SENT"] = QUEUED_MESSAGE_SENT
    message_id: Annotated[str, Field(alias="messageId")]
    success: bool
    error: Optional[str] = None


class NotificationClick(_Frame):
    """Worker -> focused page: navigate in-app after a notification click."""

    type: Literal["NOTIFICATION_CLICK"] = NOTIFICATION_CLICK
    action: str
    session_id: Annotated[Optional[str], Field(alias="sessionId")] = None
    url: str


ClientMessage = Union[OnlineStatusChanged]

_INBOUND: dict[str, type[_Frame]] = {
    ONLINE_STATUS_CHANGED: OnlineStatusChanged,
}


def parse_client_message(data: Any) -> Optional[ClientMessage]:
    """Parse an inbound frame.

    Returns None for frames without a known ``type``.

    Raises:
        pydantic.ValidationError: Known type with malformed fields.
    """
    if not isinstance(data, dict):
        return None
    model = _INBOUND.get(data.get("type"))
    if model is None:
        return None
    return model.model_validate(data)
