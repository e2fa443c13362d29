"""Notification models for push delivery and display."""
from typing import Annotated, Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class NotificationAction(BaseModel):
    action: Annotated[str, Field(min_length=1)]
    title: str
    icon: Optional[str] = None


class NotificationOptions(BaseModel):
    """A notification as displayed; push payload keys override defaults."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: Annotated[str, Field(min_length=1)]
    body: str
    icon: Optional[str] = None
    badge: Optional[str] = None
    tag: Annotated[str, Field(min_length=1)]
    vibrate: list[int] = Field(default_factory=list)
    actions: list[NotificationAction] = Field(default_factory=list)
    data: dict[str, Any] = Field(default_factory=dict)
    require_interaction: Annotated[bool, Field(alias="requireInteraction")] = False

    @property
    def session_id(self) -> Optional[str]:
        value = self.data.get("sessionId")
        return str(value) if value is not None else None
