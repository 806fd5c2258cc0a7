from datetime import datetime
from typing import Any, Dict, Literal

from pydantic import BaseModel, ConfigDict, Field

NotificationType = Literal["like", "superlike", "match"]


class NotificationEvent(BaseModel):
    """Payload handed to the notification sink."""

    model_config = ConfigDict(populate_by_name=True)

    recipient: str
    sender: str
    type: NotificationType
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)
    read: bool = False
    created_at: datetime = Field(alias="createdAt")


__all__ = ["NotificationEvent", "NotificationType"]
