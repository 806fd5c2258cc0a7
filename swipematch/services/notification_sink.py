"""Fire-and-forget notification delivery for like and match events."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from ..config import get_settings
from ..db import get_db
from ..models.notification import NotificationEvent, NotificationType
from ..models.user import UserDocument
from ..redis_bus import publish as redis_publish
from ..repositories.notification import NotificationRepository
from ..utils.timeutil import Clock, utcnow

LOGGER = logging.getLogger("uvicorn.error")

NOTIFICATIONS_TOPIC = "notifications"

Publisher = Callable[[str, Dict[str, Any]], Awaitable[Any]]

# Deliveries scheduled off the request path; tasks drop out of the set when done
_pending: Set["asyncio.Task[bool]"] = set()


class NotificationSink:
    """Stores each event and fans it out over Redis. Never raises to the caller.

    ``emit`` waits for delivery (bounded by the timeout); ``dispatch`` and the
    ``notify_*`` helpers schedule it in the background and return immediately.
    """

    def __init__(
        self,
        repository: NotificationRepository,
        *,
        timeout_seconds: float,
        publisher: Optional[Publisher] = redis_publish,
        clock: Clock = utcnow,
    ) -> None:
        self._repository = repository
        self._timeout = timeout_seconds
        self._publisher = publisher
        self._clock = clock

    async def emit(
        self,
        *,
        recipient: str,
        sender: str,
        type: NotificationType,
        message: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> bool:
        event = NotificationEvent(
            recipient=recipient,
            sender=sender,
            type=type,
            message=message,
            data=data or {},
            created_at=self._clock(),
        )
        try:
            await asyncio.wait_for(self._deliver(event), timeout=self._timeout)
        except Exception as exc:
            LOGGER.warning(
                "Notification delivery failed type=%s recipient=%s: %r",
                event.type,
                event.recipient,
                exc,
            )
            return False
        return True

    async def _deliver(self, event: NotificationEvent) -> None:
        notification_id = await self._repository.insert(event)
        if self._publisher is not None:
            payload = event.model_dump(mode="json", by_alias=True)
            payload["id"] = str(notification_id)
            await self._publisher(NOTIFICATIONS_TOPIC, payload)

    def dispatch(self, **kwargs: Any) -> "asyncio.Task[bool]":
        task = asyncio.create_task(self.emit(**kwargs))
        _pending.add(task)
        task.add_done_callback(_pending.discard)
        return task

    def notify_liked(self, *, sender: UserDocument, recipient_id: str, action: str) -> "asyncio.Task[bool]":
        name = sender.name or "Someone"
        message = f"{name} super liked you!" if action == "superlike" else f"{name} liked you!"
        return self.dispatch(
            recipient=recipient_id,
            sender=sender.user_id,
            type="superlike" if action == "superlike" else "like",
            message=message,
            data={"senderName": sender.name, "senderPhoto": sender.primary_photo_url()},
        )

    def notify_matched(self, *, recipient_id: str, other: UserDocument, match_id: str) -> "asyncio.Task[bool]":
        return self.dispatch(
            recipient=recipient_id,
            sender=other.user_id,
            type="match",
            message=f"It's a match with {other.name or 'someone new'}!",
            data={"matchId": match_id},
        )


async def drain_pending_notifications() -> None:
    """Wait for every scheduled delivery. Used on shutdown."""
    while _pending:
        await asyncio.gather(*list(_pending), return_exceptions=True)


def get_notification_sink() -> NotificationSink:
    settings = get_settings()
    return NotificationSink(
        NotificationRepository(get_db()),
        timeout_seconds=max(settings.notification_timeout_ms, 1) / 1000.0,
    )


__all__ = [
    "NOTIFICATIONS_TOPIC",
    "NotificationSink",
    "drain_pending_notifications",
    "get_notification_sink",
]
