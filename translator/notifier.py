"""
Client notifications for finished jobs.

Delivery is best effort: a job's outcome never depends on whether its
notification was delivered.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Optional, Protocol

import redis.asyncio as redis
import structlog

from shared.schemas import NotificationEvent

logger = structlog.get_logger()


class Notifier(Protocol):
    async def notify(
        self, handle: Optional[str], event: NotificationEvent, payload: Dict[str, Any]
    ) -> None: ...


class RedisNotifier:
    """Publishes events on the Redis channel ``<prefix>:<handle>``."""

    def __init__(self, redis_client: redis.Redis, channel_prefix: str):
        self.redis = redis_client
        self.channel_prefix = channel_prefix

    def channel_for(self, handle: str) -> str:
        return f"{self.channel_prefix}:{handle}"

    async def notify(
        self, handle: Optional[str], event: NotificationEvent, payload: Dict[str, Any]
    ) -> None:
        if not handle:
            return

        channel = self.channel_for(handle)
        message = json.dumps({"event": event.value, "data": payload})
        try:
            await self.redis.publish(channel, message)
        except Exception as e:
            logger.error(
                "Failed to publish notification",
                channel=channel,
                notification_event=event.value,
                error=str(e),
            )


class LoggingNotifier:
    """Notifier for local runs: events are only logged."""

    async def notify(
        self, handle: Optional[str], event: NotificationEvent, payload: Dict[str, Any]
    ) -> None:
        logger.info("Notification", handle=handle, notification_event=event.value, **payload)
