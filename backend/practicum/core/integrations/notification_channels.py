"""
Delivery channels for workflow notifications.
A channel takes an already-persisted notification and pushes it out. Channels
may raise; the notification service records the failure and moves on.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict
import logging

from practicum.core.integrations.http.http_client import HttpClient

logger = logging.getLogger(__name__)


class NotificationChannel(ABC):
    """Outbound delivery for a single notification payload."""

    name = "base"

    @abstractmethod
    async def deliver(self, payload: Dict[str, Any]) -> None:
        """Deliver the payload or raise."""


class LoggingChannel(NotificationChannel):
    """Writes notifications to the application log. Default for local runs."""

    name = "log"

    async def deliver(self, payload: Dict[str, Any]) -> None:
        logger.info(
            f"Notification {payload.get('kind')} for user {payload.get('recipient_user_id')}: {payload.get('title')}",
            extra={"notification": payload},
        )


class WebhookChannel(NotificationChannel):
    """POSTs the notification as JSON to a mail/push relay."""

    name = "webhook"

    def __init__(self, url: str, timeout: int = 10):
        self.url = url
        self.client = HttpClient(timeout=timeout)

    async def deliver(self, payload: Dict[str, Any]) -> None:
        await self.client.post(self.url, json=payload)

    async def close(self) -> None:
        await self.client.close()
