"""
Notification service.
Records every workflow event as a Notification row and pushes it through the
configured delivery channel. Delivery is best-effort: nothing raised here
reaches the calling workflow.
"""

import logging
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from practicum.core.exceptions import NotFoundError
from practicum.core.integrations.notification_channels import NotificationChannel
from practicum.db.repositories.notification_repository import NotificationRepository
from practicum.models.notification import DeliveryStatus, Notification
from practicum.schemas.notification import (
    NotificationEvent,
    NotificationResponse,
    NotificationListResponse,
    MarkReadResponse,
)
from practicum.services.base_service import BaseService

logger = logging.getLogger(__name__)


class NotificationService(BaseService):
    """Notification port plus the recipient's inbox operations."""

    def __init__(self, session: AsyncSession, channel: Optional[NotificationChannel] = None):
        self.session = session
        self.notification_repo = NotificationRepository(session)
        if channel is None:
            from practicum.deps.di_container import get_container
            channel = get_container().notification_channel()
        self.channel = channel

    async def send(self, event: NotificationEvent) -> Optional[Notification]:
        """
        Persist the event, then deliver it.

        Returns the audit row, or None if it could not be written. Never raises.
        """
        try:
            notification = await self.notification_repo.create(
                user_id=event.recipient_user_id,
                kind=event.kind,
                title=event.title,
                message=event.message,
                related_entity_id=event.related_entity_id,
                related_entity_type=event.related_entity_type,
                priority=event.priority,
                event_metadata=event.metadata,
                delivery_status=DeliveryStatus.PENDING,
            )
            await self.session.commit()
        except Exception:
            logger.exception(
                "Failed to record notification",
                extra={"kind": event.kind.value, "recipient_user_id": str(event.recipient_user_id)},
            )
            await self._safe_rollback()
            return None

        notification_id = notification.id
        payload = {
            "id": str(notification_id),
            "recipient_user_id": str(event.recipient_user_id),
            "kind": event.kind.value,
            "title": event.title,
            "message": event.message,
            "related_entity_id": event.related_entity_id,
            "related_entity_type": event.related_entity_type,
            "priority": event.priority.value,
            "metadata": event.metadata,
        }
        delivery_status = DeliveryStatus.SENT
        delivery_error = None
        try:
            await self.channel.deliver(payload)
        except Exception as e:
            delivery_status = DeliveryStatus.FAILED
            delivery_error = f"{type(e).__name__}: {e}"[:2000]
            logger.warning(
                f"Notification delivery failed via {self.channel.name}: {e}",
                extra={"notification_id": str(notification_id), "kind": event.kind.value},
            )

        try:
            notification = await self.notification_repo.update(
                notification_id,
                delivery_status=delivery_status,
                delivery_error=delivery_error,
            )
            await self.session.commit()
        except Exception:
            logger.exception(
                "Failed to record notification delivery status",
                extra={"notification_id": str(notification_id)},
            )
            await self._safe_rollback()
            return None
        return notification

    async def dispatch(self, events: Iterable[NotificationEvent]) -> None:
        """Send each event independently."""
        for event in events:
            await self.send(event)

    async def _safe_rollback(self) -> None:
        try:
            await self.session.rollback()
        except Exception:
            logger.exception("Rollback after notification failure also failed")

    async def list_for_user(
        self,
        user_id: UUID,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 50,
    ) -> NotificationListResponse:
        items = await self.notification_repo.list_for_user(user_id, unread_only, skip, limit)
        unread = await self.notification_repo.count_unread(user_id)
        return NotificationListResponse(
            items=[NotificationResponse.model_validate(n) for n in items],
            total=len(items),
            unread=unread,
        )

    async def mark_read(self, notification_id: UUID, user_id: UUID) -> MarkReadResponse:
        updated = await self.notification_repo.mark_read(notification_id, user_id)
        if not updated:
            raise NotFoundError("Notification not found")
        await self.session.commit()
        return MarkReadResponse(updated=updated)

    async def mark_all_read(self, user_id: UUID) -> MarkReadResponse:
        updated = await self.notification_repo.mark_all_read(user_id)
        await self.session.commit()
        return MarkReadResponse(updated=updated)
