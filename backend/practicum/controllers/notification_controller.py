"""
Notification controller - the signed-in user's inbox.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from practicum.controllers.base_controller import BaseController
from practicum.models.user import User
from practicum.schemas.notification import MarkReadResponse, NotificationListResponse
from practicum.services.notification_service import NotificationService


class NotificationController(BaseController):
    """Controller for notification inbox operations."""

    def __init__(self, session: AsyncSession):
        self.notification_service = NotificationService(session)

    async def list_notifications(
        self,
        actor: User,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 50,
    ) -> NotificationListResponse:
        return await self.notification_service.list_for_user(actor.id, unread_only, skip, limit)

    async def mark_read(self, notification_id: UUID, actor: User) -> MarkReadResponse:
        return await self.notification_service.mark_read(notification_id, actor.id)

    async def mark_all_read(self, actor: User) -> MarkReadResponse:
        return await self.notification_service.mark_all_read(actor.id)
