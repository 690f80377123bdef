"""
Notification repository for database operations.
"""

from datetime import datetime
from typing import List
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func

from practicum.db.repositories.base_repository import BaseRepository
from practicum.models.notification import Notification


class NotificationRepository(BaseRepository[Notification]):
    """Repository for notification operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Notification, session)

    async def list_for_user(
        self,
        user_id: UUID,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 50,
    ) -> List[Notification]:
        """List a user's notifications, newest first."""
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.read.is_(False))
        result = await self.session.execute(
            query.order_by(Notification.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def count_unread(self, user_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.read.is_(False),
            )
        )
        return int(result.scalar_one())

    async def mark_read(self, id: UUID, user_id: UUID) -> int:
        """Mark one of the user's notifications read. Returns rows affected."""
        result = await self.session.execute(
            update(Notification)
            .where(Notification.id == id, Notification.user_id == user_id)
            .values(read=True, read_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount

    async def mark_all_read(self, user_id: UUID) -> int:
        result = await self.session.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
            .values(read=True, read_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount
