"""
User repository for database operations.
"""

from typing import Optional, List
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from practicum.db.repositories.base_repository import BaseRepository
from practicum.models.user import User, UserRole


class UserRepository(BaseRepository[User]):
    """Repository for user operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)."""
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def get_with_role(self, id: UUID, role: UserRole) -> Optional[User]:
        """Get a user only if they hold `role`."""
        result = await self.session.execute(
            select(User).where(User.id == id, User.role == role)
        )
        return result.scalar_one_or_none()

    async def get_site_supervisor(self, id: UUID, site_id: UUID) -> Optional[User]:
        """Get a supervisor account that belongs to the given site."""
        result = await self.session.execute(
            select(User).where(
                User.id == id,
                User.role == UserRole.SUPERVISOR,
                User.site_id == site_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_by_role(self, role: UserRole) -> List[User]:
        """List active users holding `role`."""
        result = await self.session.execute(
            select(User)
            .where(User.role == role, User.is_active.is_(True))
            .order_by(User.last_name, User.first_name)
        )
        return list(result.scalars().all())
