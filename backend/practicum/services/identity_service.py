"""
Identity service.
Provisions accounts the workflow needs to materialize. Credentials are issued
by the identity provider, not here.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from practicum.db.repositories.user_repository import UserRepository
from practicum.models.user import User, UserRole
from practicum.services.base_service import BaseService

logger = logging.getLogger(__name__)


class IdentityService(BaseService):
    """Create-or-find for user accounts. Does not commit."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)

    async def create_or_find_user(
        self,
        email: str,
        first_name: str,
        last_name: str,
        role: UserRole,
        site_id: Optional[UUID] = None,
        **profile,
    ) -> User:
        """Return the account for `email`, creating it if needed."""
        existing = await self.user_repo.get_by_email(email)
        if existing:
            return existing

        user = await self.user_repo.create(
            email=email.strip().lower(),
            first_name=first_name,
            last_name=last_name,
            role=role,
            site_id=site_id,
            is_active=True,
            **profile,
        )
        logger.info(
            f"Provisioned {role.value} account",
            extra={"user_id": str(user.id), "site_id": str(site_id) if site_id else None},
        )
        return user
