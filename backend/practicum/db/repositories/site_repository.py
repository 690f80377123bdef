"""
Site repository for database operations.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from practicum.db.repositories.base_repository import BaseRepository
from practicum.models.user import Site


class SiteRepository(BaseRepository[Site]):
    """Repository for site lookups."""

    def __init__(self, session: AsyncSession):
        super().__init__(Site, session)
