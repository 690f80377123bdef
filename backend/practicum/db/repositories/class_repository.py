"""
Academic class repository for database operations.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from practicum.db.repositories.base_repository import BaseRepository
from practicum.models.user import AcademicClass


class AcademicClassRepository(BaseRepository[AcademicClass]):
    """Repository for academic class lookups."""

    def __init__(self, session: AsyncSession):
        super().__init__(AcademicClass, session)
