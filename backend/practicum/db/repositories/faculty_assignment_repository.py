"""
Faculty assignment repository for database operations.
"""

from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from practicum.db.repositories.base_repository import BaseRepository
from practicum.models.user import FacultyAssignment


class FacultyAssignmentRepository(BaseRepository[FacultyAssignment]):
    """Repository for faculty-to-student assignments."""

    def __init__(self, session: AsyncSession):
        super().__init__(FacultyAssignment, session)

    async def get_by_student(self, student_id: UUID) -> Optional[FacultyAssignment]:
        """Get the faculty assignment for a student."""
        result = await self.session.execute(
            select(FacultyAssignment).where(FacultyAssignment.student_id == student_id)
        )
        return result.scalar_one_or_none()
