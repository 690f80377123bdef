"""
User, site and class models.
Accounts are provisioned by the identity provider; the workflow only reads
them, except when a pending supervisor is materialized.
"""

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum, func
from sqlalchemy.dialects.postgresql import UUID
import uuid
import enum

from practicum.db.base import Base


class UserRole(str, enum.Enum):
    """User role enumeration."""
    STUDENT = "STUDENT"
    FACULTY = "FACULTY"
    SUPERVISOR = "SUPERVISOR"
    ADMIN = "ADMIN"


class User(Base):
    """Any person who signs in: students, faculty, site supervisors, admins."""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(50), nullable=True)
    role = Column(SQLEnum(UserRole), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)

    # Supervisor profile
    site_id = Column(UUID(as_uuid=True), ForeignKey("sites.id"), nullable=True, index=True)
    title = Column(String(100), nullable=True)
    licensed_sw = Column(String(20), nullable=True)
    license_number = Column(String(100), nullable=True)
    highest_degree = Column(String(100), nullable=True)
    other_degree = Column(String(100), nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Site(Base):
    """Agency where placements happen."""

    __tablename__ = "sites"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)


class AcademicClass(Base):
    """Field course a placement counts towards, e.g. SWK404."""

    __tablename__ = "classes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    code = Column(String(20), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    faculty_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True)


class FacultyAssignment(Base):
    """Faculty liaison assigned to a student."""

    __tablename__ = "faculty_assignments"
    __table_args__ = (
        UniqueConstraint("student_id", name="uq_faculty_assignment_student"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    faculty_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
