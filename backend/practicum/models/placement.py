"""
Placement models: the placement itself, its status audit trail, and the
pending-supervisor request that may accompany an application.
"""

from sqlalchemy import Column, String, Date, ForeignKey, Integer, Numeric, DateTime, Index, JSON, Text, Enum as SQLEnum, func, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid
import enum

from practicum.db.base import Base


class PlacementStatus(str, enum.Enum):
    """Placement lifecycle status."""
    PENDING = "PENDING"
    APPROVED_PENDING_CHECKLIST = "APPROVED_PENDING_CHECKLIST"
    ACTIVE = "ACTIVE"
    COMPLETE = "COMPLETE"
    DECLINED = "DECLINED"


class PendingSupervisorStatus(str, enum.Enum):
    """Resolution status of a requested supervisor."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PlacementDocument(str, enum.Enum):
    """Document slots on a placement. Values are the column names."""
    CELL_POLICY = "cell_policy"
    LEARNING_CONTRACT = "learning_contract"
    CHECKLIST = "checklist"


DEFAULT_COMPLIANCE_CHECKLIST = {
    "orientation": False,
    "safety_training": False,
    "confidentiality": False,
    "supervision_schedule": False,
}


def _default_checklist() -> dict:
    return dict(DEFAULT_COMPLIANCE_CHECKLIST)


class Placement(Base):
    """One student's assignment to one site for one class."""

    __tablename__ = "placements"
    __table_args__ = (
        # At most one open (non-declined) placement per student and class
        Index(
            "uq_placement_student_class_open",
            "student_id",
            "class_id",
            unique=True,
            postgresql_where=text("status != 'DECLINED'"),
            sqlite_where=text("status != 'DECLINED'"),
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    site_id = Column(UUID(as_uuid=True), ForeignKey("sites.id"), nullable=False, index=True)
    faculty_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    class_id = Column(UUID(as_uuid=True), ForeignKey("classes.id"), nullable=False, index=True)
    supervisor_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    required_hours = Column(Numeric(7, 2), nullable=False)
    status = Column(SQLEnum(PlacementStatus), nullable=False, default=PlacementStatus.PENDING, index=True)

    # Structured record at the service layer, see schemas.placement.ComplianceChecklist
    compliance_checklist = Column(JSON, nullable=False, default=_default_checklist)
    # Bumped on every checklist write; guards the read-merge-write
    checklist_version = Column(Integer, nullable=False, default=0, server_default=text("0"))
    cell_policy = Column(String(500), nullable=True)
    learning_contract = Column(String(500), nullable=True)
    checklist = Column(String(500), nullable=True)

    faculty_notes = Column(Text, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    approved_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    declined_at = Column(DateTime, nullable=True)
    declined_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=datetime.utcnow)

    # Relationships
    student = relationship("User", foreign_keys=[student_id], lazy="selectin")
    faculty = relationship("User", foreign_keys=[faculty_id], lazy="selectin")
    supervisor = relationship("User", foreign_keys=[supervisor_id], lazy="selectin")
    site = relationship("Site", lazy="selectin")
    academic_class = relationship("AcademicClass", lazy="selectin")
    pending_supervisor = relationship("PendingSupervisor", back_populates="placement", uselist=False, lazy="selectin")
    status_history = relationship(
        "PlacementStatusHistory",
        back_populates="placement",
        cascade="all, delete-orphan",
        order_by="PlacementStatusHistory.changed_at",
    )


class PlacementStatusHistory(Base):
    """Audit trail for placement status changes."""

    __tablename__ = "placement_status_history"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    placement_id = Column(UUID(as_uuid=True), ForeignKey("placements.id", ondelete="CASCADE"), nullable=False, index=True)
    from_status = Column(SQLEnum(PlacementStatus), nullable=True)
    to_status = Column(SQLEnum(PlacementStatus), nullable=False)
    changed_by_user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True)
    note = Column(Text, nullable=True)
    changed_at = Column(DateTime, nullable=False, default=datetime.utcnow, server_default=func.now())

    placement = relationship("Placement", back_populates="status_history")


class PendingSupervisor(Base):
    """Supervisor requested on an application who has no account yet."""

    __tablename__ = "pending_supervisors"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    placement_id = Column(UUID(as_uuid=True), ForeignKey("placements.id", ondelete="CASCADE"), nullable=False, unique=True)
    site_id = Column(UUID(as_uuid=True), ForeignKey("sites.id"), nullable=False, index=True)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    title = Column(String(100), nullable=True)
    licensed_sw = Column(String(20), nullable=True)
    license_number = Column(String(100), nullable=True)
    highest_degree = Column(String(100), nullable=True)
    other_degree = Column(String(100), nullable=True)

    status = Column(SQLEnum(PendingSupervisorStatus), nullable=False, default=PendingSupervisorStatus.PENDING, index=True)
    resolved_at = Column(DateTime, nullable=True)
    resolved_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    created_user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    placement = relationship("Placement", back_populates="pending_supervisor")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
