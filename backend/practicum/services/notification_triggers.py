"""
Builders for the notification events emitted by the workflows.
Each returns a NotificationEvent; the caller hands it to NotificationService
once its transaction has committed.
"""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from practicum.models.notification import NotificationKind, NotificationPriority
from practicum.schemas.notification import NotificationEvent


def _reason_suffix(reason: Optional[str], fallback: str) -> str:
    return f"Reason: {reason}" if reason else fallback


def _hours(value: Decimal) -> str:
    return f"{Decimal(value).normalize():f}"


class NotificationTriggers:
    """Event builders, one per workflow event."""

    @staticmethod
    def placement_approved(placement_id: UUID, student_id: UUID, site_name: str) -> NotificationEvent:
        return NotificationEvent(
            recipient_user_id=student_id,
            kind=NotificationKind.PLACEMENT_APPROVED,
            title="Placement Approved",
            message=(
                f"Your placement at {site_name} has been approved by your faculty liaison. "
                "Complete your compliance checklist so the placement can be activated."
            ),
            related_entity_id=str(placement_id),
            related_entity_type="placement",
            priority=NotificationPriority.HIGH,
        )

    @staticmethod
    def placement_activated(placement_id: UUID, student_id: UUID, site_name: str) -> NotificationEvent:
        return NotificationEvent(
            recipient_user_id=student_id,
            kind=NotificationKind.PLACEMENT_ACTIVATED,
            title="Placement Active",
            message=f"Your placement at {site_name} is now active. You can start logging hours.",
            related_entity_id=str(placement_id),
            related_entity_type="placement",
            priority=NotificationPriority.HIGH,
        )

    @staticmethod
    def placement_rejected(placement_id: UUID, student_id: UUID, site_name: str, reason: Optional[str]) -> NotificationEvent:
        return NotificationEvent(
            recipient_user_id=student_id,
            kind=NotificationKind.PLACEMENT_REJECTED,
            title="Placement Rejected",
            message=(
                f"Your placement at {site_name} has been rejected. "
                + _reason_suffix(reason, "Please contact your faculty liaison for more information.")
            ),
            related_entity_id=str(placement_id),
            related_entity_type="placement",
            priority=NotificationPriority.HIGH,
            metadata={"reason": reason},
        )

    @staticmethod
    def placement_completed(placement_id: UUID, student_id: UUID, site_name: str) -> NotificationEvent:
        return NotificationEvent(
            recipient_user_id=student_id,
            kind=NotificationKind.PLACEMENT_COMPLETED,
            title="Placement Complete",
            message=f"Your placement at {site_name} has been marked complete.",
            related_entity_id=str(placement_id),
            related_entity_type="placement",
            priority=NotificationPriority.MEDIUM,
        )

    @staticmethod
    def faculty_class_mismatch(
        placement_id: UUID,
        recipient_ids: List[UUID],
        student_name: str,
        class_code: str,
        assigned_faculty_id: UUID,
        class_faculty_id: UUID,
    ) -> List[NotificationEvent]:
        message = (
            f"{student_name} applied for a placement in {class_code}, but their assigned faculty "
            "liaison does not teach this class. Please confirm who should review the placement."
        )
        return [
            NotificationEvent(
                recipient_user_id=recipient_id,
                kind=NotificationKind.FACULTY_CLASS_MISMATCH,
                title="Faculty Assignment Mismatch",
                message=message,
                related_entity_id=str(placement_id),
                related_entity_type="placement",
                priority=NotificationPriority.HIGH,
                metadata={
                    "assigned_faculty_id": str(assigned_faculty_id),
                    "class_faculty_id": str(class_faculty_id),
                    "class_code": class_code,
                },
            )
            for recipient_id in recipient_ids
        ]

    @staticmethod
    def supervisor_approved(placement_id: UUID, student_id: UUID, supervisor_name: str) -> NotificationEvent:
        return NotificationEvent(
            recipient_user_id=student_id,
            kind=NotificationKind.SUPERVISOR_APPROVED,
            title="Supervisor Approved",
            message=f"Your requested supervisor {supervisor_name} has been approved and can now access the system.",
            related_entity_id=str(placement_id),
            related_entity_type="placement",
            priority=NotificationPriority.MEDIUM,
        )

    @staticmethod
    def supervisor_rejected(placement_id: UUID, student_id: UUID, supervisor_name: str, reason: Optional[str]) -> NotificationEvent:
        return NotificationEvent(
            recipient_user_id=student_id,
            kind=NotificationKind.SUPERVISOR_REJECTED,
            title="Supervisor Rejected",
            message=(
                f"Your requested supervisor {supervisor_name} has been rejected. "
                + _reason_suffix(reason, "Please contact your faculty liaison for more information.")
            ),
            related_entity_id=str(placement_id),
            related_entity_type="placement",
            priority=NotificationPriority.HIGH,
            metadata={"reason": reason},
        )

    @staticmethod
    def document_uploaded(placement_id: UUID, student_id: UUID, faculty_id: UUID, document: str) -> List[NotificationEvent]:
        label = document.replace("_", " ")
        return [
            NotificationEvent(
                recipient_user_id=student_id,
                kind=NotificationKind.DOCUMENT_UPLOADED,
                title="Document Uploaded",
                message=f"Your {label} has been successfully uploaded and is available for faculty review.",
                related_entity_id=str(placement_id),
                related_entity_type="placement",
                priority=NotificationPriority.LOW,
                metadata={"document": document},
            ),
            NotificationEvent(
                recipient_user_id=faculty_id,
                kind=NotificationKind.DOCUMENT_UPLOADED,
                title="New Document Uploaded",
                message=f"A student has uploaded a new {label}. Please review the document when convenient.",
                related_entity_id=str(placement_id),
                related_entity_type="placement",
                priority=NotificationPriority.MEDIUM,
                metadata={"document": document},
            ),
        ]

    @staticmethod
    def timesheet_submitted(
        placement_id: UUID,
        supervisor_id: UUID,
        student_name: str,
        site_name: str,
        week_range: str,
        total_hours: Decimal,
        entry_count: int,
    ) -> NotificationEvent:
        return NotificationEvent(
            recipient_user_id=supervisor_id,
            kind=NotificationKind.TIMESHEET_SUBMITTED,
            title="Timesheet Submitted for Review",
            message=(
                f"{student_name} has submitted a timesheet for {site_name} ({week_range}). "
                f"Total: {_hours(total_hours)} hours across {entry_count} entries. Please review and approve."
            ),
            related_entity_id=str(placement_id),
            related_entity_type="placement",
            priority=NotificationPriority.MEDIUM,
            metadata={"week": week_range, "total_hours": _hours(total_hours), "entry_count": entry_count},
        )

    @staticmethod
    def timesheet_supervisor_approved(
        placement_id: UUID,
        faculty_id: UUID,
        student_name: str,
        supervisor_name: str,
        total_hours: Decimal,
    ) -> NotificationEvent:
        return NotificationEvent(
            recipient_user_id=faculty_id,
            kind=NotificationKind.TIMESHEET_SUPERVISOR_APPROVED,
            title="Timesheet Approved by Supervisor",
            message=(
                f"{supervisor_name} has approved {student_name}'s timesheet with {_hours(total_hours)} hours. "
                "Please review and provide final approval."
            ),
            related_entity_id=str(placement_id),
            related_entity_type="placement",
            priority=NotificationPriority.MEDIUM,
        )

    @staticmethod
    def timesheet_approved(placement_id: UUID, student_id: UUID, faculty_name: str, total_hours: Decimal) -> NotificationEvent:
        return NotificationEvent(
            recipient_user_id=student_id,
            kind=NotificationKind.TIMESHEET_APPROVED,
            title="Timesheet Final Approval",
            message=(
                f"Your timesheet with {_hours(total_hours)} hours has been approved by {faculty_name}. "
                "Your total hours have been updated."
            ),
            related_entity_id=str(placement_id),
            related_entity_type="placement",
            priority=NotificationPriority.LOW,
        )

    @staticmethod
    def timesheet_rejected(placement_id: UUID, student_id: UUID, approver_name: str, reason: Optional[str]) -> NotificationEvent:
        return NotificationEvent(
            recipient_user_id=student_id,
            kind=NotificationKind.TIMESHEET_REJECTED,
            title="Timesheet Rejected",
            message=(
                f"Your timesheet has been rejected by {approver_name}. "
                + _reason_suffix(reason, "Please review and resubmit.")
            ),
            related_entity_id=str(placement_id),
            related_entity_type="placement",
            priority=NotificationPriority.MEDIUM,
            metadata={"reason": reason},
        )
