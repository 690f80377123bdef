"""
Database models.
Import all models here to ensure they're registered with Base.
"""

from practicum.models.user import User, UserRole, Site, AcademicClass, FacultyAssignment
from practicum.models.placement import (
    Placement,
    PlacementStatus,
    PlacementStatusHistory,
    PlacementDocument,
    PendingSupervisor,
    PendingSupervisorStatus,
)
from practicum.models.timesheet import (
    TimesheetEntry,
    TimesheetEntryStatus,
    TimesheetCategory,
    TimesheetJournal,
)
from practicum.models.notification import (
    Notification,
    NotificationKind,
    NotificationPriority,
    DeliveryStatus,
)

__all__ = [
    "User",
    "UserRole",
    "Site",
    "AcademicClass",
    "FacultyAssignment",
    "Placement",
    "PlacementStatus",
    "PlacementStatusHistory",
    "PlacementDocument",
    "PendingSupervisor",
    "PendingSupervisorStatus",
    "TimesheetEntry",
    "TimesheetEntryStatus",
    "TimesheetCategory",
    "TimesheetJournal",
    "Notification",
    "NotificationKind",
    "NotificationPriority",
    "DeliveryStatus",
]
