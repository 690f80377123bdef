"""
Who may act on a placement and its timesheets.
"""

from practicum.core.exceptions import PermissionDenied
from practicum.models.placement import Placement
from practicum.models.user import User, UserRole


def is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN


def ensure_reviewer(user: User, placement: Placement) -> None:
    """Faculty of the placement, or any admin."""
    if is_admin(user):
        return
    if user.role == UserRole.FACULTY and placement.faculty_id == user.id:
        return
    raise PermissionDenied("Only the placement's faculty liaison or an admin can do this")


def ensure_faculty_or_admin(user: User) -> None:
    if user.role not in (UserRole.FACULTY, UserRole.ADMIN):
        raise PermissionDenied("Only faculty or admins can do this")


def ensure_admin(user: User) -> None:
    if not is_admin(user):
        raise PermissionDenied("Only admins can do this")


def ensure_student_owner(user: User, placement: Placement) -> None:
    if user.role != UserRole.STUDENT or placement.student_id != user.id:
        raise PermissionDenied("Only the student on this placement can do this")


def ensure_supervisor(user: User, placement: Placement) -> None:
    if user.role != UserRole.SUPERVISOR or placement.supervisor_id != user.id:
        raise PermissionDenied("Only the placement's site supervisor can do this")


def can_view(user: User, placement: Placement) -> bool:
    if is_admin(user):
        return True
    if user.role == UserRole.STUDENT:
        return placement.student_id == user.id
    if user.role == UserRole.FACULTY:
        return placement.faculty_id == user.id
    if user.role == UserRole.SUPERVISOR:
        return placement.supervisor_id == user.id
    return False


def ensure_can_view(user: User, placement: Placement) -> None:
    if not can_view(user, placement):
        raise PermissionDenied("You do not have access to this placement")
