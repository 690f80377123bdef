"""
Notification inbox endpoints.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from practicum.db.session import get_db
from practicum.api.v1.middleware import require_authentication
from practicum.controllers.notification_controller import NotificationController
from practicum.models.user import User
from practicum.schemas.notification import MarkReadResponse, NotificationListResponse

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = Query(False),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> NotificationListResponse:
    """List the current user's notifications, newest first."""
    controller = NotificationController(db)
    return await controller.list_notifications(current_user, unread_only, skip, limit)


@router.post("/read-all", response_model=MarkReadResponse)
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> MarkReadResponse:
    controller = NotificationController(db)
    return await controller.mark_all_read(current_user)


@router.post("/{notification_id}/read", response_model=MarkReadResponse)
async def mark_read(
    notification_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> MarkReadResponse:
    controller = NotificationController(db)
    return await controller.mark_read(notification_id, current_user)
