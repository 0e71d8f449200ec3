"""Notification feed API routes. Callers only ever see their own notifications."""

from uuid import UUID

from fastapi import APIRouter

from ..core.dependencies import CurrentUserDep, NotificationsDep
from ..schemas import (
    MessageResponse,
    NotificationEnvelope,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    current_user: CurrentUserDep,
    notifications: NotificationsDep,
    is_read: bool | None = None,
):
    rows = await notifications.list_for_user(current_user.id, is_read=is_read)
    return NotificationListResponse(
        notifications=[NotificationResponse.from_model(n) for n in rows]
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(current_user: CurrentUserDep, notifications: NotificationsDep):
    return UnreadCountResponse(count=await notifications.unread_count(current_user.id))


@router.patch("/read-all", response_model=MessageResponse)
async def mark_all_read(current_user: CurrentUserDep, notifications: NotificationsDep):
    await notifications.mark_all_read(current_user.id)
    return MessageResponse(message="All notifications marked as read")


@router.patch("/{notification_id}/read", response_model=NotificationEnvelope)
async def mark_read(
    notification_id: UUID,
    current_user: CurrentUserDep,
    notifications: NotificationsDep,
):
    notification = await notifications.mark_read(notification_id, current_user.id)
    return NotificationEnvelope(notification=NotificationResponse.from_model(notification))
