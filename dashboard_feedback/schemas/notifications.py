"""Pydantic schemas for notifications."""

from datetime import datetime
from uuid import UUID

from ..models import Notification
from .base import FeedbackBaseModel, IssueStatus, NotificationType


class NotificationResponse(FeedbackBaseModel):
    """A notification with the referenced issue's dashboard and status."""

    id: UUID
    user_id: UUID
    issue_id: UUID | None = None
    type: NotificationType
    message: str
    is_read: bool
    created_at: datetime
    dashboard_id: UUID | None = None
    dashboard_name: str | None = None
    issue_status: IssueStatus | None = None

    @classmethod
    def from_model(cls, notification: Notification) -> "NotificationResponse":
        issue = notification.issue
        return cls(
            id=notification.id,
            user_id=notification.user_id,
            issue_id=notification.issue_id,
            type=notification.type,
            message=notification.message,
            is_read=notification.is_read,
            created_at=notification.created_at,
            dashboard_id=issue.dashboard_id if issue else None,
            dashboard_name=issue.dashboard.name if issue and issue.dashboard else None,
            issue_status=issue.status if issue else None,
        )


class NotificationEnvelope(FeedbackBaseModel):
    notification: NotificationResponse


class NotificationListResponse(FeedbackBaseModel):
    notifications: list[NotificationResponse]


class UnreadCountResponse(FeedbackBaseModel):
    count: int
