"""SQLAlchemy ORM Models for the dashboard feedback workflow."""

from .base import Base, CreatedAtMixin, TimestampMixin, UUIDMixin, utcnow
from .models import (
    # Enums
    ActivityAction,
    AdminRequestStatus,
    AdminRequestType,
    IssueStatus,
    NotificationType,
    UserRole,
    # Directory
    Chart,
    Dashboard,
    Team,
    User,
    # Issues
    Comment,
    Issue,
    LeaderboardActivity,
    ThreadSecond,
    # Notifications
    Notification,
    # Admin requests
    AdminRequest,
)

__all__ = [
    # Base
    "Base",
    "UUIDMixin",
    "CreatedAtMixin",
    "TimestampMixin",
    "utcnow",
    # Enums
    "ActivityAction",
    "AdminRequestStatus",
    "AdminRequestType",
    "IssueStatus",
    "NotificationType",
    "UserRole",
    # Directory
    "Chart",
    "Dashboard",
    "Team",
    "User",
    # Issues
    "Comment",
    "Issue",
    "LeaderboardActivity",
    "ThreadSecond",
    # Notifications
    "Notification",
    # Admin requests
    "AdminRequest",
]
