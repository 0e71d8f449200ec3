"""Dashboard Feedback API Schemas.

Schemas are organized by domain:
- base: Common types, errors, references
- issues: Threads, seconds, assignment, team dashboard
- comments: Replies
- admin_requests: Escalations to admins
- notifications: Notification feed
"""

from .admin_requests import (
    AdminRequestCreate,
    AdminRequestEnvelope,
    AdminRequestListResponse,
    AdminRequestResponse,
    AdminRequestStatusUpdate,
)
from .base import (
    ErrorResponse,
    FeedbackBaseModel,
    MessageResponse,
    TimestampMixin,
    UserRef,
)
from .comments import (
    CommentCreate,
    CommentEnvelope,
    CommentListResponse,
    CommentResponse,
    CommentUpdate,
)
from .issues import (
    AssignTeamRequest,
    AssignUserRequest,
    IssueCreate,
    IssueEnvelope,
    IssueListResponse,
    IssueResponse,
    IssueStatusUpdate,
    SecondResponse,
    TeamDashboardResponse,
    TeamSummaryResponse,
)
from .notifications import (
    NotificationEnvelope,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)

__all__ = [
    # Base
    "FeedbackBaseModel",
    "TimestampMixin",
    "MessageResponse",
    "ErrorResponse",
    "UserRef",
    # Issues
    "IssueCreate",
    "IssueStatusUpdate",
    "AssignTeamRequest",
    "AssignUserRequest",
    "IssueResponse",
    "IssueEnvelope",
    "IssueListResponse",
    "TeamSummaryResponse",
    "TeamDashboardResponse",
    "SecondResponse",
    # Comments
    "CommentCreate",
    "CommentUpdate",
    "CommentResponse",
    "CommentEnvelope",
    "CommentListResponse",
    # Admin requests
    "AdminRequestCreate",
    "AdminRequestStatusUpdate",
    "AdminRequestResponse",
    "AdminRequestEnvelope",
    "AdminRequestListResponse",
    # Notifications
    "NotificationResponse",
    "NotificationEnvelope",
    "NotificationListResponse",
    "UnreadCountResponse",
]
