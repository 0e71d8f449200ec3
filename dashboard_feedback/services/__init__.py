"""Business logic services."""

from .activity import ActivityService
from .admin_requests import (
    UNSET,
    AdminRequestService,
    AdminRequestStatusPatch,
    CreateAdminRequestInput,
)
from .comments import CommentService
from .errors import (
    AlreadySecondedError,
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    NotOwnerError,
    SelfSecondError,
    ValidationError,
    WorkflowError,
)
from .issues import CreateIssueInput, IssueEngine, SecondResult
from .notifications import NotificationService
from .queries import IssueQueries, IssueSort, IssueView, TeamDashboardView, TeamFilter, TeamSummary
from .realtime import ConnectionHub, RealtimeEvent, get_hub, hub
from .seconds import SecondLedger
from .teams import SystemStats, TeamService

__all__ = [
    # Engines
    "IssueEngine",
    "CreateIssueInput",
    "SecondResult",
    "SecondLedger",
    "CommentService",
    "AdminRequestService",
    "AdminRequestStatusPatch",
    "CreateAdminRequestInput",
    "UNSET",
    "ActivityService",
    "TeamService",
    "SystemStats",
    # Queries
    "IssueQueries",
    "IssueSort",
    "IssueView",
    "TeamDashboardView",
    "TeamFilter",
    "TeamSummary",
    # Notifications
    "NotificationService",
    "ConnectionHub",
    "RealtimeEvent",
    "get_hub",
    "hub",
    # Errors
    "WorkflowError",
    "ValidationError",
    "NotFoundError",
    "ForbiddenError",
    "NotOwnerError",
    "SelfSecondError",
    "ConflictError",
    "AlreadySecondedError",
    "InvalidStateError",
]
