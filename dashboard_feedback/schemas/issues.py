"""Pydantic schemas for issues (threads), seconds and assignment."""

from uuid import UUID

from pydantic import Field

from ..services.queries import IssueView, TeamDashboardView
from .base import FeedbackBaseModel, IssueStatus, TimestampMixin


# =============================================================================
# REQUESTS
# =============================================================================


class IssueCreate(FeedbackBaseModel):
    """Request body for raising a thread.

    Required fields are checked by the engine so the caller gets the same
    message however the issue is created.
    """

    dashboard_id: UUID | None = None
    chart_id: UUID | None = None
    subject: str | None = Field(default=None, max_length=500)
    description: str | None = None
    attachment_url: str | None = Field(default=None, max_length=1000)


class IssueStatusUpdate(FeedbackBaseModel):
    status: IssueStatus


class AssignTeamRequest(FeedbackBaseModel):
    team_id: UUID


class AssignUserRequest(FeedbackBaseModel):
    user_id: UUID


# =============================================================================
# RESPONSES
# =============================================================================


class IssueResponse(FeedbackBaseModel, TimestampMixin):
    """Issue with names of its related entities and the viewer's second state."""

    id: UUID
    dashboard_id: UUID
    dashboard_name: str | None = None
    chart_id: UUID | None = None
    chart_name: str | None = None
    submitted_by_user_id: UUID
    submitted_by_name: str | None = None
    subject: str | None = None
    description: str
    attachment_url: str | None = None
    status: IssueStatus
    priority: int
    assigned_team_id: UUID | None = None
    assigned_team_name: str | None = None
    assigned_user_id: UUID | None = None
    assigned_user_name: str | None = None
    second_count: int = 0
    is_seconded: bool = False
    is_my_team: bool | None = None

    @classmethod
    def from_view(cls, view: IssueView) -> "IssueResponse":
        issue = view.issue
        return cls(
            id=issue.id,
            dashboard_id=issue.dashboard_id,
            dashboard_name=issue.dashboard.name if issue.dashboard else None,
            chart_id=issue.chart_id,
            chart_name=issue.chart.name if issue.chart else None,
            submitted_by_user_id=issue.submitted_by_user_id,
            submitted_by_name=issue.submitter.name if issue.submitter else None,
            subject=issue.subject,
            description=issue.description,
            attachment_url=issue.attachment_url,
            status=issue.status,
            priority=issue.priority,
            assigned_team_id=issue.assigned_team_id,
            assigned_team_name=issue.assigned_team.name if issue.assigned_team else None,
            assigned_user_id=issue.assigned_user_id,
            assigned_user_name=issue.assigned_user.name if issue.assigned_user else None,
            second_count=view.second_count,
            is_seconded=view.is_seconded,
            is_my_team=view.is_my_team,
            created_at=issue.created_at,
            updated_at=issue.updated_at,
        )


class IssueEnvelope(FeedbackBaseModel):
    issue: IssueResponse


class IssueListResponse(FeedbackBaseModel):
    issues: list[IssueResponse]

    @classmethod
    def from_views(cls, views: list[IssueView]) -> "IssueListResponse":
        return cls(issues=[IssueResponse.from_view(v) for v in views])


class TeamSummaryResponse(FeedbackBaseModel):
    pending: int
    in_progress: int
    critical: int
    total_dashboards: int


class TeamDashboardResponse(FeedbackBaseModel):
    issues: list[IssueResponse]
    summary: TeamSummaryResponse

    @classmethod
    def from_view(cls, view: TeamDashboardView) -> "TeamDashboardResponse":
        return cls(
            issues=[IssueResponse.from_view(v) for v in view.issues],
            summary=TeamSummaryResponse.model_validate(view.summary),
        )


class SecondResponse(FeedbackBaseModel):
    message: str = "Thread seconded successfully"
    issue_id: UUID
    second_count: int
    priority: int
