"""
Issue API Routes: thread lifecycle endpoints.

1. POST /issues - Raise a thread (business)
2. GET /issues - Filtered listing
3. GET /issues/my-threads - Threads the caller created or seconded (business)
4. GET /issues/team/dashboard - Data science home view with summary counts
5. POST /issues/{id}/second - Second someone else's thread (business)
6. PATCH /issues/{id}/status - Guarded status transition
7. DELETE /issues/{id} - Owner deletes a thread that is not in progress

Literal paths are registered before /issues/{issue_id}.
"""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Query, status

from ..core.dependencies import (
    BusinessDep,
    CurrentUserDep,
    DataScienceDep,
    NotificationsDep,
    SessionDep,
)
from ..models import IssueStatus
from ..schemas import (
    IssueCreate,
    IssueEnvelope,
    IssueListResponse,
    IssueResponse,
    IssueStatusUpdate,
    MessageResponse,
    SecondResponse,
    TeamDashboardResponse,
)
from ..services import (
    CreateIssueInput,
    IssueEngine,
    IssueQueries,
    IssueSort,
    IssueView,
    TeamFilter,
)

router = APIRouter(prefix="/issues", tags=["issues"])


@router.get("", response_model=IssueListResponse)
async def list_issues(
    current_user: CurrentUserDep,
    session: SessionDep,
    dashboard_id: UUID | None = None,
    status_filter: IssueStatus | None = Query(default=None, alias="status"),
    assigned_team_id: str | None = Query(
        default=None,
        description="Team id, or 'null' / 'unassigned' for threads without a team",
    ),
    submitted_by: UUID | None = None,
    sort_by: IssueSort = IssueSort.UPDATED_AT,
):
    """List threads with filters, sorted descending."""
    views = await IssueQueries(session).list_issues(
        current_user.user,
        dashboard_id=dashboard_id,
        status=status_filter,
        assigned_team_id=assigned_team_id,
        submitted_by=submitted_by,
        sort_by=sort_by,
    )
    return IssueListResponse.from_views(views)


@router.get("/my-threads", response_model=IssueListResponse)
async def my_threads(
    current_user: BusinessDep,
    session: SessionDep,
    status_filter: IssueStatus | None = Query(default=None, alias="status"),
    sort_by: IssueSort = IssueSort.UPDATED_AT,
):
    views = await IssueQueries(session).my_threads(
        current_user.user, status=status_filter, sort_by=sort_by
    )
    return IssueListResponse.from_views(views)


@router.get("/team/dashboard", response_model=TeamDashboardResponse)
async def team_dashboard(
    current_user: DataScienceDep,
    session: SessionDep,
    team_filter: TeamFilter = TeamFilter.ALL,
    priority: Literal["critical"] | None = None,
    status_filter: IssueStatus | None = Query(default=None, alias="status"),
    sort_by: IssueSort = IssueSort.UPDATED_AT,
):
    """Team-scoped view; ``priority=critical`` keeps threads with more than one second."""
    view = await IssueQueries(session).team_dashboard(
        current_user.user,
        team_filter=team_filter,
        status=status_filter,
        critical_only=priority == "critical",
        sort_by=sort_by,
    )
    return TeamDashboardResponse.from_view(view)


@router.post("", response_model=IssueEnvelope, status_code=status.HTTP_201_CREATED)
async def create_issue(
    request: IssueCreate,
    current_user: BusinessDep,
    session: SessionDep,
    notifications: NotificationsDep,
):
    engine = IssueEngine(session, notifications)
    issue = await engine.create_issue(
        CreateIssueInput(
            dashboard_id=request.dashboard_id,
            description=request.description,
            chart_id=request.chart_id,
            subject=request.subject,
            attachment_url=request.attachment_url,
        ),
        current_user.user,
    )
    return IssueEnvelope(issue=IssueResponse.from_view(IssueView(issue=issue, second_count=0)))


@router.get("/{issue_id}", response_model=IssueEnvelope)
async def get_issue(
    issue_id: UUID,
    current_user: CurrentUserDep,
    session: SessionDep,
):
    view = await IssueQueries(session).get_issue_view(issue_id, current_user.user)
    return IssueEnvelope(issue=IssueResponse.from_view(view))


@router.post("/{issue_id}/second", response_model=SecondResponse)
async def second_issue(
    issue_id: UUID,
    current_user: BusinessDep,
    session: SessionDep,
    notifications: NotificationsDep,
):
    """Second a thread once; seconding your own thread is forbidden."""
    result = await IssueEngine(session, notifications).second(issue_id, current_user.user)
    return SecondResponse(
        issue_id=result.issue.id,
        second_count=result.second_count,
        priority=result.issue.priority,
    )


@router.patch("/{issue_id}/status", response_model=IssueEnvelope)
async def update_issue_status(
    issue_id: UUID,
    request: IssueStatusUpdate,
    current_user: CurrentUserDep,
    session: SessionDep,
    notifications: NotificationsDep,
):
    issue = await IssueEngine(session, notifications).update_status(
        issue_id, IssueStatus(request.status), current_user.user
    )
    view = await IssueQueries(session).get_issue_view(issue.id, current_user.user)
    return IssueEnvelope(issue=IssueResponse.from_view(view))


@router.delete("/{issue_id}", response_model=MessageResponse)
async def delete_issue(
    issue_id: UUID,
    current_user: BusinessDep,
    session: SessionDep,
    notifications: NotificationsDep,
):
    await IssueEngine(session, notifications).delete_issue(issue_id, current_user.user)
    return MessageResponse(message="Thread deleted successfully")
