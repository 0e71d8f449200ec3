"""Admin API routes: assignment, system stats and team removal."""

from uuid import UUID

from fastapi import APIRouter

from ..core.dependencies import AdminDep, NotificationsDep, SessionDep
from ..schemas import (
    AssignTeamRequest,
    AssignUserRequest,
    FeedbackBaseModel,
    IssueEnvelope,
    IssueResponse,
    MessageResponse,
)
from ..services import IssueEngine, IssueQueries, TeamService

router = APIRouter(prefix="/admin", tags=["admin"])


class SystemStatsResponse(FeedbackBaseModel):
    business_users: int
    data_science_users: int
    total_teams: int
    total_dashboards: int
    pending_issues: int
    in_progress_issues: int
    completed_issues: int


class StatsEnvelope(FeedbackBaseModel):
    stats: SystemStatsResponse


@router.post("/issues/{issue_id}/assign-team", response_model=IssueEnvelope)
async def assign_team(
    issue_id: UUID,
    request: AssignTeamRequest,
    current_user: AdminDep,
    session: SessionDep,
    notifications: NotificationsDep,
):
    """Assign a team. A pending thread moves to in_progress."""
    issue = await IssueEngine(session, notifications).assign_team(
        issue_id, request.team_id, current_user.user
    )
    view = await IssueQueries(session).get_issue_view(issue.id, current_user.user)
    return IssueEnvelope(issue=IssueResponse.from_view(view))


@router.post("/issues/{issue_id}/assign-user", response_model=IssueEnvelope)
async def assign_user(
    issue_id: UUID,
    request: AssignUserRequest,
    current_user: AdminDep,
    session: SessionDep,
    notifications: NotificationsDep,
):
    """Assign a data science user; their team fills an empty team slot."""
    issue = await IssueEngine(session, notifications).assign_user(
        issue_id, request.user_id, current_user.user
    )
    view = await IssueQueries(session).get_issue_view(issue.id, current_user.user)
    return IssueEnvelope(issue=IssueResponse.from_view(view))


@router.get("/stats", response_model=StatsEnvelope)
async def get_stats(current_user: AdminDep, session: SessionDep):
    stats = await TeamService(session).stats(current_user.user)
    return StatsEnvelope(stats=SystemStatsResponse.model_validate(stats))


@router.delete("/teams/{team_id}", response_model=MessageResponse)
async def delete_team(team_id: UUID, current_user: AdminDep, session: SessionDep):
    """Delete a team, clearing member, dashboard and issue references first."""
    await TeamService(session).delete_team(team_id, current_user.user)
    return MessageResponse(message="Team deleted successfully")
