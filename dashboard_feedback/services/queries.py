"""Query/Filter Layer: read views over issues for each role."""

from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import Select, and_, distinct, exists, false, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Issue, IssueStatus, ThreadSecond, User
from .errors import NotFoundError, ValidationError
from .seconds import SecondLedger, second_count_subquery

UNASSIGNED_VALUES = frozenset({"null", "unassigned"})


class IssueSort(str, Enum):
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    STATUS = "status"
    PRIORITY = "priority"


class TeamFilter(str, Enum):
    ALL = "all"
    MY_TEAM = "my_team"
    OTHER_TEAMS = "other_teams"


@dataclass
class IssueView:
    """An issue as seen by one viewer."""
    issue: Issue
    second_count: int
    is_seconded: bool = False
    is_my_team: bool | None = None


@dataclass
class TeamSummary:
    pending: int
    in_progress: int
    critical: int
    total_dashboards: int


@dataclass
class TeamDashboardView:
    issues: list[IssueView]
    summary: TeamSummary


def _sort_column(sort_by: IssueSort | None) -> Any:
    return {
        IssueSort.CREATED_AT: Issue.created_at,
        IssueSort.UPDATED_AT: Issue.updated_at,
        IssueSort.STATUS: Issue.status,
        IssueSort.PRIORITY: Issue.priority,
    }[sort_by or IssueSort.UPDATED_AT]


class IssueQueries:
    """Role-scoped, filterable and sortable issue listings."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._seconds = SecondLedger(session)

    def _base_query(self) -> tuple[Select, Any]:
        counts = second_count_subquery()
        second_count = func.coalesce(counts.c.second_count, 0)
        query = (
            select(Issue, second_count.label("second_count"))
            .outerjoin(counts, counts.c.issue_id == Issue.id)
            .options(
                selectinload(Issue.dashboard),
                selectinload(Issue.chart),
                selectinload(Issue.submitter),
                selectinload(Issue.assigned_team),
                selectinload(Issue.assigned_user),
            )
            .execution_options(populate_existing=True)
        )
        return query, second_count

    async def _views(self, query: Select, viewer: User) -> list[IssueView]:
        result = await self._session.execute(query)
        rows = result.all()
        seconded = await self._seconds.seconded_issue_ids(viewer.id, (row[0].id for row in rows))
        return [
            IssueView(
                issue=issue,
                second_count=count or 0,
                is_seconded=issue.id in seconded,
            )
            for issue, count in rows
        ]

    # =========================================================================
    # LISTINGS
    # =========================================================================

    async def list_issues(
        self,
        viewer: User,
        dashboard_id: UUID | None = None,
        status: IssueStatus | None = None,
        assigned_team_id: str | None = None,
        submitted_by: UUID | None = None,
        sort_by: IssueSort | None = None,
    ) -> list[IssueView]:
        """
        All issues matching the filters, newest first by ``sort_by``.

        ``assigned_team_id`` accepts a team id, or ``null`` / ``unassigned``
        for issues without a team.
        """
        query, _ = self._base_query()
        if dashboard_id is not None:
            query = query.where(Issue.dashboard_id == dashboard_id)
        if status is not None:
            query = query.where(Issue.status == status)
        if assigned_team_id:
            if assigned_team_id in UNASSIGNED_VALUES:
                query = query.where(Issue.assigned_team_id.is_(None))
            else:
                try:
                    team_uuid = UUID(assigned_team_id)
                except ValueError:
                    raise ValidationError("Invalid assigned_team_id")
                query = query.where(Issue.assigned_team_id == team_uuid)
        if submitted_by is not None:
            query = query.where(Issue.submitted_by_user_id == submitted_by)

        query = query.order_by(_sort_column(sort_by).desc(), Issue.created_at.desc())
        return await self._views(query, viewer)

    async def my_threads(
        self,
        viewer: User,
        status: IssueStatus | None = None,
        sort_by: IssueSort | None = None,
    ) -> list[IssueView]:
        """Issues the viewer created or seconded."""
        seconded_by_viewer = exists().where(
            ThreadSecond.issue_id == Issue.id,
            ThreadSecond.user_id == viewer.id,
        )
        query, _ = self._base_query()
        query = query.where(
            or_(Issue.submitted_by_user_id == viewer.id, seconded_by_viewer)
        )
        if status is not None:
            query = query.where(Issue.status == status)

        query = query.order_by(_sort_column(sort_by).desc(), Issue.created_at.desc())
        return await self._views(query, viewer)

    def _team_condition(self, viewer: User, team_filter: TeamFilter) -> Any | None:
        if team_filter == TeamFilter.MY_TEAM:
            if viewer.team_id is None:
                return false()
            return Issue.assigned_team_id == viewer.team_id
        if team_filter == TeamFilter.OTHER_TEAMS and viewer.team_id is not None:
            return or_(
                Issue.assigned_team_id.is_(None),
                Issue.assigned_team_id != viewer.team_id,
            )
        return None

    async def team_dashboard(
        self,
        viewer: User,
        team_filter: TeamFilter = TeamFilter.ALL,
        status: IssueStatus | None = None,
        critical_only: bool = False,
        sort_by: IssueSort | None = None,
    ) -> TeamDashboardView:
        """
        Data science home view.

        An issue is critical when more than one user seconded it. The summary
        honours ``team_filter`` but not ``status`` or ``critical_only``.
        """
        team_condition = self._team_condition(viewer, team_filter)

        query, second_count = self._base_query()
        if team_condition is not None:
            query = query.where(team_condition)
        if status is not None:
            query = query.where(Issue.status == status)
        if critical_only:
            query = query.where(second_count > 1)
        query = query.order_by(_sort_column(sort_by).desc(), Issue.created_at.desc())

        views = await self._views(query, viewer)
        for view in views:
            view.is_my_team = (
                viewer.team_id is not None and view.issue.assigned_team_id == viewer.team_id
            )

        return TeamDashboardView(issues=views, summary=await self._summary(team_condition))

    async def _summary(self, team_condition: Any | None) -> TeamSummary:
        counts = second_count_subquery()
        conditions = [team_condition] if team_condition is not None else []

        result = await self._session.execute(
            select(
                func.count(Issue.id).filter(Issue.status == IssueStatus.PENDING),
                func.count(Issue.id).filter(Issue.status == IssueStatus.IN_PROGRESS),
                func.count(Issue.id).filter(counts.c.second_count > 1),
                func.count(distinct(Issue.dashboard_id)),
            )
            .select_from(Issue)
            .outerjoin(counts, counts.c.issue_id == Issue.id)
            .where(and_(True, *conditions))
        )
        pending, in_progress, critical, total_dashboards = result.one()
        return TeamSummary(
            pending=pending or 0,
            in_progress=in_progress or 0,
            critical=critical or 0,
            total_dashboards=total_dashboards or 0,
        )

    # =========================================================================
    # SINGLE ISSUE
    # =========================================================================

    async def get_issue_view(self, issue_id: UUID, viewer: User) -> IssueView:
        query, _ = self._base_query()
        views = await self._views(
            query.where(Issue.id == issue_id),
            viewer,
        )
        if not views:
            raise NotFoundError("Issue not found")
        return views[0]
