"""Administrative reads and the team removal flow."""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Dashboard, Issue, IssueStatus, Team, User, UserRole
from .errors import NotFoundError
from .issues import require_role

logger = logging.getLogger(__name__)


@dataclass
class SystemStats:
    business_users: int
    data_science_users: int
    total_teams: int
    total_dashboards: int
    pending_issues: int
    in_progress_issues: int
    completed_issues: int


class TeamService:
    """Admin-only operations over teams and system counts."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def stats(self, actor: User) -> SystemStats:
        require_role(actor, UserRole.ADMIN)

        async def count(model, *conditions) -> int:
            result = await self._session.execute(
                select(func.count(model.id)).where(*conditions)
            )
            return result.scalar_one()

        return SystemStats(
            business_users=await count(User, User.role == UserRole.BUSINESS),
            data_science_users=await count(User, User.role == UserRole.DATA_SCIENCE),
            total_teams=await count(Team),
            total_dashboards=await count(Dashboard),
            pending_issues=await count(Issue, Issue.status == IssueStatus.PENDING),
            in_progress_issues=await count(Issue, Issue.status == IssueStatus.IN_PROGRESS),
            completed_issues=await count(Issue, Issue.status == IssueStatus.COMPLETE),
        )

    async def delete_team(self, team_id: UUID, actor: User) -> None:
        """
        Remove a team after clearing every reference to it.

        Members lose their team, dashboards and issues lose their assignment.
        Issue status is left untouched.
        """
        require_role(actor, UserRole.ADMIN)
        team = await self._session.get(Team, team_id)
        if team is None:
            raise NotFoundError("Team not found")

        team.lead_user_id = None
        await self._session.flush()
        for model, column in (
            (User, User.team_id),
            (Dashboard, Dashboard.assigned_team_id),
            (Issue, Issue.assigned_team_id),
        ):
            await self._session.execute(
                update(model)
                .where(column == team_id)
                .values({column.key: None})
                .execution_options(synchronize_session=False)
            )

        await self._session.execute(
            delete(Team).where(Team.id == team_id).execution_options(synchronize_session=False)
        )
        logger.info(f"Team {team_id} deleted by user={actor.id}")
