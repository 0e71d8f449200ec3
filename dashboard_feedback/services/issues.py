"""
Issue Lifecycle Engine: status, assignment and seconding of feedback threads.

Every mutation:
1. Loads the issue row with SELECT ... FOR UPDATE
2. Runs all permission and state checks before changing anything
3. Applies the change and bumps updated_at
4. Writes notifications (SAVEPOINT per row) and queues live pushes

Status only moves forward in normal flow: pending -> in_progress -> complete.
Admins may move a thread back to pending or in_progress but can never
complete it.
"""

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import (
    ActivityAction,
    Chart,
    Comment,
    Dashboard,
    Issue,
    IssueStatus,
    LeaderboardActivity,
    Notification,
    NotificationType,
    Team,
    ThreadSecond,
    User,
    UserRole,
)
from .activity import ActivityService
from .errors import (
    AlreadySecondedError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    NotOwnerError,
    SelfSecondError,
    ValidationError,
)
from .notifications import NotificationService
from .realtime import RealtimeEvent
from .seconds import ALREADY_SECONDED, SecondLedger

logger = logging.getLogger(__name__)

INSUFFICIENT_PERMISSIONS = "Insufficient permissions"

# Reasons for rejected status changes
BUSINESS_CANNOT_COMPLETE = "Only data science team members can mark threads as complete"
BUSINESS_CANNOT_CHANGE = "Business users cannot change thread status"
ADMIN_CANNOT_COMPLETE = (
    "Only the assigned team can mark threads as complete. "
    "Admin cannot mark threads as complete."
)
COMPLETE_REQUIRES_TEAM = "Thread must be assigned to a team before it can be marked complete"
COMPLETE_WRONG_TEAM = "You can only mark complete threads assigned to your team"
COMPLETE_REQUIRES_REPLY = (
    "A data science team member must reply to the thread before it can be marked complete"
)
COMPLETE_REQUIRES_IN_PROGRESS = "Thread must be in progress before it can be marked complete"
STATUS_IS_AUTOMATIC = (
    "You cannot change status to this value. Status changes are automatic on assignment."
)


def require_role(actor: User, *roles: UserRole) -> None:
    if actor.role not in roles:
        raise ForbiddenError(INSUFFICIENT_PERMISSIONS)


def issue_payload(issue: Issue) -> dict[str, Any]:
    """Compact issue description carried by live events."""
    return {
        "id": str(issue.id),
        "dashboard_id": str(issue.dashboard_id),
        "subject": issue.subject,
        "status": issue.status.value,
        "priority": issue.priority,
        "assigned_team_id": str(issue.assigned_team_id) if issue.assigned_team_id else None,
    }


# =============================================================================
# INPUTS / RESULTS
# =============================================================================


@dataclass
class CreateIssueInput:
    """Input for raising a new thread."""
    dashboard_id: UUID | None
    description: str | None
    chart_id: UUID | None = None
    subject: str | None = None
    attachment_url: str | None = None


@dataclass
class SecondResult:
    issue: Issue
    second_count: int


# =============================================================================
# ENGINE
# =============================================================================


class IssueEngine:
    """Owns every legal status and assignment transition of an Issue."""

    def __init__(self, session: AsyncSession, notifications: NotificationService):
        self._session = session
        self._notifications = notifications
        self._seconds = SecondLedger(session)
        self._activity = ActivityService(session)

    # =========================================================================
    # LOADING
    # =========================================================================

    async def get_issue(self, issue_id: UUID, lock: bool = False) -> Issue:
        """Load an issue, optionally locking the row for the transaction."""
        query = select(Issue).where(Issue.id == issue_id)
        if lock:
            query = query.with_for_update()
        result = await self._session.execute(
            query.execution_options(populate_existing=True)
        )
        issue = result.scalar_one_or_none()
        if issue is None:
            raise NotFoundError("Issue not found")
        return issue

    async def reload(self, issue_id: UUID) -> Issue:
        """Fresh copy of the issue with its relationships loaded."""
        result = await self._session.execute(
            select(Issue)
            .where(Issue.id == issue_id)
            .options(
                selectinload(Issue.dashboard),
                selectinload(Issue.chart),
                selectinload(Issue.submitter),
                selectinload(Issue.assigned_team),
                selectinload(Issue.assigned_user),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def has_data_science_reply(self, issue_id: UUID) -> bool:
        result = await self._session.execute(
            select(
                exists().where(
                    Comment.issue_id == issue_id,
                    Comment.user_id == User.id,
                    User.role == UserRole.DATA_SCIENCE,
                )
            )
        )
        return bool(result.scalar())

    # =========================================================================
    # CREATE
    # =========================================================================

    async def create_issue(self, data: CreateIssueInput, actor: User) -> Issue:
        """
        Raise a new thread against a dashboard.

        The assigned team is a snapshot of the dashboard's team at creation
        time. Every member of that team is notified.
        """
        require_role(actor, UserRole.BUSINESS)
        description = (data.description or "").strip()
        if not data.dashboard_id or not description:
            raise ValidationError("Dashboard ID and description are required")

        dashboard = await self._session.get(Dashboard, data.dashboard_id)
        if dashboard is None:
            raise NotFoundError("Dashboard not found")

        if data.chart_id is not None:
            chart = await self._session.get(Chart, data.chart_id)
            if chart is None or chart.dashboard_id != dashboard.id:
                raise ValidationError("Chart does not belong to this dashboard")

        issue = Issue(
            dashboard_id=dashboard.id,
            chart_id=data.chart_id,
            submitted_by_user_id=actor.id,
            subject=data.subject or None,
            description=description,
            attachment_url=data.attachment_url or None,
            status=IssueStatus.PENDING,
            priority=1,
            assigned_team_id=dashboard.assigned_team_id,
        )
        self._session.add(issue)
        await self._session.flush()

        logger.info(
            f"Issue {issue.id} created by user={actor.id} on dashboard={dashboard.id}, "
            f"team={issue.assigned_team_id}"
        )

        if issue.assigned_team_id is not None:
            await self._notifications.notify_team(
                issue.assigned_team_id,
                NotificationType.NEW_ISSUE,
                f"New thread assigned to your team: {issue.subject or 'No Subject'}",
                issue_id=issue.id,
                event=RealtimeEvent.NEW_ISSUE,
                payload={"issue": issue_payload(issue)},
            )

        return await self.reload(issue.id)

    # =========================================================================
    # STATUS
    # =========================================================================

    async def _check_status_change(
        self, issue: Issue, new_status: IssueStatus, actor: User
    ) -> None:
        """Raise ForbiddenError unless ``actor`` may move ``issue`` to ``new_status``."""
        if actor.role == UserRole.BUSINESS:
            if new_status == IssueStatus.COMPLETE:
                raise ForbiddenError(BUSINESS_CANNOT_COMPLETE)
            raise ForbiddenError(BUSINESS_CANNOT_CHANGE)

        if actor.role == UserRole.ADMIN:
            if new_status == IssueStatus.COMPLETE:
                raise ForbiddenError(ADMIN_CANNOT_COMPLETE)
            return

        # Data science
        if new_status == IssueStatus.COMPLETE:
            if issue.assigned_team_id is None:
                raise ForbiddenError(COMPLETE_REQUIRES_TEAM)
            if issue.assigned_team_id != actor.team_id:
                raise ForbiddenError(COMPLETE_WRONG_TEAM)
            if not await self.has_data_science_reply(issue.id):
                raise ForbiddenError(COMPLETE_REQUIRES_REPLY)
            if issue.status != IssueStatus.IN_PROGRESS:
                raise ForbiddenError(COMPLETE_REQUIRES_IN_PROGRESS)
            return

        if new_status == IssueStatus.PENDING or issue.status != IssueStatus.PENDING:
            raise ForbiddenError(STATUS_IS_AUTOMATIC)

    async def update_status(
        self, issue_id: UUID, new_status: IssueStatus, actor: User
    ) -> Issue:
        """Guarded status transition. The submitter is told about every accepted change."""
        issue = await self.get_issue(issue_id, lock=True)
        await self._check_status_change(issue, new_status, actor)

        old_status = issue.status
        issue.status = new_status
        issue.touch()
        await self._session.flush()

        logger.info(
            f"Issue {issue.id} status {old_status.value} -> {new_status.value} "
            f"by user={actor.id} ({actor.role.value})"
        )

        if new_status == IssueStatus.COMPLETE and actor.role == UserRole.DATA_SCIENCE:
            await self._activity.record(actor.id, issue.id, ActivityAction.RESOLVED)

        await self._notify_status_change(
            issue, f"Your thread status has been updated to {new_status.value}"
        )
        return await self.reload(issue.id)

    async def promote_if_pending(self, issue: Issue, actor: User, message: str) -> bool:
        """
        Move a pending issue to in_progress and tell the submitter.

        Returns True when the issue was promoted.
        """
        if issue.status != IssueStatus.PENDING:
            return False

        issue.status = IssueStatus.IN_PROGRESS
        issue.touch()
        await self._session.flush()
        logger.info(
            f"Issue {issue.id} status pending -> in_progress (automatic) by user={actor.id}"
        )
        await self._notify_status_change(issue, message)
        return True

    async def _notify_status_change(self, issue: Issue, message: str) -> None:
        await self._notifications.notify(
            issue.submitted_by_user_id,
            NotificationType.STATUS_CHANGE,
            message,
            issue_id=issue.id,
            event=RealtimeEvent.STATUS_UPDATE,
            payload={"issue_id": str(issue.id), "status": issue.status.value},
        )

    # =========================================================================
    # ASSIGNMENT
    # =========================================================================

    async def assign_team(self, issue_id: UUID, team_id: UUID, actor: User) -> Issue:
        """Assign a team; a pending issue starts work immediately."""
        require_role(actor, UserRole.ADMIN)
        issue = await self.get_issue(issue_id, lock=True)
        team = await self._session.get(Team, team_id)
        if team is None:
            raise NotFoundError("Team not found")

        issue.assigned_team_id = team.id
        issue.touch()
        await self._session.flush()
        logger.info(f"Issue {issue.id} assigned to team={team.id} by user={actor.id}")

        await self._notifications.notify_team(
            team.id,
            NotificationType.ASSIGNMENT,
            f"A thread has been assigned to your team: {issue.subject or 'No Subject'}",
            issue_id=issue.id,
            event=RealtimeEvent.ISSUE_ASSIGNED,
            payload={"issue_id": str(issue.id), "team_id": str(team.id)},
        )
        await self.promote_if_pending(
            issue, actor, "Your thread has been assigned to a team and is now in progress"
        )
        return await self.reload(issue.id)

    async def assign_user(self, issue_id: UUID, user_id: UUID, actor: User) -> Issue:
        """
        Assign a data science user.

        The user's team fills ``assigned_team_id`` only when the issue has
        none yet; an existing team assignment is kept.
        """
        require_role(actor, UserRole.ADMIN)
        issue = await self.get_issue(issue_id, lock=True)
        assignee = await self._session.get(User, user_id)
        if assignee is None:
            raise NotFoundError("User not found")
        if assignee.role != UserRole.DATA_SCIENCE:
            raise ValidationError("Threads can only be assigned to data science users")

        issue.assigned_user_id = assignee.id
        if issue.assigned_team_id is None and assignee.team_id is not None:
            issue.assigned_team_id = assignee.team_id
        issue.touch()
        await self._session.flush()
        logger.info(f"Issue {issue.id} assigned to user={assignee.id} by user={actor.id}")

        await self._notifications.notify(
            assignee.id,
            NotificationType.ASSIGNMENT,
            f"A thread has been assigned to you: {issue.subject or 'No Subject'}",
            issue_id=issue.id,
            event=RealtimeEvent.ISSUE_ASSIGNED,
            payload={"issue_id": str(issue.id), "user_id": str(assignee.id)},
        )
        await self.promote_if_pending(
            issue, actor, "Your thread has been assigned and is now in progress"
        )
        return await self.reload(issue.id)

    # =========================================================================
    # SECONDING
    # =========================================================================

    async def second(self, issue_id: UUID, actor: User) -> SecondResult:
        """Record a business user's second and recompute priority."""
        require_role(actor, UserRole.BUSINESS)
        issue = await self.get_issue(issue_id, lock=True)

        if await self._seconds.is_seconded(issue.id, actor.id):
            raise AlreadySecondedError(ALREADY_SECONDED)
        if issue.submitted_by_user_id == actor.id:
            raise SelfSecondError("You cannot second your own thread")

        await self._seconds.add(issue.id, actor.id)
        priority = await self._seconds.recompute_priority(issue)
        issue.touch()
        await self._session.flush()

        logger.info(f"Issue {issue.id} seconded by user={actor.id}, priority={priority}")
        return SecondResult(issue=await self.reload(issue.id), second_count=priority)

    async def is_seconded(self, issue_id: UUID, user_id: UUID) -> bool:
        return await self._seconds.is_seconded(issue_id, user_id)

    # =========================================================================
    # DELETE
    # =========================================================================

    async def delete_issue(self, issue_id: UUID, actor: User) -> None:
        """Delete an owned thread and every row that references it."""
        issue = await self.get_issue(issue_id, lock=True)
        if issue.submitted_by_user_id != actor.id:
            raise NotOwnerError("You can only delete your own threads")
        if issue.status == IssueStatus.IN_PROGRESS:
            raise InvalidStateError("Cannot delete thread that is in progress")

        for model in (Comment, ThreadSecond, Notification, LeaderboardActivity):
            await self._session.execute(
                delete(model)
                .where(model.issue_id == issue.id)
                .execution_options(synchronize_session=False)
            )
        await self._session.delete(issue)
        await self._session.flush()
        logger.info(f"Issue {issue_id} deleted by user={actor.id}")
