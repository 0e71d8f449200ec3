"""Comment Subsystem: replies on a thread with role-based write gating."""

import logging
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import ActivityAction, Comment, NotificationType, User, UserRole
from .activity import ActivityService
from .errors import ForbiddenError, NotFoundError, NotOwnerError, ValidationError
from .issues import IssueEngine
from .notifications import NotificationService
from .realtime import RealtimeEvent

logger = logging.getLogger(__name__)


def comment_payload(comment: Comment, author: User) -> dict[str, Any]:
    return {
        "id": str(comment.id),
        "issue_id": str(comment.issue_id),
        "comment_text": comment.comment_text,
        "attachment_url": comment.attachment_url,
        "user_id": str(author.id),
        "user_name": author.name,
        "user_role": author.role.value,
    }


class CommentService:
    """Adds, edits and removes replies on issues."""

    def __init__(
        self, session: AsyncSession, notifications: NotificationService | None = None
    ):
        self._session = session
        self._notifications = notifications or NotificationService(session)
        self._issues = IssueEngine(session, self._notifications)
        self._activity = ActivityService(session)

    async def list_comments(self, issue_id: UUID) -> Sequence[Comment]:
        result = await self._session.execute(
            select(Comment)
            .where(Comment.issue_id == issue_id)
            .options(selectinload(Comment.author))
            .order_by(Comment.created_at.asc())
        )
        return result.scalars().all()

    async def _get_comment(self, comment_id: UUID) -> Comment:
        result = await self._session.execute(
            select(Comment)
            .where(Comment.id == comment_id)
            .options(selectinload(Comment.author))
            .execution_options(populate_existing=True)
        )
        comment = result.scalar_one_or_none()
        if comment is None:
            raise NotFoundError("Comment not found")
        return comment

    async def add_comment(
        self,
        issue_id: UUID | None,
        author: User,
        comment_text: str | None,
        attachment_url: str | None = None,
    ) -> Comment:
        """
        Post a reply.

        Business users may only reply to their own threads. A data science
        reply on a pending thread starts work on it.
        """
        text = (comment_text or "").strip()
        if not issue_id or not text:
            raise ValidationError("Issue ID and comment text are required")

        issue = await self._issues.get_issue(issue_id, lock=True)
        if author.role == UserRole.BUSINESS and issue.submitted_by_user_id != author.id:
            raise ForbiddenError("You can only reply to your own threads")

        if author.role == UserRole.DATA_SCIENCE:
            await self._issues.promote_if_pending(
                issue, author, "Your thread status has been updated to in_progress"
            )

        comment = Comment(
            issue_id=issue.id,
            user_id=author.id,
            comment_text=text,
            attachment_url=attachment_url or None,
        )
        self._session.add(comment)
        issue.touch()
        await self._session.flush()
        logger.info(f"Comment {comment.id} added to issue={issue.id} by user={author.id}")

        payload = {"issue_id": str(issue.id), "comment": comment_payload(comment, author)}
        if author.role == UserRole.DATA_SCIENCE:
            await self._notifications.notify(
                issue.submitted_by_user_id,
                NotificationType.REPLY,
                f"{author.name} replied to your thread",
                issue_id=issue.id,
                event=RealtimeEvent.NEW_REPLY,
                payload=payload,
            )
            await self._activity.record(author.id, issue.id, ActivityAction.RESPONDED)
        elif issue.assigned_team_id is not None:
            await self._notifications.notify_team(
                issue.assigned_team_id,
                NotificationType.REPLY,
                f"{author.name} replied to a thread",
                issue_id=issue.id,
                event=RealtimeEvent.NEW_REPLY,
                payload=payload,
            )

        return await self._get_comment(comment.id)

    async def edit_comment(self, comment_id: UUID, author: User, comment_text: str | None) -> Comment:
        comment = await self._get_comment(comment_id)
        if comment.user_id != author.id:
            raise NotOwnerError("You can only edit your own comments")
        text = (comment_text or "").strip()
        if not text:
            raise ValidationError("Comment text is required")

        comment.comment_text = text
        comment.touch()
        await self._session.flush()
        return await self._get_comment(comment.id)

    async def delete_comment(self, comment_id: UUID, author: User) -> None:
        comment = await self._get_comment(comment_id)
        if comment.user_id != author.id:
            raise NotOwnerError("You can only delete your own comments")

        await self._session.delete(comment)
        await self._session.flush()
        logger.info(f"Comment {comment_id} deleted by user={author.id}")
