"""Tests for replies: write gating, automatic promotion and recipients."""

from uuid import uuid4

import pytest
from sqlalchemy import select

from dashboard_feedback.models import (
    ActivityAction,
    IssueStatus,
    LeaderboardActivity,
    Notification,
    NotificationType,
)
from dashboard_feedback.services import (
    CommentService,
    ForbiddenError,
    NotFoundError,
    NotOwnerError,
    ValidationError,
)


@pytest.fixture
def comments(session, notifications) -> CommentService:
    return CommentService(session, notifications)


async def notifications_for(session, user_id):
    result = await session.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at)
    )
    return list(result.scalars().all())


class TestAddComment:

    async def test_business_reply_restricted_to_own_thread(
        self, factory, comments, business_user, other_business_user, dashboard
    ):
        issue = await factory.issue(other_business_user, dashboard)

        with pytest.raises(ForbiddenError) as exc_info:
            await comments.add_comment(issue.id, business_user, "Same here")
        assert exc_info.value.message == "You can only reply to your own threads"

    async def test_business_reply_notifies_assigned_team(
        self, session, factory, comments, business_user, dashboard, data_scientist, teammate
    ):
        issue = await factory.issue(business_user, dashboard)

        comment = await comments.add_comment(issue.id, business_user, "Still broken")

        assert comment.author.name == "Dana Ruiz"
        for member in (data_scientist, teammate):
            rows = await notifications_for(session, member.id)
            assert [(n.type, n.message) for n in rows] == [
                (NotificationType.REPLY, "Dana Ruiz replied to a thread")
            ]
        assert (await comments._issues.get_issue(issue.id)).status == IssueStatus.PENDING

    async def test_data_science_reply_promotes_pending_issue(
        self, session, factory, comments, business_user, data_scientist, dashboard
    ):
        issue = await factory.issue(business_user, dashboard)

        await comments.add_comment(issue.id, data_scientist, "Looking into it")

        assert (await comments._issues.get_issue(issue.id)).status == IssueStatus.IN_PROGRESS
        rows = await notifications_for(session, business_user.id)
        assert [(n.type, n.message) for n in rows] == [
            (
                NotificationType.STATUS_CHANGE,
                "Your thread status has been updated to in_progress",
            ),
            (NotificationType.REPLY, "Bob Nguyen replied to your thread"),
        ]

    async def test_data_science_reply_on_started_issue_only_notifies_reply(
        self, session, factory, comments, business_user, data_scientist, dashboard
    ):
        issue = await factory.issue(business_user, dashboard, status=IssueStatus.IN_PROGRESS)

        await comments.add_comment(issue.id, data_scientist, "Fix deployed")

        rows = await notifications_for(session, business_user.id)
        assert [n.type for n in rows] == [NotificationType.REPLY]

    async def test_data_science_reply_records_activity_once(
        self, session, factory, comments, business_user, data_scientist, dashboard
    ):
        issue = await factory.issue(business_user, dashboard)

        await comments.add_comment(issue.id, data_scientist, "First")
        await comments.add_comment(issue.id, data_scientist, "Second")

        result = await session.execute(
            select(LeaderboardActivity).where(LeaderboardActivity.issue_id == issue.id)
        )
        activity = result.scalars().all()
        assert [(a.user_id, a.action) for a in activity] == [
            (data_scientist.id, ActivityAction.RESPONDED)
        ]

    async def test_admin_reply_does_not_promote(
        self, factory, comments, business_user, admin, dashboard
    ):
        issue = await factory.issue(business_user, dashboard)

        await comments.add_comment(issue.id, admin, "Routing this")

        assert (await comments._issues.get_issue(issue.id)).status == IssueStatus.PENDING

    async def test_reply_requires_text(self, factory, comments, business_user, dashboard):
        issue = await factory.issue(business_user, dashboard)

        with pytest.raises(ValidationError) as exc_info:
            await comments.add_comment(issue.id, business_user, "  ")
        assert exc_info.value.message == "Issue ID and comment text are required"

    async def test_reply_to_unknown_issue(self, comments, data_scientist):
        with pytest.raises(NotFoundError):
            await comments.add_comment(uuid4(), data_scientist, "Hello")

    async def test_list_in_posting_order(
        self, factory, comments, business_user, data_scientist, dashboard
    ):
        issue = await factory.issue(business_user, dashboard)
        await comments.add_comment(issue.id, business_user, "One")
        await comments.add_comment(issue.id, data_scientist, "Two")

        listed = await comments.list_comments(issue.id)
        assert [c.comment_text for c in listed] == ["One", "Two"]


class TestEditDeleteComment:

    async def test_only_author_edits(
        self, factory, comments, business_user, data_scientist, dashboard
    ):
        issue = await factory.issue(business_user, dashboard)
        comment = await comments.add_comment(issue.id, business_user, "Typo")

        with pytest.raises(NotOwnerError) as exc_info:
            await comments.edit_comment(comment.id, data_scientist, "Hijacked")
        assert exc_info.value.message == "You can only edit your own comments"

        edited = await comments.edit_comment(comment.id, business_user, "Fixed typo")
        assert edited.comment_text == "Fixed typo"

    async def test_only_author_deletes(
        self, factory, comments, business_user, data_scientist, dashboard
    ):
        issue = await factory.issue(business_user, dashboard)
        comment = await comments.add_comment(issue.id, business_user, "Oops")

        with pytest.raises(NotOwnerError) as exc_info:
            await comments.delete_comment(comment.id, data_scientist)
        assert exc_info.value.message == "You can only delete your own comments"

        await comments.delete_comment(comment.id, business_user)
        assert await comments.list_comments(issue.id) == []

    async def test_unknown_comment(self, comments, business_user):
        with pytest.raises(NotFoundError) as exc_info:
            await comments.edit_comment(uuid4(), business_user, "Text")
        assert exc_info.value.message == "Comment not found"
