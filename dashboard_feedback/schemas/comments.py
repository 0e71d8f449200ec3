"""Pydantic schemas for thread replies."""

from uuid import UUID

from pydantic import Field

from ..models import Comment
from .base import FeedbackBaseModel, TimestampMixin, UserRole


class CommentCreate(FeedbackBaseModel):
    issue_id: UUID | None = None
    comment_text: str | None = None
    attachment_url: str | None = Field(default=None, max_length=1000)


class CommentUpdate(FeedbackBaseModel):
    comment_text: str | None = None


class CommentResponse(FeedbackBaseModel, TimestampMixin):
    """A reply with its author's name and role."""

    id: UUID
    issue_id: UUID
    user_id: UUID
    user_name: str | None = None
    user_role: UserRole | None = None
    comment_text: str
    attachment_url: str | None = None

    @classmethod
    def from_model(cls, comment: Comment) -> "CommentResponse":
        return cls(
            id=comment.id,
            issue_id=comment.issue_id,
            user_id=comment.user_id,
            user_name=comment.author.name if comment.author else None,
            user_role=comment.author.role if comment.author else None,
            comment_text=comment.comment_text,
            attachment_url=comment.attachment_url,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )


class CommentEnvelope(FeedbackBaseModel):
    comment: CommentResponse


class CommentListResponse(FeedbackBaseModel):
    comments: list[CommentResponse]
