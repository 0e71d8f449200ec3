"""Comment API routes."""

from uuid import UUID

from fastapi import APIRouter, status

from ..core.dependencies import CurrentUserDep, NotificationsDep, SessionDep
from ..schemas import (
    CommentCreate,
    CommentEnvelope,
    CommentListResponse,
    CommentResponse,
    CommentUpdate,
    MessageResponse,
)
from ..services import CommentService

router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("/issue/{issue_id}", response_model=CommentListResponse)
async def list_comments(
    issue_id: UUID,
    current_user: CurrentUserDep,
    session: SessionDep,
):
    comments = await CommentService(session).list_comments(issue_id)
    return CommentListResponse(comments=[CommentResponse.from_model(c) for c in comments])


@router.post("", response_model=CommentEnvelope, status_code=status.HTTP_201_CREATED)
async def create_comment(
    request: CommentCreate,
    current_user: CurrentUserDep,
    session: SessionDep,
    notifications: NotificationsDep,
):
    """Reply to a thread. Business users may only reply to their own threads."""
    comment = await CommentService(session, notifications).add_comment(
        request.issue_id,
        current_user.user,
        request.comment_text,
        attachment_url=request.attachment_url,
    )
    return CommentEnvelope(comment=CommentResponse.from_model(comment))


@router.put("/{comment_id}", response_model=CommentEnvelope)
async def update_comment(
    comment_id: UUID,
    request: CommentUpdate,
    current_user: CurrentUserDep,
    session: SessionDep,
    notifications: NotificationsDep,
):
    comment = await CommentService(session, notifications).edit_comment(
        comment_id, current_user.user, request.comment_text
    )
    return CommentEnvelope(comment=CommentResponse.from_model(comment))


@router.delete("/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: UUID,
    current_user: CurrentUserDep,
    session: SessionDep,
    notifications: NotificationsDep,
):
    await CommentService(session, notifications).delete_comment(comment_id, current_user.user)
    return MessageResponse(message="Comment deleted successfully")
