"""Base schemas and common types for the Dashboard Feedback API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from ..models import (
    AdminRequestStatus,
    AdminRequestType,
    IssueStatus,
    NotificationType,
    UserRole,
)


# =============================================================================
# BASE SCHEMAS
# =============================================================================


class FeedbackBaseModel(BaseModel):
    """Base model with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,  # Enable ORM mode
        populate_by_name=True,
        use_enum_values=True,
    )


class TimestampMixin(BaseModel):
    """Mixin for created/updated timestamps."""

    created_at: datetime
    updated_at: datetime | None = None


class MessageResponse(FeedbackBaseModel):
    message: str


# =============================================================================
# ERROR RESPONSES
# =============================================================================


class ErrorResponse(FeedbackBaseModel):
    """Standard error response format."""

    error: str
    message: str
    details: Any | None = None


# =============================================================================
# COMMON REFERENCE SCHEMAS
# =============================================================================


class UserRef(FeedbackBaseModel):
    """Minimal user reference for embedding in responses."""

    id: UUID
    name: str
    email: str
    role: UserRole
    team_id: UUID | None = None


__all__ = [
    "AdminRequestStatus",
    "AdminRequestType",
    "IssueStatus",
    "NotificationType",
    "UserRole",
    "FeedbackBaseModel",
    "TimestampMixin",
    "MessageResponse",
    "ErrorResponse",
    "UserRef",
]
