"""Pydantic schemas for admin requests."""

from uuid import UUID

from pydantic import Field

from ..models import AdminRequest
from ..services.admin_requests import UNSET, AdminRequestStatusPatch
from .base import AdminRequestStatus, AdminRequestType, FeedbackBaseModel, TimestampMixin


class AdminRequestCreate(FeedbackBaseModel):
    """Request body for a new admin request.

    ``request_type`` stays a plain string so an unknown value gets the
    service's "Invalid request type" message.
    """

    request_type: str | None = None
    subject: str | None = Field(default=None, max_length=500)
    description: str | None = None
    dashboard_id: UUID | None = None
    team_id: UUID | None = None


class AdminRequestStatusUpdate(FeedbackBaseModel):
    status: AdminRequestStatus
    admin_response: str | None = None

    def to_patch(self) -> AdminRequestStatusPatch:
        """Omitted ``admin_response`` keeps the stored value; explicit null clears it."""
        admin_response = (
            self.admin_response if "admin_response" in self.model_fields_set else UNSET
        )
        return AdminRequestStatusPatch(
            status=AdminRequestStatus(self.status),
            admin_response=admin_response,
        )


class AdminRequestResponse(FeedbackBaseModel, TimestampMixin):
    id: UUID
    submitted_by_user_id: UUID
    submitted_by_name: str | None = None
    submitted_by_email: str | None = None
    request_type: AdminRequestType
    dashboard_id: UUID | None = None
    dashboard_name: str | None = None
    team_id: UUID | None = None
    team_name: str | None = None
    subject: str
    description: str
    status: AdminRequestStatus
    admin_response: str | None = None
    resolved_by_admin_id: UUID | None = None
    resolved_by_name: str | None = None

    @classmethod
    def from_model(cls, request: AdminRequest) -> "AdminRequestResponse":
        return cls(
            id=request.id,
            submitted_by_user_id=request.submitted_by_user_id,
            submitted_by_name=request.submitter.name if request.submitter else None,
            submitted_by_email=request.submitter.email if request.submitter else None,
            request_type=request.request_type,
            dashboard_id=request.dashboard_id,
            dashboard_name=request.dashboard.name if request.dashboard else None,
            team_id=request.team_id,
            team_name=request.team.name if request.team else None,
            subject=request.subject,
            description=request.description,
            status=request.status,
            admin_response=request.admin_response,
            resolved_by_admin_id=request.resolved_by_admin_id,
            resolved_by_name=request.resolved_by.name if request.resolved_by else None,
            created_at=request.created_at,
            updated_at=request.updated_at,
        )


class AdminRequestEnvelope(FeedbackBaseModel):
    request: AdminRequestResponse


class AdminRequestListResponse(FeedbackBaseModel):
    requests: list[AdminRequestResponse]
