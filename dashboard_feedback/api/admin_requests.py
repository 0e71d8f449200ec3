"""Admin request API routes."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from ..core.dependencies import AdminDep, DataScienceDep, NotificationsDep, SessionDep, StaffDep
from ..models import AdminRequestStatus, AdminRequestType
from ..schemas import (
    AdminRequestCreate,
    AdminRequestEnvelope,
    AdminRequestListResponse,
    AdminRequestResponse,
    AdminRequestStatusUpdate,
    MessageResponse,
)
from ..services import AdminRequestService, CreateAdminRequestInput

router = APIRouter(prefix="/admin-requests", tags=["admin-requests"])


@router.get("", response_model=AdminRequestListResponse)
async def list_requests(
    current_user: StaffDep,
    session: SessionDep,
    status_filter: AdminRequestStatus | None = Query(default=None, alias="status"),
    request_type: AdminRequestType | None = None,
):
    """Data science users see their own requests; admins see all."""
    requests = await AdminRequestService(session).list_requests(
        current_user.user, status=status_filter, request_type=request_type
    )
    return AdminRequestListResponse(
        requests=[AdminRequestResponse.from_model(r) for r in requests]
    )


@router.get("/{request_id}", response_model=AdminRequestEnvelope)
async def get_request(
    request_id: UUID,
    current_user: StaffDep,
    session: SessionDep,
):
    request = await AdminRequestService(session).get_request(
        request_id, current_user.user
    )
    return AdminRequestEnvelope(request=AdminRequestResponse.from_model(request))


@router.post("", response_model=AdminRequestEnvelope, status_code=status.HTTP_201_CREATED)
async def create_request(
    body: AdminRequestCreate,
    current_user: DataScienceDep,
    session: SessionDep,
    notifications: NotificationsDep,
):
    request = await AdminRequestService(session, notifications).create_request(
        CreateAdminRequestInput(
            request_type=body.request_type,
            subject=body.subject,
            description=body.description,
            dashboard_id=body.dashboard_id,
            team_id=body.team_id,
        ),
        current_user.user,
    )
    return AdminRequestEnvelope(request=AdminRequestResponse.from_model(request))


@router.patch("/{request_id}/status", response_model=AdminRequestEnvelope)
async def update_request_status(
    request_id: UUID,
    body: AdminRequestStatusUpdate,
    current_user: AdminDep,
    session: SessionDep,
    notifications: NotificationsDep,
):
    """Omitting ``admin_response`` keeps the previous response."""
    request = await AdminRequestService(session, notifications).update_status(
        request_id, body.to_patch(), current_user.user
    )
    return AdminRequestEnvelope(request=AdminRequestResponse.from_model(request))


@router.delete("/{request_id}", response_model=MessageResponse)
async def delete_request(
    request_id: UUID,
    current_user: StaffDep,
    session: SessionDep,
    notifications: NotificationsDep,
):
    await AdminRequestService(session, notifications).delete_request(
        request_id, current_user.user
    )
    return MessageResponse(message="Request deleted successfully")
