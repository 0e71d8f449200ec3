"""Admin-Request Lifecycle: escalations from data science users to admins."""

import logging
from dataclasses import dataclass
from typing import Final, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import (
    AdminRequest,
    AdminRequestStatus,
    AdminRequestType,
    Dashboard,
    NotificationType,
    Team,
    User,
    UserRole,
)
from .errors import ForbiddenError, InvalidStateError, NotFoundError, NotOwnerError, ValidationError
from .issues import require_role
from .notifications import NotificationService
from .realtime import RealtimeEvent

logger = logging.getLogger(__name__)

CLOSED_STATUSES = frozenset({AdminRequestStatus.RESOLVED, AdminRequestStatus.REJECTED})


class _Unset:
    """Marker for a patch field the caller did not supply."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()


@dataclass
class CreateAdminRequestInput:
    request_type: str | None
    subject: str | None
    description: str | None
    dashboard_id: UUID | None = None
    team_id: UUID | None = None


@dataclass
class AdminRequestStatusPatch:
    """
    Status change with an optional response.

    ``admin_response`` left as UNSET keeps the stored response; ``None``
    clears it; a string replaces it.
    """
    status: AdminRequestStatus
    admin_response: str | None | _Unset = UNSET


class AdminRequestService:
    """Create, review and withdraw admin requests."""

    def __init__(
        self, session: AsyncSession, notifications: NotificationService | None = None
    ):
        self._session = session
        self._notifications = notifications or NotificationService(session)

    async def _get(self, request_id: UUID, lock: bool = False) -> AdminRequest:
        query = select(AdminRequest).where(AdminRequest.id == request_id)
        if lock:
            query = query.with_for_update()
        result = await self._session.execute(
            query.execution_options(populate_existing=True)
        )
        request = result.scalar_one_or_none()
        if request is None:
            raise NotFoundError("Request not found")
        return request

    async def _reload(self, request_id: UUID) -> AdminRequest:
        result = await self._session.execute(
            select(AdminRequest)
            .where(AdminRequest.id == request_id)
            .options(
                selectinload(AdminRequest.submitter),
                selectinload(AdminRequest.dashboard),
                selectinload(AdminRequest.team),
                selectinload(AdminRequest.resolved_by),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    # =========================================================================
    # READ
    # =========================================================================

    async def list_requests(
        self,
        actor: User,
        status: AdminRequestStatus | None = None,
        request_type: AdminRequestType | None = None,
    ) -> Sequence[AdminRequest]:
        """Data science users see their own requests; admins see all."""
        require_role(actor, UserRole.DATA_SCIENCE, UserRole.ADMIN)
        query = select(AdminRequest).options(
            selectinload(AdminRequest.submitter),
            selectinload(AdminRequest.dashboard),
            selectinload(AdminRequest.team),
            selectinload(AdminRequest.resolved_by),
        )
        if actor.role == UserRole.DATA_SCIENCE:
            query = query.where(AdminRequest.submitted_by_user_id == actor.id)
        if status is not None:
            query = query.where(AdminRequest.status == status)
        if request_type is not None:
            query = query.where(AdminRequest.request_type == request_type)

        result = await self._session.execute(query.order_by(AdminRequest.created_at.desc()))
        return result.scalars().all()

    async def get_request(self, request_id: UUID, actor: User) -> AdminRequest:
        require_role(actor, UserRole.DATA_SCIENCE, UserRole.ADMIN)
        request = await self._get(request_id)
        if actor.role == UserRole.DATA_SCIENCE and request.submitted_by_user_id != actor.id:
            raise ForbiddenError("Access denied")
        return await self._reload(request.id)

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    async def create_request(self, data: CreateAdminRequestInput, actor: User) -> AdminRequest:
        """Raise a request; every admin is notified."""
        require_role(actor, UserRole.DATA_SCIENCE)
        subject = (data.subject or "").strip()
        description = (data.description or "").strip()
        if not data.request_type or not subject or not description:
            raise ValidationError("Request type, subject, and description are required")
        try:
            request_type = AdminRequestType(data.request_type)
        except ValueError:
            raise ValidationError("Invalid request type")

        if data.dashboard_id is not None:
            if await self._session.get(Dashboard, data.dashboard_id) is None:
                raise NotFoundError("Dashboard not found")
        if data.team_id is not None:
            if await self._session.get(Team, data.team_id) is None:
                raise NotFoundError("Team not found")

        request = AdminRequest(
            submitted_by_user_id=actor.id,
            request_type=request_type,
            dashboard_id=data.dashboard_id,
            team_id=data.team_id or actor.team_id,
            subject=subject,
            description=description,
            status=AdminRequestStatus.PENDING,
        )
        self._session.add(request)
        await self._session.flush()
        logger.info(
            f"Admin request {request.id} ({request_type.value}) created by user={actor.id}"
        )

        await self._notifications.notify_admins(
            NotificationType.ADMIN_REQUEST,
            f"New admin request: {subject} from {actor.name}",
            event=RealtimeEvent.NEW_ADMIN_REQUEST,
            payload={"request_id": str(request.id), "subject": subject},
        )
        return await self._reload(request.id)

    async def update_status(
        self, request_id: UUID, patch: AdminRequestStatusPatch, actor: User
    ) -> AdminRequest:
        """
        Admin review step.

        A resolved or rejected request can only be reopened to in_progress.
        The acting admin is always recorded as the resolver.
        """
        require_role(actor, UserRole.ADMIN)
        request = await self._get(request_id, lock=True)

        old_status = request.status
        if (
            old_status in CLOSED_STATUSES
            and patch.status != old_status
            and patch.status != AdminRequestStatus.IN_PROGRESS
        ):
            raise InvalidStateError(
                f"A {old_status.value} request can only be reopened to in_progress"
            )

        request.status = patch.status
        if patch.admin_response is not UNSET:
            request.admin_response = patch.admin_response
        request.resolved_by_admin_id = actor.id
        request.touch()
        await self._session.flush()
        logger.info(
            f"Admin request {request.id} status {old_status.value} -> {patch.status.value} "
            f"by user={actor.id}"
        )

        await self._notifications.notify(
            request.submitted_by_user_id,
            NotificationType.ADMIN_REQUEST,
            f"Your admin request status has been updated to {patch.status.value}",
            event=RealtimeEvent.ADMIN_REQUEST_UPDATE,
            payload={"request_id": str(request.id), "status": patch.status.value},
        )
        return await self._reload(request.id)

    async def delete_request(self, request_id: UUID, actor: User) -> None:
        """Submitters withdraw their own pending requests; admins delete any."""
        require_role(actor, UserRole.DATA_SCIENCE, UserRole.ADMIN)
        request = await self._get(request_id, lock=True)

        if actor.role == UserRole.DATA_SCIENCE:
            if request.submitted_by_user_id != actor.id:
                raise NotOwnerError("You can only delete your own requests")
            if request.status != AdminRequestStatus.PENDING:
                raise InvalidStateError("You can only delete pending requests")

        await self._session.delete(request)
        await self._session.flush()
        logger.info(f"Admin request {request_id} deleted by user={actor.id}")

