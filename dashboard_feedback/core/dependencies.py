"""FastAPI dependencies for authentication, authorization, and services."""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import User, UserRole
from ..services.notifications import NotificationService
from ..services.realtime import ConnectionHub, get_hub
from .database import get_session
from .security import decode_token

logger = logging.getLogger(__name__)

# Security scheme
bearer_scheme = HTTPBearer(auto_error=False)


class CurrentUser:
    """Represents the authenticated caller."""

    def __init__(self, user: User):
        self.user = user

    @property
    def id(self) -> UUID:
        return self.user.id

    @property
    def role(self) -> UserRole:
        return self.user.role

    @property
    def team_id(self) -> UUID | None:
        return self.user.team_id

    @property
    def is_admin(self) -> bool:
        return self.user.role == UserRole.ADMIN


async def get_current_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CurrentUser:
    """Dependency to get the current authenticated user from a bearer JWT."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(credentials.credentials)
    if not payload or payload.type != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = UUID(payload.sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    return CurrentUser(user=user)


def require_roles(*roles: UserRole):
    """Build a dependency that admits only callers holding one of ``roles``."""

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if current_user.role not in roles:
            logger.info(
                f"Rejected user={current_user.id} ({current_user.role.value}): "
                f"requires {[r.value for r in roles]}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return dependency


async def get_notification_service(
    session: Annotated[AsyncSession, Depends(get_session)],
    hub: Annotated[ConnectionHub, Depends(get_hub)],
) -> AsyncGenerator[NotificationService, None]:
    """
    Notification emitter bound to the request's session.

    Live pushes are released only once the request's transaction committed.
    A failed commit propagates to ``get_session``, which rolls back, and
    the buffered pushes are dropped.
    """
    service = NotificationService(session, hub)
    yield service
    await session.commit()
    service.dispatch()


# Type aliases for cleaner dependency injection
SessionDep = Annotated[AsyncSession, Depends(get_session)]
CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]
BusinessDep = Annotated[CurrentUser, Depends(require_roles(UserRole.BUSINESS))]
DataScienceDep = Annotated[CurrentUser, Depends(require_roles(UserRole.DATA_SCIENCE))]
AdminDep = Annotated[CurrentUser, Depends(require_roles(UserRole.ADMIN))]
StaffDep = Annotated[
    CurrentUser, Depends(require_roles(UserRole.DATA_SCIENCE, UserRole.ADMIN))
]
NotificationsDep = Annotated[NotificationService, Depends(get_notification_service)]
