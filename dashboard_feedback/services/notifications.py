"""Notification Emitter: durable notification rows plus best-effort live pushes.

The row is the authoritative record. It is written inside a SAVEPOINT, so a
failed write for one recipient is logged and skipped without touching the
caller's mutation or the other recipients. Live pushes are buffered and only
handed to the connection hub by ``dispatch()``, which the API layer calls
after the request's work succeeded.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.config import get_settings
from ..models import Issue, Notification, NotificationType, User, UserRole
from .errors import NotFoundError
from .realtime import ConnectionHub, RealtimeEvent

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class PendingPush:
    """A live event waiting for the request to finish."""
    user_id: UUID
    event: RealtimeEvent
    payload: dict[str, Any] = field(default_factory=dict)


class NotificationService:
    """Writes notifications and queues their live pushes."""

    def __init__(self, session: AsyncSession, hub: ConnectionHub | None = None):
        self._session = session
        self._hub = hub
        self.pending_events: list[PendingPush] = []

    # =========================================================================
    # EMIT
    # =========================================================================

    async def notify(
        self,
        recipient_id: UUID,
        notification_type: NotificationType,
        message: str,
        issue_id: UUID | None = None,
        event: RealtimeEvent | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Notification | None:
        """
        Persist one notification and queue its push.

        Returns None when the row could not be written. The failure never
        propagates to the caller.
        """
        notification = Notification(
            user_id=recipient_id,
            issue_id=issue_id,
            type=notification_type,
            message=message,
            is_read=False,
        )
        try:
            async with self._session.begin_nested():
                self._session.add(notification)
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to write {notification_type.value} notification "
                f"for user={recipient_id}: {e}"
            )
            return None

        if event is not None:
            self.push(recipient_id, event, payload)
        return notification

    def push(
        self,
        recipient_id: UUID,
        event: RealtimeEvent,
        payload: dict[str, Any] | None = None,
    ) -> None:
        """Queue a live event without a persisted row."""
        self.pending_events.append(PendingPush(recipient_id, event, dict(payload or {})))

    async def notify_many(
        self,
        recipient_ids: Iterable[UUID],
        notification_type: NotificationType,
        message: str,
        issue_id: UUID | None = None,
        event: RealtimeEvent | None = None,
        payload: dict[str, Any] | None = None,
    ) -> list[Notification]:
        """Notify each distinct recipient once; failures skip only that recipient."""
        written: list[Notification] = []
        seen: set[UUID] = set()
        for recipient_id in recipient_ids:
            if recipient_id in seen:
                continue
            seen.add(recipient_id)
            notification = await self.notify(
                recipient_id,
                notification_type,
                message,
                issue_id=issue_id,
                event=event,
                payload=payload,
            )
            if notification is not None:
                written.append(notification)
        return written

    async def notify_team(
        self,
        team_id: UUID,
        notification_type: NotificationType,
        message: str,
        issue_id: UUID | None = None,
        event: RealtimeEvent | None = None,
        payload: dict[str, Any] | None = None,
    ) -> list[Notification]:
        """Fan a single logical event out to every member of a team."""
        result = await self._session.execute(
            select(User.id).where(User.team_id == team_id).order_by(User.name)
        )
        return await self.notify_many(
            result.scalars().all(),
            notification_type,
            message,
            issue_id=issue_id,
            event=event,
            payload=payload,
        )

    async def notify_admins(
        self,
        notification_type: NotificationType,
        message: str,
        event: RealtimeEvent | None = None,
        payload: dict[str, Any] | None = None,
    ) -> list[Notification]:
        result = await self._session.execute(
            select(User.id).where(User.role == UserRole.ADMIN).order_by(User.name)
        )
        return await self.notify_many(
            result.scalars().all(),
            notification_type,
            message,
            event=event,
            payload=payload,
        )

    def dispatch(self) -> int:
        """Hand buffered pushes to the hub. Returns the number of deliveries."""
        pending, self.pending_events = self.pending_events, []
        if self._hub is None:
            return 0

        delivered = 0
        for push in pending:
            try:
                delivered += self._hub.publish(push.user_id, push.event, push.payload)
            except Exception as e:
                logger.warning(
                    f"Realtime push {push.event.value} to user={push.user_id} failed: {e}"
                )
        return delivered

    # =========================================================================
    # READ STATE
    # =========================================================================

    async def list_for_user(
        self,
        user_id: UUID,
        is_read: bool | None = None,
        limit: int | None = None,
    ) -> Sequence[Notification]:
        """Newest notifications first, with the referenced issue's dashboard."""
        query = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .options(selectinload(Notification.issue).selectinload(Issue.dashboard))
            .order_by(Notification.created_at.desc())
            .limit(limit or settings.notification_list_limit)
            .execution_options(populate_existing=True)
        )
        if is_read is not None:
            query = query.where(Notification.is_read == is_read)

        result = await self._session.execute(query)
        return result.scalars().all()

    async def mark_read(self, notification_id: UUID, user_id: UUID) -> Notification:
        """Mark one notification read. Only the recipient may do so."""
        result = await self._session.execute(
            select(Notification)
            .where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
            .options(selectinload(Notification.issue).selectinload(Issue.dashboard))
            .execution_options(populate_existing=True)
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            raise NotFoundError("Notification not found")

        notification.is_read = True
        await self._session.flush()
        return notification

    async def mark_all_read(self, user_id: UUID) -> int:
        result = await self._session.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def unread_count(self, user_id: UUID) -> int:
        result = await self._session.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
        )
        return result.scalar_one()
