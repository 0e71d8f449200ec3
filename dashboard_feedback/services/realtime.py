"""
Realtime Connection Hub: per-user rooms for live event delivery.

Usage:
    from dashboard_feedback.services.realtime import get_hub

    connection = hub.join(user_id)
    ...
    message = await connection.queue.get()
    ...
    hub.leave(connection)

Architecture:
    - Every authenticated socket joins exactly one room, keyed by its user id
    - Each connection owns a bounded asyncio.Queue; publishing never awaits
    - A full queue drops the event for that connection only; the persisted
      notification row remains the durable record
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID

logger = logging.getLogger(__name__)


class RealtimeEvent(str, Enum):
    """Event names pushed to a user's room."""

    NEW_ISSUE = "new-issue"
    ISSUE_ASSIGNED = "issue-assigned"
    STATUS_UPDATE = "status-update"
    NEW_REPLY = "new-reply"
    NEW_ADMIN_REQUEST = "new-admin-request"
    ADMIN_REQUEST_UPDATE = "admin-request-update"


@dataclass(eq=False)
class Connection:
    """One live socket registered in a user's room."""

    user_id: UUID
    queue: asyncio.Queue
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ConnectionHub:
    """
    Tracks live connections per user and fans events out to them.

    All methods are synchronous and run on the event loop thread, so the
    room mapping needs no lock.
    """

    def __init__(self, queue_size: int = 100):
        self._queue_size = queue_size
        # user_id -> set of connections
        self._rooms: dict[UUID, set[Connection]] = {}

    def join(self, user_id: UUID) -> Connection:
        """Register a new connection in the room of ``user_id``."""
        connection = Connection(user_id=user_id, queue=asyncio.Queue(maxsize=self._queue_size))
        self._rooms.setdefault(user_id, set()).add(connection)
        logger.info(
            f"Realtime connection joined: user={user_id}, "
            f"room_connections={len(self._rooms[user_id])}"
        )
        return connection

    def leave(self, connection: Connection) -> None:
        """Remove a connection; empty rooms are dropped."""
        room = self._rooms.get(connection.user_id)
        if room is None:
            return
        room.discard(connection)
        if not room:
            del self._rooms[connection.user_id]
        logger.info(f"Realtime connection left: user={connection.user_id}")

    def publish(self, user_id: UUID, event: RealtimeEvent, payload: dict[str, Any]) -> int:
        """
        Queue an event for every connection in the user's room.

        Returns:
            Number of connections the event was queued for. Zero when the
            user is offline.
        """
        room = self._rooms.get(user_id)
        if not room:
            return 0

        message = {"type": event.value, "payload": payload}
        delivered = 0
        for connection in list(room):
            try:
                connection.queue.put_nowait(message)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(
                    f"Dropped {event.value} event for user={user_id}: connection queue full"
                )
        return delivered

    def connection_count(self, user_id: UUID | None = None) -> int:
        if user_id is not None:
            return len(self._rooms.get(user_id, ()))
        return sum(len(room) for room in self._rooms.values())


# Process-wide hub shared by the API and the socket endpoint
hub = ConnectionHub()


def get_hub() -> ConnectionHub:
    """Dependency returning the process-wide hub."""
    return hub
