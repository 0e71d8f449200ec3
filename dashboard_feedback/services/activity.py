"""Leaderboard activity recording."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import ActivityAction, LeaderboardActivity

logger = logging.getLogger(__name__)


class ActivityService:
    """Records contributions once per (user, issue, action)."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def record(self, user_id: UUID, issue_id: UUID, action: ActivityAction) -> bool:
        """Insert the activity row unless it exists. Returns True if written."""
        result = await self._session.execute(
            select(LeaderboardActivity.id).where(
                LeaderboardActivity.user_id == user_id,
                LeaderboardActivity.issue_id == issue_id,
                LeaderboardActivity.action == action,
            )
        )
        if result.scalar_one_or_none() is not None:
            return False

        try:
            async with self._session.begin_nested():
                self._session.add(
                    LeaderboardActivity(user_id=user_id, issue_id=issue_id, action=action)
                )
        except IntegrityError:
            # Concurrent request recorded the same activity
            logger.debug(f"Activity {action.value} already recorded for user={user_id}")
            return False
        return True
