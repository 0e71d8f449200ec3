"""Thread-Second Ledger: who seconded which thread, and the derived priority."""

from typing import Iterable
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Issue, ThreadSecond
from .errors import AlreadySecondedError

ALREADY_SECONDED = "You have already seconded this thread"


def second_count_subquery():
    """Grouped per-issue second counts, for joining into list queries."""
    return (
        select(
            ThreadSecond.issue_id.label("issue_id"),
            func.count(func.distinct(ThreadSecond.user_id)).label("second_count"),
        )
        .group_by(ThreadSecond.issue_id)
        .subquery()
    )


class SecondLedger:
    """Maintains the (issue, user) second relation."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def is_seconded(self, issue_id: UUID, user_id: UUID) -> bool:
        """Pure membership query."""
        result = await self._session.execute(
            select(ThreadSecond.id).where(
                ThreadSecond.issue_id == issue_id,
                ThreadSecond.user_id == user_id,
            )
        )
        return result.first() is not None

    async def seconded_issue_ids(self, user_id: UUID, issue_ids: Iterable[UUID]) -> set[UUID]:
        ids = list(issue_ids)
        if not ids:
            return set()
        result = await self._session.execute(
            select(ThreadSecond.issue_id).where(
                ThreadSecond.user_id == user_id,
                ThreadSecond.issue_id.in_(ids),
            )
        )
        return set(result.scalars().all())

    async def count(self, issue_id: UUID) -> int:
        result = await self._session.execute(
            select(func.count(func.distinct(ThreadSecond.user_id))).where(
                ThreadSecond.issue_id == issue_id
            )
        )
        return result.scalar_one()

    async def add(self, issue_id: UUID, user_id: UUID) -> ThreadSecond:
        """Insert a ledger row; a duplicate pair raises AlreadySecondedError."""
        second = ThreadSecond(issue_id=issue_id, user_id=user_id)
        try:
            async with self._session.begin_nested():
                self._session.add(second)
        except IntegrityError:
            raise AlreadySecondedError(ALREADY_SECONDED)
        return second

    async def recompute_priority(self, issue: Issue) -> int:
        """Set priority to the distinct seconder count, never below 1."""
        issue.priority = max(1, await self.count(issue.id))
        return issue.priority
