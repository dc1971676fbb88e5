"""
User Roster

Which users a report over a date range has to account for.
"""
from datetime import date
from typing import List, Optional

from sqlalchemy import exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.task_log import TaskLog
from ..models.user import User


class UserRoster:
    """Reads the users table for reporting."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, user_id: str) -> Optional[User]:
        """Non-deleted user by id."""
        stmt = select(User).where(User.id == user_id, User.deleted.is_(False))
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_all(self) -> List[User]:
        stmt = select(User).where(User.deleted.is_(False)).order_by(User.name, User.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_active_or_relevant(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[User]:
        """
        Non-deleted users to show for a range, ordered by name.

        Active users are always included. Inactive users only when they
        have at least one non-deleted log inside the range.
        """
        log_conditions = [TaskLog.user_id == User.id, TaskLog.deleted.is_(False)]
        if start_date is not None:
            log_conditions.append(TaskLog.date >= start_date)
        if end_date is not None:
            log_conditions.append(TaskLog.date <= end_date)
        has_logs = exists().where(*log_conditions)

        stmt = (
            select(User)
            .where(User.deleted.is_(False), or_(User.active.is_(True), has_logs))
            .order_by(User.name, User.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
