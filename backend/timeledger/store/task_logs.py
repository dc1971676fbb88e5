"""
Task Log Store

Persistence primitives for task logs: point lookups, the (user, date)
upsert, filtered listing, the project x role hour aggregation and
delete. Business rules live in the services; this layer only talks to
the database.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import and_, func, literal, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..errors import ConflictError
from ..models.project import Project
from ..models.task_log import TaskLog, TaskLogEntry
from ..models.user import User, UserRole

logger = logging.getLogger(__name__)

UNASSIGNED_BUCKET = "Unassigned"


@dataclass
class EntryFields:
    """Column values for one entry to be written."""
    project_id: Optional[str]
    project_name: Optional[str]
    hours: float
    description: Optional[str] = None


@dataclass
class HoursRow:
    """One (project, role) bucket of the hour aggregation."""
    project: str
    role: UserRole
    hours: float


def _date_conditions(start_date: Optional[date], end_date: Optional[date]) -> list:
    conditions = []
    if start_date is not None:
        conditions.append(TaskLog.date >= start_date)
    if end_date is not None:
        conditions.append(TaskLog.date <= end_date)
    return conditions


class TaskLogStore:
    """Task log persistence on an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _loaded(self):
        return select(TaskLog).options(
            selectinload(TaskLog.entries),
            selectinload(TaskLog.user),
        ).execution_options(populate_existing=True)

    async def find_by_id(self, task_log_id: str) -> Optional[TaskLog]:
        stmt = self._loaded().where(TaskLog.id == task_log_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_user_and_date(self, user_id: str, day: date) -> Optional[TaskLog]:
        stmt = self._loaded().where(TaskLog.user_id == user_id, TaskLog.date == day)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_filter(
        self,
        user_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_deleted: bool = False,
    ) -> List[TaskLog]:
        """Logs matching the filters, newest first."""
        conditions = _date_conditions(start_date, end_date)
        if user_id is not None:
            conditions.append(TaskLog.user_id == user_id)
        if not include_deleted:
            conditions.append(TaskLog.deleted.is_(False))

        stmt = (
            self._loaded()
            .where(*conditions)
            .order_by(TaskLog.date.desc(), TaskLog.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def logs_of_live_users(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[TaskLog]:
        """Non-deleted logs in range whose owner is not deleted, oldest first."""
        stmt = (
            self._loaded()
            .join(User, User.id == TaskLog.user_id)
            .where(
                TaskLog.deleted.is_(False),
                User.deleted.is_(False),
                *_date_conditions(start_date, end_date),
            )
            .order_by(TaskLog.date, TaskLog.created_at)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def upsert(
        self,
        user_id: str,
        day: date,
        total_hours: float,
        entries: Sequence[EntryFields],
    ) -> Tuple[TaskLog, bool]:
        """
        Create the (user, date) log or replace the existing one.

        Returns:
            (task_log, is_update)

        Raises:
            ConflictError: another writer inserted the same pair first
        """
        existing = await self.find_by_user_and_date(user_id, day)
        is_update = existing is not None

        if existing is not None:
            task_log = existing
            task_log.total_hours = total_hours
            task_log.deleted = False
            task_log.entries = self._build_entries(entries)
        else:
            task_log = TaskLog(
                user_id=user_id,
                date=day,
                total_hours=total_hours,
                entries=self._build_entries(entries),
            )
            self.db.add(task_log)

        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Write conflict on task log ({user_id}, {day}): {e.orig}")
            raise ConflictError(
                f"Concurrent write for user {user_id} on {day.isoformat()}"
            ) from e

        return await self.find_by_id(task_log.id), is_update

    async def replace(
        self,
        task_log: TaskLog,
        total_hours: Optional[float] = None,
        entries: Optional[Sequence[EntryFields]] = None,
    ) -> TaskLog:
        """Overwrite the given fields of an already loaded log."""
        if total_hours is not None:
            task_log.total_hours = total_hours
        if entries is not None:
            task_log.entries = self._build_entries(entries)
        await self.db.commit()
        return await self.find_by_id(task_log.id)

    async def delete_by_id(self, task_log_id: str) -> bool:
        task_log = await self.find_by_id(task_log_id)
        if task_log is None:
            return False
        await self.db.delete(task_log)
        await self.db.commit()
        return True

    async def all_ids(self) -> List[str]:
        """Ids of every stored log that has at least one entry."""
        stmt = (
            select(TaskLog.id)
            .where(TaskLog.entries.any())
            .order_by(TaskLog.date, TaskLog.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def aggregate_hours_by_project_and_role(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[HoursRow]:
        """
        Sum entry hours per (effective project name, user role).

        The effective name is the live directory name when the entry's
        project id resolves, else the cached project name, else the
        Unassigned bucket. Deleted logs and deleted users are excluded.
        """
        effective_name = func.coalesce(
            Project.name,
            func.nullif(TaskLogEntry.project_name, ""),
            literal(UNASSIGNED_BUCKET),
        ).label("project")
        stmt = (
            select(
                effective_name,
                User.role,
                func.sum(TaskLogEntry.hours).label("hours"),
            )
            .select_from(TaskLogEntry)
            .join(TaskLog, TaskLog.id == TaskLogEntry.task_log_id)
            .join(User, User.id == TaskLog.user_id)
            .outerjoin(
                Project,
                and_(Project.id == TaskLogEntry.project_id, Project.deleted.is_(False)),
            )
            .where(
                TaskLog.deleted.is_(False),
                User.deleted.is_(False),
                *_date_conditions(start_date, end_date),
            )
            .group_by(effective_name, User.role)
        )
        result = await self.db.execute(stmt)
        return [
            HoursRow(project=row.project, role=row.role, hours=float(row.hours or 0.0))
            for row in result.all()
        ]

    @staticmethod
    def _build_entries(entries: Sequence[EntryFields]) -> List[TaskLogEntry]:
        return [
            TaskLogEntry(
                position=position,
                project_id=entry.project_id,
                project_name=entry.project_name,
                description=entry.description,
                hours=entry.hours,
            )
            for position, entry in enumerate(entries)
        ]
