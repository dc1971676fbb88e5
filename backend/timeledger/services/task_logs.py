"""
Task Log Service

Write and read operations on task logs.

Writes validate everything before touching the store and resolve
entries strictly (id or exact name). Reads re-resolve every entry
against the live directory, so callers always see current project
names even when the stored cache is stale.
"""
import logging
from datetime import date
from typing import Any, List, Mapping, Optional, Sequence, Union

from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from ..config import settings
from ..dates import parse_day
from ..engine.resolver import ReferenceResolver, load_resolver, repair_entries
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models.task_log import TaskLog
from ..schemas.task_log import (
    TaskEntryInput,
    TaskLogCreate,
    TaskLogQuery,
    TaskLogResponse,
    TaskLogUpdate,
    UserSummary,
    parse_payload,
)
from ..store.roster import UserRoster
from ..store.task_logs import EntryFields, TaskLogStore
from ..tracer import trace_input, trace_output, trace_section, trace_step

logger = logging.getLogger(__name__)

Payload = Mapping[str, Any]


def _to_response(
    task_log: TaskLog,
    resolver: ReferenceResolver,
    is_update: Optional[bool] = None,
) -> TaskLogResponse:
    user = None
    if task_log.user is not None:
        user = UserSummary.model_validate(task_log.user)
    return TaskLogResponse(
        id=task_log.id,
        user_id=task_log.user_id,
        user=user,
        date=task_log.date,
        total_hours=task_log.total_hours,
        entries=repair_entries(task_log.entries, resolver, task_log.date),
        created_at=task_log.created_at,
        updated_at=task_log.updated_at,
        is_update=is_update,
    )


class TaskLogService:
    """Task log operations consumed by the API and CLI."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = TaskLogStore(db)
        self.roster = UserRoster(db)

    async def _resolve_for_write(self, entries: Sequence[TaskEntryInput]) -> List[EntryFields]:
        resolver = await load_resolver(self.db, strict=True)
        resolved = []
        for entry in entries:
            resolution = resolver.resolve_fields(entry.project_id, entry.project_name)
            resolved.append(EntryFields(
                project_id=resolution.project_id,
                project_name=resolution.project_name,
                description=entry.description,
                hours=entry.hours,
            ))
        return resolved

    async def create_or_update_task_log(
        self,
        payload: Union[TaskLogCreate, Payload],
    ) -> TaskLogResponse:
        """
        Create the log for (user_id, date) or replace the existing one.

        Raises:
            ValidationError: bad payload or unknown user
            ConflictError: concurrent writers kept colliding on the same pair
        """
        data = parse_payload(TaskLogCreate, payload)
        trace_section("Create Or Update Task Log")
        trace_input("services.task_logs", "user_id", data.user_id)
        trace_input("services.task_logs", "date", data.date)

        if await self.roster.find_by_id(data.user_id) is None:
            raise ValidationError(f"User {data.user_id} does not exist")

        entries = await self._resolve_for_write(data.entries)

        attempts = 1 + settings.write_conflict_retries
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(attempts),
            retry=retry_if_exception_type(ConflictError),
            reraise=True,
        ):
            with attempt:
                task_log, is_update = await self.store.upsert(
                    data.user_id, data.date, data.total_hours, entries
                )

        action = "Updated" if is_update else "Created"
        logger.info(f"{action} task log {task_log.id} for user {data.user_id} on {data.date}")
        trace_output("services.task_logs", "is_update", is_update)

        resolver = await load_resolver(self.db)
        return _to_response(task_log, resolver, is_update=is_update)

    async def get_task_logs(
        self,
        filters: Union[TaskLogQuery, Payload, None] = None,
    ) -> List[TaskLogResponse]:
        """
        List non-deleted logs, newest first.

        The project_name filter is a case-insensitive substring match on
        the resolved project names of a log's entries.
        """
        query = parse_payload(TaskLogQuery, filters or {})
        logs = await self.store.find_by_filter(
            user_id=query.user_id,
            start_date=query.start_date,
            end_date=query.end_date,
        )
        trace_step("services.task_logs", f"Found {len(logs)} task logs")

        resolver = await load_resolver(self.db)
        responses = [_to_response(log, resolver) for log in logs]

        if query.project_name:
            needle = query.project_name.lower()
            responses = [
                r for r in responses
                if any(needle in (e.project_name or "").lower() for e in r.entries)
            ]
        return responses

    async def get_single_task_log(
        self,
        user_id: str,
        day: Union[date, str],
    ) -> Optional[TaskLogResponse]:
        """The log of user_id on day, or None."""
        if not user_id:
            raise ValidationError("user_id is required")
        parsed = parse_day(day, "date")
        if parsed is None:
            raise ValidationError("date is required")

        task_log = await self.store.find_by_user_and_date(user_id, parsed)
        if task_log is None or task_log.deleted:
            return None

        resolver = await load_resolver(self.db)
        return _to_response(task_log, resolver)

    async def update_task_log_by_id(
        self,
        task_log_id: str,
        payload: Union[TaskLogUpdate, Payload],
    ) -> TaskLogResponse:
        """
        Overwrite total_hours and/or entries of an existing log.

        The id lookup ignores the deleted flag, so a soft-deleted log is
        updated in place and stays deleted.

        Raises:
            ValidationError: neither field given or a bad entry
            NotFoundError: no log with this id
        """
        data = parse_payload(TaskLogUpdate, payload)

        task_log = await self.store.find_by_id(task_log_id)
        if task_log is None:
            raise NotFoundError("Task log not found")

        entries = None
        if data.entries is not None:
            entries = await self._resolve_for_write(data.entries)

        task_log = await self.store.replace(task_log, data.total_hours, entries)
        logger.info(f"Updated task log {task_log_id}")

        resolver = await load_resolver(self.db)
        return _to_response(task_log, resolver)

    async def delete_task_log_by_id(self, task_log_id: str) -> dict:
        """
        Remove a log.

        The id lookup ignores the deleted flag, so a soft-deleted log is
        removed as well.

        Raises:
            NotFoundError: no log with this id
        """
        if not await self.store.delete_by_id(task_log_id):
            raise NotFoundError("Task log not found")
        logger.info(f"Deleted task log {task_log_id}")
        return {"deleted": True, "id": task_log_id}
