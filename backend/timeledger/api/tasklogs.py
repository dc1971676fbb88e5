"""
Task Logs API

Endpoints for creating, reading, updating and deleting task logs.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.task_log import (
    TaskLogCreate,
    TaskLogUpdate,
    TaskLogResponse,
    TaskLogListResponse,
    TaskLogDeleteResponse,
)
from ..services.task_logs import TaskLogService
from ..tracer import trace_section, trace_input, trace_result

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasklogs", tags=["tasklogs"])


@router.post("", response_model=TaskLogResponse)
async def create_or_update_task_log(
    data: TaskLogCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create the log for (user_id, date), or replace it if it exists."""
    trace_section("POST /tasklogs")
    result = await TaskLogService(db).create_or_update_task_log(data)
    trace_result("api.tasklogs", "create_or_update", True, "updated" if result.is_update else "created")
    return result


@router.get("", response_model=TaskLogListResponse)
async def list_task_logs(
    user_id: Optional[str] = Query(None, alias="userId"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    project_name: Optional[str] = Query(None, description="Case-insensitive substring of the resolved project name"),
    db: AsyncSession = Depends(get_db),
):
    """List task logs with optional filters, newest first."""
    trace_input("api.tasklogs", "filters", f"user={user_id} {start_date}..{end_date} project~{project_name}")
    logs = await TaskLogService(db).get_task_logs({
        "user_id": user_id,
        "start_date": start_date,
        "end_date": end_date,
        "project_name": project_name,
    })
    return TaskLogListResponse(task_logs=logs, total=len(logs))


async def _single(user_id: str, date: str, db: AsyncSession) -> TaskLogResponse:
    task_log = await TaskLogService(db).get_single_task_log(user_id, date)
    if task_log is None:
        raise HTTPException(status_code=404, detail="Task log not found for the specified user and date")
    return task_log


@router.get("/single", response_model=TaskLogResponse)
async def get_single_task_log(
    user_id: str = Query(..., alias="userId"),
    date: str = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Get the log of one user on one day."""
    return await _single(user_id, date, db)


@router.get("/by-user/{user_id}/date/{date}", response_model=TaskLogResponse)
async def get_task_log_by_user_and_date(
    user_id: str,
    date: str,
    db: AsyncSession = Depends(get_db),
):
    """Same as /single with path parameters."""
    return await _single(user_id, date, db)


@router.put("/{task_log_id}", response_model=TaskLogResponse)
async def update_task_log(
    task_log_id: str,
    data: TaskLogUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Overwrite total_hours and/or entries of a log."""
    return await TaskLogService(db).update_task_log_by_id(task_log_id, data)


@router.delete("/{task_log_id}", response_model=TaskLogDeleteResponse)
async def delete_task_log(
    task_log_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Delete a log."""
    return await TaskLogService(db).delete_task_log_by_id(task_log_id)
