"""
Report Schemas

Pydantic models for the grand and per-user hour reports.
"""
from datetime import date
from pydantic import BaseModel
from typing import List

from ..models.user import UserRole
from .task_log import TaskEntryResponse


class RoleHours(BaseModel):
    """Hours split by the fixed report roles. Admin has no column."""
    QA: float = 0.0
    DESIGN: float = 0.0
    DEV: float = 0.0
    PM: float = 0.0


class ProjectHoursRow(RoleHours):
    """One project of the grand report."""
    project: str
    total_hours: float = 0.0


class ReportTotals(RoleHours):
    """Grand totals across all project rows."""
    total_hours: float = 0.0


class ReportDateRange(BaseModel):
    """Bounds as ISO dates, or 'All time' for an open side."""
    start_date: str
    end_date: str


class GrandReport(BaseModel):
    """Project x role hour aggregation."""
    projects: List[ProjectHoursRow]
    totals: ReportTotals
    date_range: ReportDateRange
    total_projects: int


class UserLogItem(BaseModel):
    """A task log inside the per-user report."""
    id: str
    date: date
    total_hours: float
    entries: List[TaskEntryResponse]


class UserLogs(BaseModel):
    """A roster member with their logs in range."""
    user_id: str
    name: str
    role: UserRole
    total_hours: float
    logs: List[UserLogItem] = []


class ProjectUsersReport(BaseModel):
    """Grand report plus every roster member's logs."""
    grand_report: GrandReport
    users_logs: List[UserLogs]
