"""
Aggregation Engine

Builds the grand (project x role) report and the per-user report from
non-deleted logs of non-deleted users.

Hours are summed as floats without intermediate rounding. Only per-user
totals are rounded, to two decimals. Project rows are sorted by name
with the Unassigned bucket always last.
"""
import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..models.task_log import TaskLog
from ..models.user import User, REPORT_ROLES
from ..schemas.report import (
    GrandReport,
    ProjectHoursRow,
    ProjectUsersReport,
    ReportDateRange,
    ReportTotals,
    UserLogItem,
    UserLogs,
)
from ..store.roster import UserRoster
from ..store.task_logs import HoursRow, TaskLogStore, UNASSIGNED_BUCKET
from ..tracer import trace_step
from .resolver import ReferenceResolver, load_resolver, repair_entries

logger = logging.getLogger(__name__)

OPEN_BOUND = "All time"


def project_sort_key(row: ProjectHoursRow):
    return (row.project == UNASSIGNED_BUCKET, row.project)


def build_project_rows(rows: Iterable[HoursRow]) -> List[ProjectHoursRow]:
    """
    Fold (project, role) buckets into one row per project.

    The four report roles are always present. Hours of roles without a
    column (Admin) only count toward the row's total.
    """
    by_project: Dict[str, ProjectHoursRow] = {}
    for row in rows:
        project = by_project.get(row.project)
        if project is None:
            project = ProjectHoursRow(project=row.project)
            by_project[row.project] = project

        project.total_hours += row.hours
        if row.role in REPORT_ROLES:
            column = row.role.value
            setattr(project, column, getattr(project, column) + row.hours)

    return sorted(by_project.values(), key=project_sort_key)


def compute_totals(projects: Iterable[ProjectHoursRow]) -> ReportTotals:
    totals = ReportTotals()
    for project in projects:
        totals.total_hours += project.total_hours
        for role in REPORT_ROLES:
            column = role.value
            setattr(totals, column, getattr(totals, column) + getattr(project, column))
    return totals


def describe_range(start_date: Optional[date], end_date: Optional[date]) -> ReportDateRange:
    return ReportDateRange(
        start_date=start_date.isoformat() if start_date else OPEN_BOUND,
        end_date=end_date.isoformat() if end_date else OPEN_BOUND,
    )


def merge_roster(
    roster: Iterable[User],
    logs: Iterable[TaskLog],
    resolver: ReferenceResolver,
) -> List[UserLogs]:
    """
    One UserLogs per roster member, sorted by name.

    Members without logs get a zero total and an empty list. A user's
    total is the sum of their logs' own total_hours, not of entry hours.
    """
    logs_by_user: Dict[str, List[TaskLog]] = {}
    for task_log in logs:
        logs_by_user.setdefault(task_log.user_id, []).append(task_log)

    merged = []
    for user in roster:
        user_logs = logs_by_user.get(user.id, [])
        total = sum(float(log.total_hours or 0.0) for log in user_logs)
        merged.append(UserLogs(
            user_id=user.id,
            name=user.name,
            role=user.role,
            total_hours=round(total, 2),
            logs=[
                UserLogItem(
                    id=log.id,
                    date=log.date,
                    total_hours=log.total_hours,
                    entries=repair_entries(log.entries, resolver, log.date),
                )
                for log in user_logs
            ],
        ))

    return sorted(merged, key=lambda u: (u.name, u.user_id))


class AggregationEngine:
    """
    Report builder over one AsyncSession.

    The grand report groups by the stored effective name, while the
    per-user report read-repairs entries through the rename mapping and
    fuzzy matching, so a stale name-only entry can show under its raw
    name in one and its current project name in the other until
    reconcile() rewrites it.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = TaskLogStore(db)
        self.roster = UserRoster(db)

    async def generate_grand_report(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> GrandReport:
        rows = await self.store.aggregate_hours_by_project_and_role(start_date, end_date)
        trace_step("engine.aggregation", f"{len(rows)} (project, role) buckets")

        projects = build_project_rows(rows)
        return GrandReport(
            projects=projects,
            totals=compute_totals(projects),
            date_range=describe_range(start_date, end_date),
            total_projects=len(projects),
        )

    async def generate_project_users_report(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> ProjectUsersReport:
        grand = await self.generate_grand_report(start_date, end_date)

        logs = await self.store.logs_of_live_users(start_date, end_date)
        roster = await self.roster.list_active_or_relevant(start_date, end_date)
        resolver = await load_resolver(self.db)
        trace_step(
            "engine.aggregation",
            f"Merging {len(logs)} logs into a roster of {len(roster)} users",
        )

        return ProjectUsersReport(
            grand_report=grand,
            users_logs=merge_roster(roster, logs, resolver),
        )
