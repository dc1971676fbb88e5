"""
Reports API

Grand (project x role) and per-user hour reports.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.report import GrandReport, ProjectUsersReport
from ..services.reports import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/grand", response_model=GrandReport)
async def grand_report(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    timeout: Optional[float] = Query(None, gt=0, description="Seconds before the report is abandoned"),
    db: AsyncSession = Depends(get_db),
):
    """Hours per project and role. Open bounds mean all time."""
    return await ReportService(db).generate_grand_report(start_date, end_date, timeout=timeout)


@router.get("/project-users", response_model=ProjectUsersReport)
async def project_users_report(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    timeout: Optional[float] = Query(None, gt=0, description="Seconds before the report is abandoned"),
    db: AsyncSession = Depends(get_db),
):
    """Grand report plus every roster member's logs in the range."""
    return await ReportService(db).generate_project_users_report(start_date, end_date, timeout=timeout)
