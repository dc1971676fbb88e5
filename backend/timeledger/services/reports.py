"""
Report Service

Validates report ranges and runs the aggregation engine under a
timeout. A report either completes or fails as a whole.
"""
import asyncio
import logging
from datetime import date
from typing import Awaitable, Optional, TypeVar, Union

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..dates import parse_range
from ..engine.aggregation import AggregationEngine
from ..errors import ReportTimeoutError
from ..schemas.report import GrandReport, ProjectUsersReport
from ..tracer import trace_input, trace_section

logger = logging.getLogger(__name__)

T = TypeVar("T")
DayInput = Union[date, str, None]


class ReportService:
    """Entry point for report generation."""

    def __init__(self, db: AsyncSession, timeout: Optional[float] = None):
        self.engine = AggregationEngine(db)
        self.timeout = timeout if timeout is not None else settings.report_timeout_seconds

    async def _bounded(self, work: Awaitable[T], name: str, timeout: Optional[float]) -> T:
        limit = timeout if timeout is not None else self.timeout
        try:
            return await asyncio.wait_for(work, timeout=limit)
        except asyncio.TimeoutError as e:
            logger.error(f"{name} exceeded {limit}s and was abandoned")
            raise ReportTimeoutError(f"{name} did not finish within {limit} seconds") from e

    async def generate_grand_report(
        self,
        start_date: DayInput = None,
        end_date: DayInput = None,
        timeout: Optional[float] = None,
    ) -> GrandReport:
        """
        Hours per project per role for the inclusive range.

        Raises:
            ValidationError: start_date after end_date or unparsable
            ReportTimeoutError: the report took longer than the timeout
        """
        start, end = parse_range(start_date, end_date)
        trace_section("Grand Report")
        trace_input("services.reports", "range", f"{start} .. {end}")
        return await self._bounded(
            self.engine.generate_grand_report(start, end),
            "Grand report",
            timeout,
        )

    async def generate_project_users_report(
        self,
        start_date: DayInput = None,
        end_date: DayInput = None,
        timeout: Optional[float] = None,
    ) -> ProjectUsersReport:
        """
        Grand report plus every roster member's logs for the range.

        Raises:
            ValidationError: start_date after end_date or unparsable
            ReportTimeoutError: the report took longer than the timeout
        """
        start, end = parse_range(start_date, end_date)
        trace_section("Project Users Report")
        trace_input("services.reports", "range", f"{start} .. {end}")
        return await self._bounded(
            self.engine.generate_project_users_report(start, end),
            "Project users report",
            timeout,
        )
