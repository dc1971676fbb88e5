"""
Services module for TimeLedger.
"""
from .task_logs import TaskLogService
from .reports import ReportService
from .projects import ProjectService
from .users import UserService

__all__ = [
    "TaskLogService",
    "ReportService",
    "ProjectService",
    "UserService",
]
