# TimeLedger Models
from .project import Project, ProjectStatus
from .user import User, UserRole, REPORT_ROLES
from .task_log import TaskLog, TaskLogEntry

__all__ = [
    "Project",
    "ProjectStatus",
    "User",
    "UserRole",
    "REPORT_ROLES",
    "TaskLog",
    "TaskLogEntry",
]
