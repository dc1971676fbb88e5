# Storage Access
from .directory import ProjectDirectory, DirectorySnapshot, ProjectRecord
from .roster import UserRoster
from .task_logs import TaskLogStore, EntryFields, HoursRow

__all__ = [
    "ProjectDirectory",
    "DirectorySnapshot",
    "ProjectRecord",
    "UserRoster",
    "TaskLogStore",
    "EntryFields",
    "HoursRow",
]
