# API Routes
from .tasklogs import router as tasklogs_router
from .reports import router as reports_router
from .projects import router as projects_router
from .users import router as users_router
from .admin import router as admin_router
from .errors import register_error_handlers

__all__ = [
    "tasklogs_router",
    "reports_router",
    "projects_router",
    "users_router",
    "admin_router",
    "register_error_handlers",
]
