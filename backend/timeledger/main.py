"""
TimeLedger - Task Log Time Tracking

FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .database import init_db, close_db
from .config import settings
from .api import (
    tasklogs_router,
    reports_router,
    projects_router,
    users_router,
    admin_router,
    register_error_handlers,
)
from .tracer import setup_follow_through_logging

# Configure logging based on mode
if settings.debug:
    log_level = logging.DEBUG
elif settings.follow_through:
    log_level = logging.WARNING  # Suppress normal logs, let tracer handle output
else:
    log_level = logging.INFO

logging.basicConfig(
    level=log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Quiet down noisy loggers when not in debug mode
if not settings.debug:
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

setup_follow_through_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting TimeLedger...")

    try:
        settings.validate_rename_mapping()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        raise
    if settings.rename_mapping_path is not None:
        logger.info(f"Using rename mapping: {settings.rename_mapping_path}")

    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down TimeLedger...")
    await close_db()


app = FastAPI(
    title="TimeLedger",
    description="""
    Daily task logs with hours per project, and reports over them.

    ## Features
    - **Task Logs**: One log per user per day, entries carry project and hours
    - **Read-Repair**: Entries always show the current project name
    - **Reconciliation**: Batch repair of stale or missing project references
    - **Reports**: Hours by project and role, and per-user logs for a range
    """,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(tasklogs_router)
app.include_router(reports_router)
app.include_router(projects_router)
app.include_router(users_router)
app.include_router(admin_router)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "TimeLedger",
        "version": "1.0.0",
        "description": "Task log time tracking",
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
