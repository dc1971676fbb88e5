"""Pytest configuration for TimeLedger tests.

Points the settings at an in-memory SQLite database before any test
module imports the package, which builds its engine at import time.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RENAME_MAPPING_PATH"] = ""
os.environ["FOLLOW_THROUGH"] = "false"

from datetime import date
from typing import Optional, Sequence, Tuple

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from timeledger.database import build_engine, get_db, init_db
from timeledger.models import Project, ProjectStatus, TaskLog, TaskLogEntry, User, UserRole

# (project_id, project_name, hours)
EntrySeed = Tuple[Optional[str], Optional[str], float]


class Seed:
    """Writes rows straight to the database, bypassing the services.

    Lets tests build legacy shapes (name-only entries, stale cached
    names, orphaned ids) that the write path would never produce.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def project(self, name: str, status: ProjectStatus = ProjectStatus.IN_PROGRESS, **kwargs) -> Project:
        project = Project(name=name, status=status, **kwargs)
        self.db.add(project)
        await self.db.commit()
        return project

    async def user(self, name: str, role: UserRole = UserRole.DEV, active: bool = True, **kwargs) -> User:
        user = User(name=name, role=role, active=active, **kwargs)
        self.db.add(user)
        await self.db.commit()
        return user

    async def log(
        self,
        user: User,
        day: date,
        entries: Sequence[EntrySeed],
        total_hours: Optional[float] = None,
        deleted: bool = False,
    ) -> TaskLog:
        if total_hours is None:
            total_hours = sum(hours for _, _, hours in entries)
        task_log = TaskLog(
            user_id=user.id,
            date=day,
            total_hours=total_hours,
            deleted=deleted,
            entries=[
                TaskLogEntry(position=i, project_id=pid, project_name=pname, hours=hours)
                for i, (pid, pname, hours) in enumerate(entries)
            ],
        )
        self.db.add(task_log)
        await self.db.commit()
        return task_log

    async def rename(self, project: Project, new_name: str) -> Project:
        """Rename in the directory only, leaving cached entry names stale."""
        project.name = new_name
        await self.db.commit()
        return project

    async def soft_delete(self, instance) -> None:
        instance.deleted = True
        await self.db.commit()


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test."""
    test_engine = build_engine("sqlite+aiosqlite:///:memory:")
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed(db):
    return Seed(db)


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client against the app with get_db bound to the test database."""
    from timeledger.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
