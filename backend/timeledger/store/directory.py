"""
Project Directory

Source of truth for what a project is called now.

ProjectDirectory queries the database. DirectorySnapshot is an
immutable in-memory copy of the non-deleted projects so resolution
can run as plain computation over a consistent view.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.project import Project, ProjectStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectRecord:
    """Directory view of a project."""
    id: str
    name: str
    status: ProjectStatus

    @classmethod
    def from_model(cls, project: Project) -> "ProjectRecord":
        return cls(id=project.id, name=project.name, status=project.status)


class DirectorySnapshot:
    """
    Read-only view of the live (non-deleted) projects.

    list_all() is ordered by (name, id). The fuzzy matcher relies on
    this order being the same on every run.
    """

    def __init__(self, projects: Iterable[ProjectRecord]):
        ordered = sorted(projects, key=lambda p: (p.name, p.id))
        self._projects: List[ProjectRecord] = ordered
        self._by_id: Dict[str, ProjectRecord] = {p.id: p for p in ordered}
        self._by_name: Dict[str, ProjectRecord] = {}
        for project in ordered:
            if project.name in self._by_name:
                logger.warning(
                    f"Duplicate live project name '{project.name}': "
                    f"keeping {self._by_name[project.name].id}, ignoring {project.id}"
                )
                continue
            self._by_name[project.name] = project

    def find_by_id(self, project_id: str) -> Optional[ProjectRecord]:
        return self._by_id.get(project_id)

    def find_by_name(self, name: str) -> Optional[ProjectRecord]:
        """Exact, case-sensitive lookup."""
        return self._by_name.get(name)

    def list_all(self) -> List[ProjectRecord]:
        return list(self._projects)

    def __len__(self) -> int:
        return len(self._projects)

    def __contains__(self, project_id: str) -> bool:
        return project_id in self._by_id


class ProjectDirectory:
    """Point queries against the projects table. Deleted projects are invisible."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, project_id: str) -> Optional[Project]:
        stmt = select(Project).where(
            Project.id == project_id,
            Project.deleted.is_(False),
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_name(self, name: str) -> Optional[Project]:
        stmt = (
            select(Project)
            .where(Project.name == name, Project.deleted.is_(False))
            .order_by(Project.id)
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_all(self) -> List[Project]:
        stmt = (
            select(Project)
            .where(Project.deleted.is_(False))
            .order_by(Project.name, Project.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def snapshot(self) -> DirectorySnapshot:
        """Load every live project into an immutable snapshot."""
        projects = await self.list_all()
        return DirectorySnapshot(ProjectRecord.from_model(p) for p in projects)
