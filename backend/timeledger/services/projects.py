"""
Project Service

Admin operations on the project directory. A rename is followed by
rename propagation so cached names on task entries catch up at once
instead of waiting for read-repair.
"""
import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..engine.migrator import ConsistencyMigrator
from ..errors import NotFoundError, ValidationError
from ..models.project import Project
from ..schemas.project import ProjectCreate, ProjectResponse, ProjectUpdate
from ..schemas.task_log import parse_payload

logger = logging.getLogger(__name__)


class ProjectService:
    """Create, rename and retire projects."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get(self, project_id: str) -> Project:
        stmt = select(Project).where(Project.id == project_id)
        result = await self.db.execute(stmt)
        project = result.scalar_one_or_none()
        if project is None or project.deleted:
            raise NotFoundError("Project not found")
        return project

    async def _ensure_name_free(self, name: str, exclude_id: Optional[str] = None) -> None:
        conditions = [Project.name == name, Project.deleted.is_(False)]
        if exclude_id is not None:
            conditions.append(Project.id != exclude_id)
        result = await self.db.execute(select(Project.id).where(*conditions).limit(1))
        if result.scalar_one_or_none() is not None:
            raise ValidationError("Project with this name already exists")

    async def create_project(self, payload: Union[ProjectCreate, Mapping[str, Any]]) -> ProjectResponse:
        data = parse_payload(ProjectCreate, payload)
        await self._ensure_name_free(data.name)

        project = Project(name=data.name, description=data.description, status=data.status)
        self.db.add(project)
        await self.db.commit()
        await self.db.refresh(project)

        logger.info(f"Created project '{project.name}' ({project.id})")
        return ProjectResponse.model_validate(project)

    async def list_projects(self, include_deleted: bool = False) -> List[ProjectResponse]:
        stmt = select(Project).order_by(Project.name, Project.id)
        if not include_deleted:
            stmt = stmt.where(Project.deleted.is_(False))
        result = await self.db.execute(stmt)
        return [ProjectResponse.model_validate(p) for p in result.scalars().all()]

    async def get_project(self, project_id: str) -> ProjectResponse:
        return ProjectResponse.model_validate(await self._get(project_id))

    async def update_project(
        self,
        project_id: str,
        payload: Union[ProjectUpdate, Mapping[str, Any]],
    ) -> ProjectResponse:
        """Update fields; a changed name is pushed to every entry with this id."""
        data = parse_payload(ProjectUpdate, payload)
        project = await self._get(project_id)

        renamed = data.name is not None and data.name != project.name
        if renamed:
            await self._ensure_name_free(data.name, exclude_id=project.id)
            logger.info(f"Renaming project {project.id}: '{project.name}' -> '{data.name}'")

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(project, field, value)

        await self.db.commit()
        await self.db.refresh(project)

        response = ProjectResponse.model_validate(project)
        if renamed:
            response.propagated_entries = await ConsistencyMigrator(self.db).propagate_rename(project.id)
        return response

    async def delete_project(self, project_id: str) -> dict:
        """Soft delete. Entries keep their id and report under the cached name."""
        project = await self._get(project_id)
        project.deleted = True
        project.deleted_at = datetime.utcnow()
        await self.db.commit()

        logger.info(f"Deleted project '{project.name}' ({project.id})")
        return {"status": "deleted", "project_id": project_id}
