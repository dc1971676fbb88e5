"""
Projects API

Endpoints for project directory management.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.project import (
    ProjectCreate,
    ProjectUpdate,
    ProjectResponse,
    ProjectListResponse,
)
from ..services.projects import ProjectService

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", response_model=ProjectResponse)
async def create_project(
    data: ProjectCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a new project."""
    return await ProjectService(db).create_project(data)


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    include_deleted: bool = Query(False, alias="includeDeleted"),
    db: AsyncSession = Depends(get_db),
):
    """List projects ordered by name."""
    projects = await ProjectService(db).list_projects(include_deleted=include_deleted)
    return ProjectListResponse(projects=projects, total=len(projects))


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Get a project by ID."""
    return await ProjectService(db).get_project(project_id)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    data: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a project. Renames are propagated to task entries."""
    return await ProjectService(db).update_project(project_id, data)


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Soft delete a project."""
    return await ProjectService(db).delete_project(project_id)
