"""
Project Schemas

Pydantic models for project API requests and responses.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from ..models.project import ProjectStatus


class ProjectCreate(BaseModel):
    """Request to create a new project."""
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    status: ProjectStatus = ProjectStatus.BACKLOG

    model_config = {"extra": "forbid"}

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Project name cannot be blank")
        return v


class ProjectUpdate(BaseModel):
    """Request to update a project. A new name is propagated to task entries."""
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    status: Optional[ProjectStatus] = None

    model_config = {"extra": "forbid"}

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Project name must be between 2 and 200 characters")
        return v


class ProjectResponse(BaseModel):
    """Project data returned from API."""
    id: str
    name: str
    description: Optional[str] = None
    status: ProjectStatus
    deleted: bool = False
    deleted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    # Set when a rename rewrote cached names on task entries
    propagated_entries: Optional[int] = None

    model_config = {"from_attributes": True}


class ProjectListResponse(BaseModel):
    """List of projects."""
    projects: list[ProjectResponse]
    total: int
