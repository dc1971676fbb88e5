"""
Project Model

Projects are the targets task-log entries allocate hours to.
The project name is the canonical label; the id never changes.
"""
from datetime import datetime
from sqlalchemy import String, Text, DateTime, Boolean, Enum as SQLEnum, Index
from sqlalchemy.orm import Mapped, mapped_column
from typing import Optional
import enum
import uuid

from ..database import Base


class ProjectStatus(str, enum.Enum):
    """Lifecycle status of a project."""
    DONE = "done"
    IN_PROGRESS = "inprogress"
    PAUSED = "paused"
    BACKLOG = "backlog"


class Project(Base):
    """
    A project hours can be logged against.

    Projects are soft-deleted so historical entries keep a target.
    Name uniqueness among non-deleted projects is enforced by the
    project operations, not by the schema, because renames and
    deletions legitimately reuse names over time.
    """
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[ProjectStatus] = mapped_column(
        SQLEnum(ProjectStatus),
        default=ProjectStatus.BACKLOG,
        nullable=False
    )

    deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    __table_args__ = (
        Index("ix_projects_deleted_name", "deleted", "name"),
    )

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name={self.name})>"
