"""
Task Log Models

One task log per user per calendar day, holding the entries that
allocate that day's hours to projects.
"""
import datetime as dt
from sqlalchemy import (
    String, Text, Float, Date, DateTime, Boolean, Integer,
    ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import Optional, List
import uuid

from ..database import Base


class TaskLog(Base):
    """
    A user's log for a single day.

    (user_id, date) is unique: writing the same pair again replaces
    total_hours and entries instead of adding a second record.
    """
    __tablename__ = "task_logs"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    total_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime,
        default=dt.datetime.utcnow,
        nullable=False
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime,
        default=dt.datetime.utcnow,
        onupdate=dt.datetime.utcnow,
        nullable=False
    )

    user: Mapped["User"] = relationship("User", back_populates="task_logs")
    entries: Mapped[List["TaskLogEntry"]] = relationship(
        "TaskLogEntry",
        back_populates="task_log",
        cascade="all, delete-orphan",
        order_by="TaskLogEntry.position",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_task_logs_user_date"),
    )

    def __repr__(self) -> str:
        return f"<TaskLog(id={self.id}, user_id={self.user_id}, date={self.date})>"


class TaskLogEntry(Base):
    """
    A line item of a task log.

    project_id and project_name are both optional but at least one is set.
    project_name is a cached copy of the project's name when the entry was
    last resolved; once project_id is set the directory wins over it.
    project_id is deliberately not a foreign key: orphaned ids survive
    project removal and still report under the cached name.
    """
    __tablename__ = "task_log_entries"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )
    task_log_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("task_logs.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    project_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    project_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    hours: Mapped[float] = mapped_column(Float, nullable=False)

    task_log: Mapped["TaskLog"] = relationship("TaskLog", back_populates="entries")

    __table_args__ = (
        Index("ix_task_log_entries_project_name", "project_name"),
    )

    def __repr__(self) -> str:
        return (
            f"<TaskLogEntry(project_id={self.project_id}, "
            f"project_name={self.project_name}, hours={self.hours})>"
        )
