"""
User Model

Users own task logs. Their role is the second report dimension.
"""
from datetime import datetime
from sqlalchemy import String, DateTime, Boolean, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import Optional, List
import enum
import uuid

from ..database import Base


class UserRole(str, enum.Enum):
    """Roles a user can hold."""
    QA = "QA"
    DESIGN = "DESIGN"
    DEV = "DEV"
    PM = "PM"
    ADMIN = "Admin"


# Roles that get their own column in reports, in output order
REPORT_ROLES = (UserRole.QA, UserRole.DESIGN, UserRole.DEV, UserRole.PM)


class User(Base):
    """
    An employee logging time.

    Inactive users stay in reports for ranges where they logged hours.
    Deleted users are excluded from every report.
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, unique=True)
    role: Mapped[UserRole] = mapped_column(SQLEnum(UserRole), nullable=False)

    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)

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

    task_logs: Mapped[List["TaskLog"]] = relationship(
        "TaskLog",
        back_populates="user",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, name={self.name}, role={self.role})>"
