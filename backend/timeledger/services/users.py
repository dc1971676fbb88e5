"""
User Service

Roster maintenance: registration, activation and soft deletion.
"""
import logging
from typing import Any, List, Mapping, Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..dates import parse_range
from ..errors import NotFoundError, ValidationError
from ..models.user import User
from ..schemas.task_log import parse_payload
from ..schemas.user import UserCreate, UserResponse, UserUpdate
from ..store.roster import UserRoster

logger = logging.getLogger(__name__)


class UserService:
    """Register users, change their lifecycle flags and read the roster."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.roster = UserRoster(db)

    async def create_user(self, payload: Union[UserCreate, Mapping[str, Any]]) -> UserResponse:
        data = parse_payload(UserCreate, payload)
        email = data.email.strip().lower() if data.email else None

        if email:
            result = await self.db.execute(select(User.id).where(User.email == email))
            if result.scalar_one_or_none() is not None:
                raise ValidationError("User with this email already exists")

        user = User(name=data.name.strip(), email=email, role=data.role, active=data.active)
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"Registered user '{user.name}' ({user.id}) as {user.role.value}")
        return UserResponse.model_validate(user)

    async def list_users(self) -> List[UserResponse]:
        return [UserResponse.model_validate(u) for u in await self.roster.list_all()]

    async def list_roster(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[UserResponse]:
        """Active users plus inactive users with logs in the range."""
        start, end = parse_range(start_date, end_date)
        users = await self.roster.list_active_or_relevant(start, end)
        return [UserResponse.model_validate(u) for u in users]

    async def update_user(
        self,
        user_id: str,
        payload: Union[UserUpdate, Mapping[str, Any]],
    ) -> UserResponse:
        """
        Activate, deactivate or soft delete a user.

        Inactive users keep showing in rosters for ranges where they
        logged hours. Deleted users drop out of every report.

        Raises:
            ValidationError: no flag given
            NotFoundError: unknown or already deleted user
        """
        data = parse_payload(UserUpdate, payload)
        changes = data.model_dump(exclude_none=True)
        if not changes:
            raise ValidationError("Provide active and/or deleted")

        user = await self.roster.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        for field, value in changes.items():
            setattr(user, field, value)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"Updated user {user.id}: {changes}")
        return UserResponse.model_validate(user)
