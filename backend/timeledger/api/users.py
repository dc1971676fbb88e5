"""
Users API

Roster registration, lifecycle updates and listing.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.user import UserCreate, UserUpdate, UserResponse, UserListResponse
from ..services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserResponse)
async def create_user(
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
):
    """Register a user."""
    return await UserService(db).create_user(data)


@router.get("", response_model=UserListResponse)
async def list_users(
    db: AsyncSession = Depends(get_db),
):
    """List every non-deleted user."""
    users = await UserService(db).list_users()
    return UserListResponse(users=users, total=len(users))


@router.get("/roster", response_model=UserListResponse)
async def roster(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: AsyncSession = Depends(get_db),
):
    """Active users plus inactive users with logs in the range."""
    users = await UserService(db).list_roster(start_date, end_date)
    return UserListResponse(users=users, total=len(users))


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Activate, deactivate or soft delete a user."""
    return await UserService(db).update_user(user_id, data)
