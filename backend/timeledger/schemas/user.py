"""
User Schemas

Pydantic models for the user roster endpoints.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from ..models.user import UserRole


class UserCreate(BaseModel):
    """Request to register a user in the roster."""
    name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    role: UserRole
    active: bool = True

    model_config = {"extra": "forbid"}


class UserUpdate(BaseModel):
    """Request to change a user's lifecycle flags."""
    active: Optional[bool] = None
    deleted: Optional[bool] = None

    model_config = {"extra": "forbid"}


class UserResponse(BaseModel):
    """User data returned from API."""
    id: str
    name: str
    email: Optional[str] = None
    role: UserRole
    active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserListResponse(BaseModel):
    """List of users."""
    users: List[UserResponse]
    total: int
