"""
Task Log Schemas

Pydantic models for task log requests and responses.
"""
from datetime import date, datetime
from typing import Optional, List, Any, Mapping, Type, TypeVar, Union
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from ..dates import to_day
from ..errors import ValidationError
from ..models.user import UserRole


class TaskEntryInput(BaseModel):
    """One entry of a task log as submitted."""
    project_id: Optional[str] = Field(None, max_length=36)
    project_name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    hours: float = Field(..., ge=0, le=24)

    model_config = {"extra": "forbid"}

    @field_validator("project_id", "project_name", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @model_validator(mode="after")
    def require_project_reference(self):
        if not self.project_id and not self.project_name:
            raise ValueError("Each task entry must have either project_id or project_name")
        return self


class TaskLogCreate(BaseModel):
    """Create or replace the log of a user for one day."""
    user_id: str = Field(..., min_length=1)
    date: date
    total_hours: float = Field(..., ge=0)
    entries: List[TaskEntryInput] = Field(..., min_length=1)

    model_config = {"extra": "forbid"}

    @field_validator("date", mode="before")
    @classmethod
    def truncate_to_day(cls, v):
        if isinstance(v, (str, datetime)):
            return to_day(v)
        return v


class TaskLogUpdate(BaseModel):
    """Partial update of a log by id."""
    total_hours: Optional[float] = Field(None, ge=0)
    entries: Optional[List[TaskEntryInput]] = Field(None, min_length=1)

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def require_some_field(self):
        if self.total_hours is None and self.entries is None:
            raise ValueError("At least one field (total_hours or entries) is required for update")
        return self


class TaskLogQuery(BaseModel):
    """Filters for listing task logs."""
    user_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    project_name: Optional[str] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def truncate_to_day(cls, v):
        if v == "":
            return None
        if isinstance(v, (str, datetime)):
            return to_day(v)
        return v

    @model_validator(mode="after")
    def check_range(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self


class TaskEntryResponse(BaseModel):
    """An entry as returned, with the project reference read-repaired."""
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    description: Optional[str] = None
    hours: float
    resolved: bool = True


class UserSummary(BaseModel):
    """Owner of a task log."""
    id: str
    name: str
    role: UserRole

    model_config = {"from_attributes": True}


class TaskLogResponse(BaseModel):
    """Task log data returned from the service."""
    id: str
    user_id: str
    user: Optional[UserSummary] = None
    date: date
    total_hours: float
    entries: List[TaskEntryResponse]
    created_at: datetime
    updated_at: datetime
    is_update: Optional[bool] = None


class TaskLogListResponse(BaseModel):
    """List of task logs."""
    task_logs: List[TaskLogResponse]
    total: int


class TaskLogDeleteResponse(BaseModel):
    deleted: bool
    id: str


ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_payload(model: Type[ModelT], payload: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    """
    Validate a payload into `model`.

    Already-built models pass through. Pydantic failures become the
    domain ValidationError so callers see one error type.
    """
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Invalid {model.__name__} payload",
            details=e.errors(include_url=False, include_context=False, include_input=False),
        ) from e
