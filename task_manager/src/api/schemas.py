from __future__ import annotations

from datetime import date, datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import Priority

# Shared type for incoming due_date which can be a date, datetime, or ISO8601 string
DueDateInput = Union[date, datetime, str]

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


# PUBLIC_INTERFACE
def parse_due_date(value: Optional[DueDateInput]) -> date:
    """
    Normalize due_date input into a calendar date.
    - A datetime (or an ISO datetime string) is truncated to its date part.
    - A plain 'YYYY-MM-DD' string or date is returned as a date.
    Raises ValueError for anything else.
    """
    if value is None:
        raise ValueError("due_date is required")

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        s = value.strip()
        if not s:
            raise ValueError("due_date is required")
        # Clients may send '2025-01-05T00:00:00.000Z'; only the calendar part matters.
        head = s.split("T", 1)[0].split(" ", 1)[0]
        try:
            return date.fromisoformat(head)
        except ValueError as e:
            raise ValueError(
                "Invalid due_date format. Use an ISO8601 date such as '2025-01-31'."
            ) from e

    raise ValueError("Invalid type for due_date; expected date, datetime, or ISO8601 string.")


# PUBLIC_INTERFACE
def parse_priority(value: Any) -> Priority:
    """Accept a Priority or its name in any letter case."""
    if isinstance(value, Priority):
        return value
    if isinstance(value, str):
        wanted = value.strip().lower()
        for p in Priority:
            if p.value.lower() == wanted:
                return p
    raise ValueError("priority must be one of Low, Medium, High")


# PUBLIC_INTERFACE
def parse_completion(value: Any) -> bool:
    """
    Normalize the completion flag. Booleans, 0/1 and their string forms are
    treated as the same two states.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        v = value.strip().lower()
        if v in _TRUE_VALUES:
            return True
        if v in _FALSE_VALUES:
            return False
    raise ValueError("is_complete must be a boolean or 0/1")


def _check_title(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("title must be a string")
    if not value.strip():
        raise ValueError("title must not be empty")
    return value


# PUBLIC_INTERFACE
class RegisterRequest(BaseModel):
    """Registration payload. Email format and password policy are checked by the auth service."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"name": "Ada", "email": "ada@example.com", "password": "secret123"}
        }
    )

    name: Optional[str] = Field(default=None, description="Optional display name", max_length=100)
    email: str = Field(..., description="Login email, unique case-insensitively")
    password: str = Field(..., description="Password, at least 6 characters")


# PUBLIC_INTERFACE
class LoginRequest(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "ada@example.com", "password": "secret123"}}
    )

    email: str = Field(..., description="Login email")
    password: str = Field(..., description="Password")


# PUBLIC_INTERFACE
class UserOut(BaseModel):
    """Public summary of a user; never includes the password hash."""

    id: int = Field(..., description="Unique identifier of the user")
    email: str = Field(..., description="Normalized email")
    name: Optional[str] = Field(default=None, description="Display name")


class UserEnvelope(BaseModel):
    success: bool = True
    user: UserOut


class LoginResponse(BaseModel):
    success: bool = True
    token: str = Field(..., description="Bearer credential for the Authorization header")
    user: UserOut


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a new task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Pay rent",
                "description": "",
                "due_date": "2025-01-05",
                "priority": "High",
            }
        }
    )

    title: str = Field(..., description="Task title, stored exactly as sent; must not be blank")
    description: str = Field(default="", description="Free-text description, may be empty")
    due_date: date = Field(
        ..., description="Due date. Accepts ISO8601 date or datetime; the time part is dropped"
    )
    priority: Priority = Field(..., description="Low, Medium or High")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> str:
        """
        Reject blank titles. The value itself is kept verbatim.
        """
        return _check_title(v)

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("due_date", mode="before")
    @classmethod
    def validate_due_date(cls, v: Optional[DueDateInput]) -> date:
        return parse_due_date(v)

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, v: Any) -> Priority:
        return parse_priority(v)


# PUBLIC_INTERFACE
class TaskUpdate(TaskCreate):
    """
    Schema for replacing an existing task. Every field is written; there is
    no partial patch.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Pay rent",
                "description": "",
                "due_date": "2025-01-05",
                "priority": "High",
                "is_complete": True,
            }
        }
    )

    is_complete: bool = Field(..., description="Completion flag; booleans and 0/1 are accepted")

    @field_validator("is_complete", mode="before")
    @classmethod
    def validate_is_complete(cls, v: Any) -> bool:
        return parse_completion(v)


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 7,
                "user_id": 1,
                "title": "Pay rent",
                "description": "",
                "due_date": "2025-01-05",
                "priority": "High",
                "is_complete": False,
                "created_at": "2025-01-01T10:15:30.123456",
                "updated_at": "2025-01-01T10:15:30.123456",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the task")
    user_id: int = Field(..., description="Owning user id")
    title: str
    description: str
    due_date: date
    priority: Priority
    is_complete: bool
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class TaskEnvelope(BaseModel):
    success: bool = True
    task: TaskOut


class TaskListEnvelope(BaseModel):
    success: bool = True
    tasks: List[TaskOut]


class SuccessResponse(BaseModel):
    success: bool = True
