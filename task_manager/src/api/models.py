from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class Priority(str, Enum):
    """Task priority levels as they appear on the wire."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


# PUBLIC_INTERFACE
class UserEntity(TypedDict):
    """
    A registered user as held by the storage backends.

    Fields:
    - id: Unique integer identifier
    - email: Normalized (trimmed, lower-cased) email, unique
    - password_hash: Encoded salted PBKDF2 hash, never the raw password
    - name: Optional display name
    - created_at / updated_at: Server-assigned timestamps
    """

    id: int
    email: str
    password_hash: str
    name: Optional[str]
    created_at: datetime
    updated_at: datetime


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    A task owned by exactly one user.

    Fields:
    - id: Unique integer identifier
    - user_id: Owning user's id
    - title: Non-empty title
    - description: Free text, may be empty
    - due_date: Calendar date (no time component)
    - priority: One of Low, Medium, High
    - is_complete: Completion flag
    - created_at / updated_at: Server-assigned timestamps
    """

    id: int
    user_id: int
    title: str
    description: str
    due_date: date
    priority: Priority
    is_complete: bool
    created_at: datetime
    updated_at: datetime
