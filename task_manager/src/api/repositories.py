from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from functools import lru_cache
from threading import RLock
from typing import Any, List, Optional

from .errors import DuplicateEmail, InvalidInput, NotFound
from .models import Priority, TaskEntity, UserEntity
from .schemas import parse_completion, parse_due_date, parse_priority
from .settings import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskFields:
    """
    Validated, normalized values for the writable columns of a task.
    """
    title: str
    description: str
    due_date: date
    priority: Priority
    is_complete: bool = False


# PUBLIC_INTERFACE
def clean_task_fields(
    title: Any,
    description: Any,
    due_date: Any,
    priority: Any,
    is_complete: Any = False,
) -> TaskFields:
    """
    Validate raw task values at the storage boundary.

    Raises:
        InvalidInput: empty title, bad calendar date, unknown priority or
        an unrecognized completion flag.
    """
    if not isinstance(title, str) or not title.strip():
        raise InvalidInput("title must not be empty")
    if description is None:
        description = ""
    if not isinstance(description, str):
        raise InvalidInput("description must be text")
    try:
        due = parse_due_date(due_date)
        prio = parse_priority(priority)
        complete = parse_completion(is_complete)
    except ValueError as e:
        raise InvalidInput(str(e)) from e
    return TaskFields(
        title=title,
        description=description,
        due_date=due,
        priority=prio,
        is_complete=complete,
    )


# PUBLIC_INTERFACE
class TaskRepository(ABC):
    """
    Abstract repository contract for owner-scoped task storage.

    Every operation takes the owning user's id. A task that exists but belongs
    to somebody else is reported exactly like a missing one.
    """

    @abstractmethod
    def list_by_owner(self, owner_id: int) -> List[TaskEntity]:
        """Return every task owned by owner_id in creation order."""

    @abstractmethod
    def get(self, owner_id: int, task_id: int) -> TaskEntity:
        """Return one task. Raises NotFound if missing or not owned."""

    @abstractmethod
    def create(
        self,
        owner_id: int,
        title: str,
        description: str,
        due_date: Any,
        priority: Any,
    ) -> TaskEntity:
        """Create and return a new incomplete task. Raises InvalidInput."""

    @abstractmethod
    def update(
        self,
        owner_id: int,
        task_id: int,
        title: str,
        description: str,
        due_date: Any,
        priority: Any,
        is_complete: Any,
    ) -> TaskEntity:
        """Replace all writable fields of a task. Raises NotFound or InvalidInput."""

    @abstractmethod
    def delete(self, owner_id: int, task_id: int) -> None:
        """Delete a task. Raises NotFound if missing or not owned."""


# PUBLIC_INTERFACE
class UserRepository(ABC):
    """Abstract repository contract for registered users."""

    @abstractmethod
    def create(self, email: str, password_hash: str, name: Optional[str] = None) -> UserEntity:
        """Insert a user. Raises DuplicateEmail if the email is taken."""

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[UserEntity]:
        """Case-insensitive lookup by email."""

    @abstractmethod
    def get_by_id(self, user_id: int) -> Optional[UserEntity]:
        """Lookup by id."""


class InMemoryTaskRepository(TaskRepository):
    """
    Thread-safe in-memory task repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[int, TaskEntity] = {}
        self._next_id = 1

    def _now(self) -> datetime:
        return datetime.now()

    def _owned(self, owner_id: int, task_id: int) -> TaskEntity:
        item = self._items.get(task_id)
        if item is None or item["user_id"] != owner_id:
            raise NotFound()
        return item

    def list_by_owner(self, owner_id: int) -> List[TaskEntity]:
        with self._lock:
            return [t.copy() for t in self._items.values() if t["user_id"] == owner_id]

    def get(self, owner_id: int, task_id: int) -> TaskEntity:
        with self._lock:
            return self._owned(owner_id, task_id).copy()

    def create(self, owner_id, title, description, due_date, priority) -> TaskEntity:
        fields = clean_task_fields(title, description, due_date, priority)
        now = self._now()
        with self._lock:
            entity: TaskEntity = {
                "id": self._next_id,
                "user_id": owner_id,
                "title": fields.title,
                "description": fields.description,
                "due_date": fields.due_date,
                "priority": fields.priority,
                "is_complete": False,
                "created_at": now,
                "updated_at": now,
            }
            self._next_id += 1
            self._items[entity["id"]] = entity
            logger.debug("task created id=%s owner=%s", entity["id"], owner_id)
            return entity.copy()

    def update(self, owner_id, task_id, title, description, due_date, priority, is_complete) -> TaskEntity:
        fields = clean_task_fields(title, description, due_date, priority, is_complete)
        with self._lock:
            updated = self._owned(owner_id, task_id).copy()
            updated["title"] = fields.title
            updated["description"] = fields.description
            updated["due_date"] = fields.due_date
            updated["priority"] = fields.priority
            updated["is_complete"] = fields.is_complete
            updated["updated_at"] = self._now()
            self._items[task_id] = updated
            return updated.copy()

    def delete(self, owner_id: int, task_id: int) -> None:
        with self._lock:
            self._owned(owner_id, task_id)
            del self._items[task_id]
            logger.debug("task deleted id=%s owner=%s", task_id, owner_id)


class InMemoryUserRepository(UserRepository):
    """
    Thread-safe in-memory user repository keyed by normalized email.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._by_id: dict[int, UserEntity] = {}
        self._by_email: dict[str, int] = {}
        self._next_id = 1

    def create(self, email: str, password_hash: str, name: Optional[str] = None) -> UserEntity:
        key = email.strip().lower()
        now = datetime.now()
        with self._lock:
            if key in self._by_email:
                raise DuplicateEmail()
            user: UserEntity = {
                "id": self._next_id,
                "email": key,
                "password_hash": password_hash,
                "name": name,
                "created_at": now,
                "updated_at": now,
            }
            self._next_id += 1
            self._by_id[user["id"]] = user
            self._by_email[key] = user["id"]
            return user.copy()

    def get_by_email(self, email: str) -> Optional[UserEntity]:
        with self._lock:
            user_id = self._by_email.get(email.strip().lower())
            return None if user_id is None else self._by_id[user_id].copy()

    def get_by_id(self, user_id: int) -> Optional[UserEntity]:
        with self._lock:
            user = self._by_id.get(user_id)
            return None if user is None else user.copy()


@lru_cache(maxsize=1)
def _memory_backends() -> tuple[InMemoryUserRepository, InMemoryTaskRepository]:
    return InMemoryUserRepository(), InMemoryTaskRepository()


# PUBLIC_INTERFACE
def get_repository() -> TaskRepository:
    """
    Return the process-wide task repository selected by settings.
    - memory: InMemoryTaskRepository
    - sqlite: SQLiteTaskRepository
    """
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import get_sqlite_repositories

        return get_sqlite_repositories(settings.sqlite_db_path)[1]
    return _memory_backends()[1]


# PUBLIC_INTERFACE
def get_user_repository() -> UserRepository:
    """Return the process-wide user repository selected by settings."""
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import get_sqlite_repositories

        return get_sqlite_repositories(settings.sqlite_db_path)[0]
    return _memory_backends()[0]
