from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from functools import lru_cache
from typing import Any, Generator, List, Optional, Tuple

from .errors import DuplicateEmail, NotFound
from .models import Priority, TaskEntity, UserEntity
from .repositories import TaskRepository, UserRepository, clean_task_fields

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT NOT NULL UNIQUE COLLATE NOCASE,
    password_hash TEXT NOT NULL,
    name TEXT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS tasks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    due_date TEXT NOT NULL,
    priority TEXT NOT NULL DEFAULT 'Medium' CHECK (priority IN ('Low', 'Medium', 'High')),
    is_complete INTEGER NOT NULL DEFAULT 0 CHECK (is_complete IN (0, 1)),
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_tasks_user_id ON tasks(user_id);
"""


class SQLiteDatabase:
    """
    Connection factory for a single sqlite file. The schema is applied once,
    when the object is created.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self.db_path = db_path
        with self.connect() as conn:
            conn.executescript(SCHEMA_SQL)
        logger.info("sqlite database ready path=%s", db_path)

    @contextmanager
    def connect(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


def _parse_dt(s: str) -> datetime:
    return datetime.fromisoformat(s)


class SQLiteTaskRepository(TaskRepository):
    """
    Task repository backed by the 'tasks' table. Every statement filters on
    user_id so rows of other owners are never touched.
    """

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def _row_to_entity(self, row: sqlite3.Row) -> TaskEntity:
        return {
            "id": int(row["id"]),
            "user_id": int(row["user_id"]),
            "title": str(row["title"]),
            "description": row["description"] or "",
            "due_date": date.fromisoformat(row["due_date"]),
            "priority": Priority(row["priority"]),
            "is_complete": bool(row["is_complete"]),
            "created_at": _parse_dt(row["created_at"]),
            "updated_at": _parse_dt(row["updated_at"]),
        }

    def _select_owned(self, conn: sqlite3.Connection, owner_id: int, task_id: int) -> TaskEntity:
        row = conn.execute(
            "SELECT * FROM tasks WHERE id = ? AND user_id = ?", (task_id, owner_id)
        ).fetchone()
        if row is None:
            raise NotFound()
        return self._row_to_entity(row)

    def list_by_owner(self, owner_id: int) -> List[TaskEntity]:
        with self._db.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM tasks WHERE user_id = ? ORDER BY id", (owner_id,)
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]

    def get(self, owner_id: int, task_id: int) -> TaskEntity:
        with self._db.connect() as conn:
            return self._select_owned(conn, owner_id, task_id)

    def create(self, owner_id, title, description, due_date, priority) -> TaskEntity:
        fields = clean_task_fields(title, description, due_date, priority)
        now = datetime.now().isoformat()
        with self._db.connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO tasks (user_id, title, description, due_date, priority,
                    is_complete, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, 0, ?, ?)
                """,
                (
                    owner_id,
                    fields.title,
                    fields.description,
                    fields.due_date.isoformat(),
                    fields.priority.value,
                    now,
                    now,
                ),
            )
            logger.debug("task created id=%s owner=%s", cur.lastrowid, owner_id)
            return self._select_owned(conn, owner_id, int(cur.lastrowid))

    def update(self, owner_id, task_id, title, description, due_date, priority, is_complete) -> TaskEntity:
        fields = clean_task_fields(title, description, due_date, priority, is_complete)
        with self._db.connect() as conn:
            cur = conn.execute(
                """
                UPDATE tasks
                SET title = ?, description = ?, due_date = ?, priority = ?,
                    is_complete = ?, updated_at = ?
                WHERE id = ? AND user_id = ?
                """,
                (
                    fields.title,
                    fields.description,
                    fields.due_date.isoformat(),
                    fields.priority.value,
                    1 if fields.is_complete else 0,
                    datetime.now().isoformat(),
                    task_id,
                    owner_id,
                ),
            )
            if cur.rowcount == 0:
                raise NotFound()
            return self._select_owned(conn, owner_id, task_id)

    def delete(self, owner_id: int, task_id: int) -> None:
        with self._db.connect() as conn:
            cur = conn.execute("DELETE FROM tasks WHERE id = ? AND user_id = ?", (task_id, owner_id))
            if cur.rowcount == 0:
                raise NotFound()
            logger.debug("task deleted id=%s owner=%s", task_id, owner_id)


class SQLiteUserRepository(UserRepository):
    """User repository backed by the 'users' table."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def _row_to_entity(self, row: sqlite3.Row) -> UserEntity:
        return {
            "id": int(row["id"]),
            "email": str(row["email"]),
            "password_hash": str(row["password_hash"]),
            "name": row["name"],
            "created_at": _parse_dt(row["created_at"]),
            "updated_at": _parse_dt(row["updated_at"]),
        }

    def _fetch_one(self, sql: str, params: Tuple[Any, ...]) -> Optional[UserEntity]:
        with self._db.connect() as conn:
            row = conn.execute(sql, params).fetchone()
            return self._row_to_entity(row) if row else None

    def create(self, email: str, password_hash: str, name: Optional[str] = None) -> UserEntity:
        now = datetime.now().isoformat()
        try:
            with self._db.connect() as conn:
                cur = conn.execute(
                    """
                    INSERT INTO users (email, password_hash, name, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (email.strip().lower(), password_hash, name, now, now),
                )
                new_id = int(cur.lastrowid)
        except sqlite3.IntegrityError as e:
            raise DuplicateEmail() from e
        user = self.get_by_id(new_id)
        assert user is not None
        return user

    def get_by_email(self, email: str) -> Optional[UserEntity]:
        return self._fetch_one("SELECT * FROM users WHERE email = ?", (email.strip().lower(),))

    def get_by_id(self, user_id: int) -> Optional[UserEntity]:
        return self._fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))


# PUBLIC_INTERFACE
@lru_cache(maxsize=None)
def get_sqlite_repositories(db_path: str) -> Tuple[SQLiteUserRepository, SQLiteTaskRepository]:
    """Return the (users, tasks) repositories sharing one initialized database file."""
    database = SQLiteDatabase(db_path)
    return SQLiteUserRepository(database), SQLiteTaskRepository(database)
