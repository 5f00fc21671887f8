from datetime import date, datetime

import pytest

from src.api.db import SQLiteDatabase, SQLiteTaskRepository, SQLiteUserRepository
from src.api.errors import DuplicateEmail, InvalidInput, NotFound
from src.api.models import Priority
from src.api.repositories import InMemoryTaskRepository, InMemoryUserRepository


@pytest.fixture(params=["memory", "sqlite"])
def stores(request, tmp_path):
    if request.param == "memory":
        return InMemoryUserRepository(), InMemoryTaskRepository()
    database = SQLiteDatabase(str(tmp_path / "tasks.db"))
    return SQLiteUserRepository(database), SQLiteTaskRepository(database)


@pytest.fixture
def owners(stores):
    users, _ = stores
    a = users.create("a@example.com", "hash-a", "A")
    b = users.create("b@example.com", "hash-b", None)
    return a["id"], b["id"]


class TestUserRepository:
    def test_create_and_lookup(self, stores):
        users, _ = stores
        created = users.create("Ada@Example.com", "h", "Ada")
        assert created["email"] == "ada@example.com"
        assert users.get_by_email("ADA@example.COM")["id"] == created["id"]
        assert users.get_by_id(created["id"])["name"] == "Ada"
        assert users.get_by_email("nobody@example.com") is None
        assert users.get_by_id(999) is None

    def test_duplicate_email_rejected_without_new_row(self, stores):
        users, _ = stores
        first = users.create("ada@example.com", "h")
        with pytest.raises(DuplicateEmail):
            users.create("ADA@example.com", "h2")
        assert users.get_by_email("ada@example.com")["password_hash"] == "h"
        assert users.get_by_id(first["id"] + 1) is None


class TestTaskRepository:
    def test_create_round_trip(self, stores, owners):
        _, tasks = stores
        a, _ = owners
        created = tasks.create(a, "Pay rent", "", "2025-01-05", "High")
        fetched = tasks.get(a, created["id"])
        assert fetched["title"] == "Pay rent"
        assert fetched["description"] == ""
        assert fetched["due_date"] == date(2025, 1, 5)
        assert fetched["priority"] is Priority.HIGH
        assert fetched["is_complete"] is False
        assert fetched["user_id"] == a
        assert isinstance(fetched["created_at"], datetime)

    def test_title_kept_verbatim(self, stores, owners):
        _, tasks = stores
        a, _ = owners
        padded = tasks.create(a, "  Pay rent  ", "", "2025-01-05", "High")
        long = tasks.create(a, "y" * 300, "", "2025-01-05", "Low")
        assert tasks.get(a, padded["id"])["title"] == "  Pay rent  "
        assert tasks.get(a, long["id"])["title"] == "y" * 300

    def test_list_by_owner_is_scoped(self, stores, owners):
        _, tasks = stores
        a, b = owners
        assert tasks.list_by_owner(a) == []
        t1 = tasks.create(a, "One", "x", date(2025, 3, 1), Priority.LOW)
        t2 = tasks.create(a, "Two", "y", "2025-02-01", "Medium")
        tb = tasks.create(b, "Theirs", "z", "2025-01-01", "Low")
        ids_a = [t["id"] for t in tasks.list_by_owner(a)]
        assert ids_a == [t1["id"], t2["id"]]
        assert [t["id"] for t in tasks.list_by_owner(b)] == [tb["id"]]

    def test_update_is_full_replace(self, stores, owners):
        _, tasks = stores
        a, _ = owners
        t = tasks.create(a, "Old", "desc", "2025-01-01", "Low")
        updated = tasks.update(a, t["id"], "New", "", "2025-06-30T10:00:00", "high", 1)
        assert updated["title"] == "New"
        assert updated["description"] == ""
        assert updated["due_date"] == date(2025, 6, 30)
        assert updated["priority"] is Priority.HIGH
        assert updated["is_complete"] is True
        assert tasks.get(a, t["id"]) == updated

    @pytest.mark.parametrize("flag,expected", [(True, True), (1, True), ("1", True), (False, False), (0, False), ("false", False)])
    def test_completion_wire_forms_are_equivalent(self, stores, owners, flag, expected):
        _, tasks = stores
        a, _ = owners
        t = tasks.create(a, "T", "", "2025-01-01", "Low")
        assert tasks.update(a, t["id"], "T", "", "2025-01-01", "Low", flag)["is_complete"] is expected

    def test_foreign_task_looks_missing(self, stores, owners):
        _, tasks = stores
        a, b = owners
        t = tasks.create(a, "Mine", "", "2025-01-01", "Low")
        for call in (
            lambda: tasks.get(b, t["id"]),
            lambda: tasks.update(b, t["id"], "Hijack", "", "2025-01-01", "Low", True),
            lambda: tasks.delete(b, t["id"]),
            lambda: tasks.get(a, 12345),
        ):
            with pytest.raises(NotFound) as exc:
                call()
            assert exc.value.message == "Task not found"
        assert tasks.get(a, t["id"])["title"] == "Mine"

    def test_delete_twice(self, stores, owners):
        _, tasks = stores
        a, _ = owners
        t = tasks.create(a, "Temp", "", "2025-01-01", "Low")
        tasks.delete(a, t["id"])
        with pytest.raises(NotFound):
            tasks.delete(a, t["id"])
        assert tasks.list_by_owner(a) == []

    @pytest.mark.parametrize(
        "title,due_date,priority",
        [
            ("", "2025-01-01", "Low"),
            ("   ", "2025-01-01", "Low"),
            ("T", "2025-02-30", "Low"),
            ("T", "tomorrow", "Low"),
            ("T", None, "Low"),
            ("T", "2025-01-01", "Urgent"),
        ],
    )
    def test_create_rejects_invalid_input(self, stores, owners, title, due_date, priority):
        _, tasks = stores
        a, _ = owners
        with pytest.raises(InvalidInput):
            tasks.create(a, title, "", due_date, priority)
        assert tasks.list_by_owner(a) == []

    def test_update_rejects_unknown_completion_value(self, stores, owners):
        _, tasks = stores
        a, _ = owners
        t = tasks.create(a, "T", "", "2025-01-01", "Low")
        with pytest.raises(InvalidInput):
            tasks.update(a, t["id"], "T", "", "2025-01-01", "Low", "maybe")
