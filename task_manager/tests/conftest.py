import os

import pytest
from fastapi.testclient import TestClient

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")
os.environ.setdefault("AUTH_SECRET_KEY", "test-signing-secret")

from src.api.main import app  # noqa: E402
from src.api.repositories import (  # noqa: E402
    InMemoryTaskRepository,
    InMemoryUserRepository,
    get_repository,
    get_user_repository,
)


class Backends:
    def __init__(self) -> None:
        self.users = InMemoryUserRepository()
        self.tasks = InMemoryTaskRepository()


@pytest.fixture
def backends():
    """Fresh repositories per test, wired into the app through dependency overrides."""
    b = Backends()
    app.dependency_overrides[get_user_repository] = lambda: b.users
    app.dependency_overrides[get_repository] = lambda: b.tasks
    yield b
    app.dependency_overrides.clear()


@pytest.fixture
def client(backends):
    with TestClient(app) as c:
        yield c

