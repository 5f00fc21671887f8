"""
Python client for the Task Manager API.

``ClientStore`` holds the credential, the cached task list, view criteria and
transient UI state; ``TaskApiClient`` performs the HTTP calls.
"""
from .api_client import ApiError, TaskApiClient, normalize_due_date
from .selectors import select_visible_tasks, visible_tasks
from .storage import CredentialStorage, FileCredentialStorage, MemoryCredentialStorage, StoredCredential
from .store import ClientStore

__all__ = [
    "ApiError",
    "ClientStore",
    "CredentialStorage",
    "FileCredentialStorage",
    "MemoryCredentialStorage",
    "StoredCredential",
    "TaskApiClient",
    "normalize_due_date",
    "select_visible_tasks",
    "visible_tasks",
]
