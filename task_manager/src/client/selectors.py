from __future__ import annotations

from typing import Any, Iterable, List, Optional

from .state import SORT_DESC, AppState, Filters, Notification, Task


# PUBLIC_INTERFACE
def is_task_complete(task: Task) -> bool:
    """Completion flag may arrive as a boolean or as 0/1; both mean the same."""
    value: Any = task.get("is_complete")
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true")
    return bool(value)


def _matches(task: Task, filters: Filters, needle: str) -> bool:
    if filters.priority is not None and task.get("priority") != filters.priority:
        return False
    if filters.completion is not None and is_task_complete(task) != filters.completion:
        return False
    if needle:
        title = (task.get("title") or "").lower()
        description = (task.get("description") or "").lower()
        if needle not in title and needle not in description:
            return False
    return True


def _due_key(task: Task) -> str:
    # ISO dates order lexically; a datetime suffix does not change the date order.
    return str(task.get("due_date") or "")[:10]


# PUBLIC_INTERFACE
def visible_tasks(
    items: Iterable[Task],
    filters: Filters,
    sort_order: str,
    search_term: Optional[str] = None,
) -> List[Task]:
    """
    Derive the displayed task list.

    Keeps tasks matching the priority filter, the completion filter and the
    case-insensitive search term (title or description), then sorts them by
    due date. The sort is stable in both directions, so equal due dates keep
    their original relative order.
    """
    needle = (search_term or "").lower()
    kept = [t for t in items if _matches(t, filters, needle)]
    return sorted(kept, key=_due_key, reverse=(sort_order == SORT_DESC))


# PUBLIC_INTERFACE
def select_visible_tasks(state: AppState) -> List[Task]:
    tasks = state.tasks
    return visible_tasks(tasks.items, tasks.filters, tasks.sort_order, tasks.search_term)


def select_expired_notifications(state: AppState, now: float) -> List[Notification]:
    """Notifications whose display duration has elapsed at 'now' (seconds)."""
    return [
        n for n in state.ui.notifications
        if n.created_at + n.duration_ms / 1000.0 <= now
    ]
