from __future__ import annotations

import itertools
import logging
import time
from typing import Any, Callable, List, Optional

from . import state as s
from .api_client import ApiError, TaskApiClient
from .selectors import is_task_complete, select_expired_notifications, select_visible_tasks
from .settings import ClientSettings, get_client_settings
from .storage import CredentialStorage, StoredCredential

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class ClientStore:
    """
    The single authoritative client state path.

    Every user action awaits its request, then updates state through
    ``dispatch``. Successful mutations are followed by a full refetch of the
    task list; failures leave the list untouched and add an error
    notification. A 401 on any authenticated call disposes the credential and
    sends the user back to the login route.
    """

    def __init__(
        self,
        api: TaskApiClient,
        storage: CredentialStorage,
        settings: Optional[ClientSettings] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._api = api
        self._storage = storage
        self._settings = settings or get_client_settings()
        self._clock = clock
        self._ids = itertools.count(1)
        stored = storage.load()
        self._state = s.initial_state(stored.token, stored.user) if stored else s.initial_state()

    @property
    def state(self) -> s.AppState:
        return self._state

    def dispatch(self, action: Any) -> s.AppState:
        self._state = s.reduce(self._state, action)
        return self._state

    def visible_tasks(self) -> List[s.Task]:
        return select_visible_tasks(self._state)

    # ---- notifications ----

    def notify(self, kind: str, message: str, duration_ms: Optional[int] = None) -> s.Notification:
        notification = s.Notification(
            id=next(self._ids),
            kind=kind,
            message=message,
            duration_ms=duration_ms if duration_ms is not None else self._settings.notification_duration_ms,
            created_at=self._clock(),
        )
        self.dispatch(s.NotificationAdded(notification))
        return notification

    def dismiss(self, notification_id: int) -> None:
        self.dispatch(s.NotificationRemoved(notification_id))

    def expire_notifications(self, now: Optional[float] = None) -> List[s.Notification]:
        """Remove and return notifications whose display duration has passed."""
        expired = select_expired_notifications(self._state, self._clock() if now is None else now)
        for n in expired:
            self.dispatch(s.NotificationRemoved(n.id))
        return expired

    # ---- session ----

    def register(self, email: str, password: str, name: Optional[str] = None) -> bool:
        self.dispatch(s.RegisterStarted())
        try:
            self._api.register(email, password, name)
        except ApiError as e:
            self.dispatch(s.RegisterFailed(e.message))
            self.notify("error", e.message)
            return False
        self.dispatch(s.RegisterSucceeded())
        self.notify("success", "Registration successful. Please log in.")
        return True

    def login(self, email: str, password: str) -> bool:
        self.dispatch(s.LoginStarted())
        try:
            token, user = self._api.login(email, password)
        except ApiError as e:
            self._storage.clear()
            self.dispatch(s.LoginFailed(e.message))
            self.notify("error", e.message)
            return False
        self._storage.save(StoredCredential(token=token, user=user))
        self.dispatch(s.LoginSucceeded(token, user))
        self.notify("success", "Logged in successfully")
        return True

    def logout(self) -> None:
        self._storage.clear()
        self.dispatch(s.LoggedOut())
        self.notify("info", "You have been logged out")

    def _expire_session(self) -> None:
        logger.info("credential rejected by server; signing out")
        self._storage.clear()
        self.dispatch(s.SessionExpired())
        self.notify("warning", self._state.auth.error or "Please log in again")

    def _token(self) -> Optional[str]:
        token = self._state.auth.token
        if token is None:
            self._expire_session()
        return token

    def _fail(self, error: ApiError) -> None:
        if error.unauthenticated:
            self._expire_session()
        else:
            self.notify("error", error.message)

    # ---- tasks ----

    def fetch_tasks(self) -> bool:
        token = self._token()
        if token is None:
            return False
        self.dispatch(s.TasksRequested())
        try:
            items = self._api.list_tasks(token)
        except ApiError as e:
            self.dispatch(s.TasksFailed(e.message))
            self._fail(e)
            return False
        self.dispatch(s.TasksLoaded(tuple(items)))
        return True

    def _mutate(self, call: Callable[[str], Any], success_message: str) -> bool:
        token = self._token()
        if token is None:
            return False
        self.dispatch(s.SubmittingSet(True))
        try:
            call(token)
        except ApiError as e:
            self._fail(e)
            return False
        except ValueError as e:
            self.notify("error", str(e))
            return False
        finally:
            self.dispatch(s.SubmittingSet(False))
        self.notify("success", success_message)
        self.fetch_tasks()
        return True

    def create_task(self, title: str, description: str, due_date: Any, priority: str = "Medium") -> bool:
        return self._mutate(
            lambda token: self._api.create_task(token, title, description, due_date, priority),
            "Task created successfully",
        )

    def update_task(
        self,
        task_id: int,
        title: str,
        description: str,
        due_date: Any,
        priority: str,
        is_complete: bool,
    ) -> bool:
        return self._mutate(
            lambda token: self._api.update_task(
                token, task_id, title, description, due_date, priority, is_complete
            ),
            "Task updated successfully",
        )

    def _find(self, task_id: int) -> Optional[s.Task]:
        for task in self._state.tasks.items:
            if task.get("id") == task_id:
                return task
        return None

    def toggle_task(self, task_id: int) -> bool:
        task = self._find(task_id)
        if task is None:
            self.notify("error", "Task not found")
            return False
        new_status = not is_task_complete(task)
        return self._mutate(
            lambda token: self._api.update_task(
                token,
                task_id,
                task["title"],
                task.get("description") or "",
                task["due_date"],
                task["priority"],
                new_status,
            ),
            "Task marked as complete" if new_status else "Task marked as incomplete",
        )

    def delete_task(self, task_id: int) -> bool:
        return self._mutate(
            lambda token: self._api.delete_task(token, task_id),
            "Task deleted successfully",
        )

    # ---- modal form ----

    def open_create_modal(self) -> None:
        self.dispatch(s.CreateModalOpened())

    def open_edit_modal(self, task_id: int) -> bool:
        task = self._find(task_id)
        if task is None:
            self.notify("error", "Task not found")
            return False
        self.dispatch(s.EditModalOpened(task))
        return True

    def update_form(self, **changes: Any) -> None:
        self.dispatch(s.FormUpdated(changes))

    def close_modals(self) -> None:
        self.dispatch(s.ModalsClosed())

    def submit_form(self) -> bool:
        """Create or update from the open modal; the modal closes only on success."""
        ui = self._state.ui
        form = ui.form
        if ui.edit_modal_open and ui.current_task is not None:
            ok = self.update_task(
                ui.current_task["id"],
                form.title,
                form.description,
                form.due_date,
                form.priority,
                is_task_complete(ui.current_task),
            )
        elif ui.create_modal_open:
            ok = self.create_task(form.title, form.description, form.due_date, form.priority)
        else:
            return False
        if ok:
            self.close_modals()
        return ok

    # ---- view criteria ----

    def set_priority_filter(self, priority: Optional[str]) -> None:
        self.dispatch(s.PriorityFilterSet(priority))

    def set_completion_filter(self, completion: Any) -> None:
        self.dispatch(s.CompletionFilterSet(completion))

    def set_sort_order(self, order: str) -> None:
        self.dispatch(s.SortOrderSet(order))

    def set_search_term(self, term: str) -> None:
        self.dispatch(s.SearchTermSet(term))

    def reset_filters(self) -> None:
        self.dispatch(s.FiltersReset())
