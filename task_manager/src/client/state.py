"""
Client-side application state and its transitions.

State objects are frozen dataclasses. Each action is its own frozen dataclass
and has exactly one pure handler; ``reduce`` returns a new state and never
touches the network or storage.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Type

PRIORITIES = ("Low", "Medium", "High")
SORT_ASC = "asc"
SORT_DESC = "desc"
NOTIFICATION_KINDS = ("success", "error", "info", "warning")

LOGIN_ROUTE = "/login"
DASHBOARD_ROUTE = "/dashboard"

Task = Dict[str, Any]


@dataclass(frozen=True)
class Filters:
    priority: Optional[str] = None
    completion: Optional[bool] = None


@dataclass(frozen=True)
class Notification:
    id: int
    kind: str
    message: str
    duration_ms: int
    created_at: float = 0.0


@dataclass(frozen=True)
class TaskForm:
    title: str = ""
    description: str = ""
    due_date: str = ""
    priority: str = "Medium"


@dataclass(frozen=True)
class AuthState:
    token: Optional[str] = None
    user: Optional[Dict[str, Any]] = None
    loading: bool = False
    error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None


@dataclass(frozen=True)
class TaskListState:
    items: Tuple[Task, ...] = ()
    loading: bool = False
    error: Optional[str] = None
    filters: Filters = field(default_factory=Filters)
    sort_order: str = SORT_ASC
    search_term: str = ""


@dataclass(frozen=True)
class UiState:
    create_modal_open: bool = False
    edit_modal_open: bool = False
    current_task: Optional[Task] = None
    form: TaskForm = field(default_factory=TaskForm)
    is_submitting: bool = False
    notifications: Tuple[Notification, ...] = ()


@dataclass(frozen=True)
class AppState:
    auth: AuthState = field(default_factory=AuthState)
    tasks: TaskListState = field(default_factory=TaskListState)
    ui: UiState = field(default_factory=UiState)
    route: str = LOGIN_ROUTE


# PUBLIC_INTERFACE
def initial_state(token: Optional[str] = None, user: Optional[Dict[str, Any]] = None) -> AppState:
    """Fresh state; a persisted credential starts the session on the dashboard."""
    if token:
        return AppState(auth=AuthState(token=token, user=user), route=DASHBOARD_ROUTE)
    return AppState()


# ---- actions ----

@dataclass(frozen=True)
class LoginStarted:
    pass


@dataclass(frozen=True)
class LoginSucceeded:
    token: str
    user: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class LoginFailed:
    message: str


@dataclass(frozen=True)
class RegisterStarted:
    pass


@dataclass(frozen=True)
class RegisterSucceeded:
    pass


@dataclass(frozen=True)
class RegisterFailed:
    message: str


@dataclass(frozen=True)
class LoggedOut:
    pass


@dataclass(frozen=True)
class SessionExpired:
    message: str = "Your session has expired. Please log in again."


@dataclass(frozen=True)
class TasksRequested:
    pass


@dataclass(frozen=True)
class TasksLoaded:
    items: Tuple[Task, ...]


@dataclass(frozen=True)
class TasksFailed:
    message: str


@dataclass(frozen=True)
class PriorityFilterSet:
    priority: Optional[str]


@dataclass(frozen=True)
class CompletionFilterSet:
    completion: Any


@dataclass(frozen=True)
class SortOrderSet:
    order: str


@dataclass(frozen=True)
class SearchTermSet:
    term: str


@dataclass(frozen=True)
class FiltersReset:
    pass


@dataclass(frozen=True)
class CreateModalOpened:
    pass


@dataclass(frozen=True)
class EditModalOpened:
    task: Task


@dataclass(frozen=True)
class ModalsClosed:
    pass


@dataclass(frozen=True)
class FormUpdated:
    changes: Mapping[str, Any]


@dataclass(frozen=True)
class FormReset:
    pass


@dataclass(frozen=True)
class SubmittingSet:
    value: bool


@dataclass(frozen=True)
class NotificationAdded:
    notification: Notification


@dataclass(frozen=True)
class NotificationRemoved:
    notification_id: int


@dataclass(frozen=True)
class NotificationsCleared:
    pass


# ---- handlers ----

def _signed_out(state: AppState, error: Optional[str]) -> AppState:
    return replace(
        state,
        auth=AuthState(error=error),
        tasks=replace(state.tasks, items=(), loading=False, error=None),
        ui=replace(state.ui, create_modal_open=False, edit_modal_open=False,
                   current_task=None, form=TaskForm(), is_submitting=False),
        route=LOGIN_ROUTE,
    )


def _on_login_started(state: AppState, action: LoginStarted) -> AppState:
    return replace(state, auth=replace(state.auth, loading=True, error=None))


def _on_login_succeeded(state: AppState, action: LoginSucceeded) -> AppState:
    return replace(
        state,
        auth=AuthState(token=action.token, user=action.user),
        route=DASHBOARD_ROUTE,
    )


def _on_login_failed(state: AppState, action: LoginFailed) -> AppState:
    return replace(state, auth=AuthState(error=action.message), route=LOGIN_ROUTE)


def _on_register_started(state: AppState, action: RegisterStarted) -> AppState:
    return replace(state, auth=replace(state.auth, loading=True, error=None))


def _on_register_succeeded(state: AppState, action: RegisterSucceeded) -> AppState:
    return replace(state, auth=replace(state.auth, loading=False, error=None))


def _on_register_failed(state: AppState, action: RegisterFailed) -> AppState:
    return replace(state, auth=replace(state.auth, loading=False, error=action.message))


def _on_logged_out(state: AppState, action: LoggedOut) -> AppState:
    return _signed_out(state, None)


def _on_session_expired(state: AppState, action: SessionExpired) -> AppState:
    return _signed_out(state, action.message)


def _on_tasks_requested(state: AppState, action: TasksRequested) -> AppState:
    return replace(state, tasks=replace(state.tasks, loading=True, error=None))


def _on_tasks_loaded(state: AppState, action: TasksLoaded) -> AppState:
    items = tuple(dict(t) for t in action.items)
    return replace(state, tasks=replace(state.tasks, items=items, loading=False, error=None))


def _on_tasks_failed(state: AppState, action: TasksFailed) -> AppState:
    # The cached list is kept as-is.
    return replace(state, tasks=replace(state.tasks, loading=False, error=action.message))


def _on_priority_filter_set(state: AppState, action: PriorityFilterSet) -> AppState:
    priority = action.priority or None
    if priority is not None and priority not in PRIORITIES:
        raise ValueError(f"unknown priority {priority!r}")
    filters = replace(state.tasks.filters, priority=priority)
    return replace(state, tasks=replace(state.tasks, filters=filters))


def _coerce_completion(value: Any) -> Optional[bool]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise ValueError(f"completion filter must be a boolean, got {value!r}")


def _on_completion_filter_set(state: AppState, action: CompletionFilterSet) -> AppState:
    filters = replace(state.tasks.filters, completion=_coerce_completion(action.completion))
    return replace(state, tasks=replace(state.tasks, filters=filters))


def _on_sort_order_set(state: AppState, action: SortOrderSet) -> AppState:
    if action.order not in (SORT_ASC, SORT_DESC):
        raise ValueError("sort order must be 'asc' or 'desc'")
    return replace(state, tasks=replace(state.tasks, sort_order=action.order))


def _on_search_term_set(state: AppState, action: SearchTermSet) -> AppState:
    return replace(state, tasks=replace(state.tasks, search_term=action.term or ""))


def _on_filters_reset(state: AppState, action: FiltersReset) -> AppState:
    return replace(
        state,
        tasks=replace(state.tasks, filters=Filters(), sort_order=SORT_ASC, search_term=""),
    )


def _on_create_modal_opened(state: AppState, action: CreateModalOpened) -> AppState:
    return replace(state, ui=replace(state.ui, create_modal_open=True, form=TaskForm()))


def _on_edit_modal_opened(state: AppState, action: EditModalOpened) -> AppState:
    task = action.task
    due = str(task.get("due_date") or "").split("T", 1)[0]
    form = TaskForm(
        title=task.get("title") or "",
        description=task.get("description") or "",
        due_date=due,
        priority=task.get("priority") or "Medium",
    )
    return replace(
        state,
        ui=replace(state.ui, edit_modal_open=True, current_task=dict(task), form=form),
    )


def _on_modals_closed(state: AppState, action: ModalsClosed) -> AppState:
    return replace(
        state,
        ui=replace(state.ui, create_modal_open=False, edit_modal_open=False,
                   current_task=None, form=TaskForm()),
    )


def _on_form_updated(state: AppState, action: FormUpdated) -> AppState:
    unknown = set(action.changes) - set(TaskForm.__dataclass_fields__)
    if unknown:
        raise ValueError(f"unknown form fields: {sorted(unknown)}")
    return replace(state, ui=replace(state.ui, form=replace(state.ui.form, **action.changes)))


def _on_form_reset(state: AppState, action: FormReset) -> AppState:
    return replace(state, ui=replace(state.ui, form=TaskForm()))


def _on_submitting_set(state: AppState, action: SubmittingSet) -> AppState:
    return replace(state, ui=replace(state.ui, is_submitting=action.value))


def _on_notification_added(state: AppState, action: NotificationAdded) -> AppState:
    n = action.notification
    if n.kind not in NOTIFICATION_KINDS:
        raise ValueError(f"unknown notification kind {n.kind!r}")
    return replace(state, ui=replace(state.ui, notifications=state.ui.notifications + (n,)))


def _on_notification_removed(state: AppState, action: NotificationRemoved) -> AppState:
    kept = tuple(n for n in state.ui.notifications if n.id != action.notification_id)
    return replace(state, ui=replace(state.ui, notifications=kept))


def _on_notifications_cleared(state: AppState, action: NotificationsCleared) -> AppState:
    return replace(state, ui=replace(state.ui, notifications=()))


_HANDLERS: Dict[Type[Any], Callable[[AppState, Any], AppState]] = {
    LoginStarted: _on_login_started,
    LoginSucceeded: _on_login_succeeded,
    LoginFailed: _on_login_failed,
    RegisterStarted: _on_register_started,
    RegisterSucceeded: _on_register_succeeded,
    RegisterFailed: _on_register_failed,
    LoggedOut: _on_logged_out,
    SessionExpired: _on_session_expired,
    TasksRequested: _on_tasks_requested,
    TasksLoaded: _on_tasks_loaded,
    TasksFailed: _on_tasks_failed,
    PriorityFilterSet: _on_priority_filter_set,
    CompletionFilterSet: _on_completion_filter_set,
    SortOrderSet: _on_sort_order_set,
    SearchTermSet: _on_search_term_set,
    FiltersReset: _on_filters_reset,
    CreateModalOpened: _on_create_modal_opened,
    EditModalOpened: _on_edit_modal_opened,
    ModalsClosed: _on_modals_closed,
    FormUpdated: _on_form_updated,
    FormReset: _on_form_reset,
    SubmittingSet: _on_submitting_set,
    NotificationAdded: _on_notification_added,
    NotificationRemoved: _on_notification_removed,
    NotificationsCleared: _on_notifications_cleared,
}


# PUBLIC_INTERFACE
def reduce(state: AppState, action: Any) -> AppState:
    """Apply one action to a state and return the resulting state."""
    try:
        handler = _HANDLERS[type(action)]
    except KeyError:
        raise TypeError(f"unknown action {type(action).__name__}") from None
    return handler(state, action)
