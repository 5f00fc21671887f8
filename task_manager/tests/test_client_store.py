from datetime import date, datetime
from pathlib import Path

import httpx
import pytest

from src.client import state as s
from src.client.api_client import ApiError, TaskApiClient, normalize_due_date
from src.client.settings import ClientSettings
from src.client.storage import FileCredentialStorage, MemoryCredentialStorage, StoredCredential
from src.client.store import ClientStore


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def client_settings(tmp_path):
    return ClientSettings(
        api_base_url="http://testserver",
        credential_path=tmp_path / "credential.json",
        request_timeout=5.0,
        notification_duration_ms=3000,
    )


@pytest.fixture
def storage():
    return MemoryCredentialStorage()


@pytest.fixture
def make_store(client, storage, client_settings):
    def _make(clock=None):
        return ClientStore(
            TaskApiClient(http=client),
            storage,
            settings=client_settings,
            clock=clock or FakeClock(),
        )

    return _make


@pytest.fixture
def logged_in(make_store):
    store = make_store()
    assert store.register("ada@example.com", "secret123", "Ada")
    assert store.login("ada@example.com", "secret123")
    return store


def last_notification(store):
    return store.state.ui.notifications[-1]


class TestSession:
    def test_login_persists_credential(self, logged_in, storage):
        assert logged_in.state.auth.is_authenticated
        assert logged_in.state.route == s.DASHBOARD_ROUTE
        assert storage.load().token == logged_in.state.auth.token
        assert storage.load().user["email"] == "ada@example.com"
        assert last_notification(logged_in).kind == "success"

    def test_persisted_credential_survives_restart(self, logged_in, make_store):
        restarted = make_store()
        assert restarted.state.auth.token == logged_in.state.auth.token
        assert restarted.state.route == s.DASHBOARD_ROUTE
        assert restarted.fetch_tasks()

    def test_wrong_password_notifies_and_stays_logged_out(self, make_store, storage):
        store = make_store()
        store.register("ada@example.com", "secret123")
        assert not store.login("ada@example.com", "wrong-password")
        assert not store.state.auth.is_authenticated
        assert store.state.auth.error == "Invalid email or password"
        assert storage.load() is None
        n = last_notification(store)
        assert (n.kind, n.message) == ("error", "Invalid email or password")

    def test_duplicate_registration_notifies(self, make_store):
        store = make_store()
        assert store.register("ada@example.com", "secret123")
        assert not store.register("ada@example.com", "secret123")
        assert store.state.auth.error == "Email is already registered"

    def test_logout_disposes_credential(self, logged_in, storage):
        logged_in.fetch_tasks()
        logged_in.logout()
        assert storage.load() is None
        assert logged_in.state.route == s.LOGIN_ROUTE
        assert logged_in.state.tasks.items == ()

    def test_rejected_credential_forces_logout(self, make_store, storage):
        storage.save(StoredCredential(token="stale.token"))
        store = make_store()
        assert store.state.route == s.DASHBOARD_ROUTE
        assert not store.fetch_tasks()
        assert storage.load() is None
        assert store.state.auth.token is None
        assert store.state.route == s.LOGIN_ROUTE
        assert last_notification(store).kind == "warning"

    def test_action_without_credential_redirects(self, make_store):
        store = make_store()
        assert not store.create_task("Pay rent", "", "2025-01-05", "High")
        assert store.state.route == s.LOGIN_ROUTE


class TestTaskActions:
    def test_create_refetches(self, logged_in):
        assert logged_in.create_task("Pay rent", "", datetime(2025, 1, 5, 9, 30), "High")
        items = logged_in.state.tasks.items
        assert len(items) == 1
        assert items[0]["title"] == "Pay rent"
        assert items[0]["due_date"] == "2025-01-05"
        assert not logged_in.state.ui.is_submitting

    def test_toggle_scenario(self, logged_in):
        logged_in.create_task("Pay rent", "", "2025-01-05", "High")
        tid = logged_in.state.tasks.items[0]["id"]
        assert logged_in.toggle_task(tid)
        assert logged_in.state.tasks.items[0]["is_complete"] is True
        assert last_notification(logged_in).message == "Task marked as complete"
        assert logged_in.toggle_task(tid)
        assert logged_in.state.tasks.items[0]["is_complete"] is False

    def test_update_and_delete(self, logged_in):
        logged_in.create_task("Draft", "x", "2025-01-05", "Low")
        tid = logged_in.state.tasks.items[0]["id"]
        assert logged_in.update_task(tid, "Final", "y", "2025-02-01", "Medium", False)
        task = logged_in.state.tasks.items[0]
        assert (task["title"], task["description"], task["priority"]) == ("Final", "y", "Medium")
        assert logged_in.delete_task(tid)
        assert logged_in.state.tasks.items == ()

    def test_failed_mutation_leaves_list_unchanged(self, logged_in):
        logged_in.create_task("Keep me", "", "2025-01-05", "Low")
        before = logged_in.state.tasks.items
        assert not logged_in.create_task("", "", "2025-01-05", "Low")
        assert not logged_in.delete_task(987654)
        assert not logged_in.create_task("Bad date", "", "someday", "Low")
        assert logged_in.state.tasks.items == before
        kinds = [n.kind for n in logged_in.state.ui.notifications[-3:]]
        assert kinds == ["error", "error", "error"]
        assert logged_in.state.auth.is_authenticated

    def test_toggle_unknown_task(self, logged_in):
        assert not logged_in.toggle_task(1234)
        assert last_notification(logged_in).message == "Task not found"

    def test_visible_tasks_follow_criteria(self, logged_in):
        logged_in.create_task("Later", "", "2025-05-01", "Low")
        logged_in.create_task("Sooner", "rent", "2025-01-01", "High")
        logged_in.create_task("Middle", "", "2025-03-01", "High")
        assert [t["title"] for t in logged_in.visible_tasks()] == ["Sooner", "Middle", "Later"]
        logged_in.set_sort_order("desc")
        logged_in.set_priority_filter("High")
        assert [t["title"] for t in logged_in.visible_tasks()] == ["Middle", "Sooner"]
        logged_in.set_search_term("RENT")
        assert [t["title"] for t in logged_in.visible_tasks()] == ["Sooner"]
        logged_in.set_completion_filter(True)
        assert logged_in.visible_tasks() == []
        logged_in.reset_filters()
        assert len(logged_in.visible_tasks()) == 3


class TestModalForm:
    def test_submit_create_form(self, logged_in):
        logged_in.open_create_modal()
        logged_in.update_form(title="Pay rent", due_date="2025-01-05", priority="High")
        assert logged_in.submit_form()
        assert not logged_in.state.ui.create_modal_open
        assert logged_in.state.tasks.items[0]["priority"] == "High"

    def test_submit_edit_form_keeps_completion(self, logged_in):
        logged_in.create_task("Pay rent", "", "2025-01-05", "High")
        tid = logged_in.state.tasks.items[0]["id"]
        logged_in.toggle_task(tid)
        assert logged_in.open_edit_modal(tid)
        logged_in.update_form(title="Pay rent (Jan)")
        assert logged_in.submit_form()
        task = logged_in.state.tasks.items[0]
        assert task["title"] == "Pay rent (Jan)"
        assert task["is_complete"] is True
        assert not logged_in.state.ui.edit_modal_open

    def test_failed_submit_keeps_modal_open(self, logged_in):
        logged_in.open_create_modal()
        logged_in.update_form(title="", due_date="2025-01-05")
        assert not logged_in.submit_form()
        assert logged_in.state.ui.create_modal_open

    def test_submit_without_modal(self, logged_in):
        assert not logged_in.submit_form()


class TestNotifications:
    def test_expire_after_duration(self, make_store):
        clock = FakeClock(100.0)
        store = make_store(clock)
        short = store.notify("info", "short", duration_ms=500)
        long = store.notify("warning", "long")
        clock.now = 100.6
        assert store.expire_notifications() == [short]
        assert store.state.ui.notifications == (long,)
        store.dismiss(long.id)
        assert store.state.ui.notifications == ()


class TestApiClient:
    def test_transport_failure_becomes_api_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        http = httpx.Client(base_url="http://api.invalid", transport=httpx.MockTransport(handler))
        with TaskApiClient(http=http) as api:
            with pytest.raises(ApiError) as exc:
                api.list_tasks("tok")
        assert exc.value.status_code is None
        assert not exc.value.unauthenticated

    def test_non_json_error_body(self):
        http = httpx.Client(
            base_url="http://api.invalid",
            transport=httpx.MockTransport(lambda request: httpx.Response(502, text="Bad Gateway")),
        )
        with pytest.raises(ApiError) as exc:
            TaskApiClient(http=http).list_tasks("tok")
        assert exc.value.status_code == 502
        assert "502" in exc.value.message

    def test_bearer_header_sent(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json={"success": True, "tasks": []})

        http = httpx.Client(base_url="http://api.invalid", transport=httpx.MockTransport(handler))
        assert TaskApiClient(http=http).list_tasks("abc") == []
        assert seen["auth"] == "Bearer abc"

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("2025-01-05", "2025-01-05"),
            ("2025-01-05T23:59:59.000Z", "2025-01-05"),
            ("2025-01-05 08:00", "2025-01-05"),
            (date(2025, 1, 5), "2025-01-05"),
            (datetime(2025, 1, 5, 12, 0), "2025-01-05"),
        ],
    )
    def test_normalize_due_date(self, value, expected):
        assert normalize_due_date(value) == expected

    def test_normalize_due_date_rejects_garbage(self):
        with pytest.raises(ValueError):
            normalize_due_date("next week")


class TestFileCredentialStorage:
    def test_round_trip_and_clear(self, tmp_path: Path):
        store = FileCredentialStorage(tmp_path / "nested" / "cred.json")
        assert store.load() is None
        store.save(StoredCredential(token="tok", user={"id": 1}))
        assert store.load() == StoredCredential(token="tok", user={"id": 1})
        store.clear()
        assert store.load() is None
        store.clear()

    def test_corrupt_file_is_ignored(self, tmp_path: Path):
        path = tmp_path / "cred.json"
        path.write_text("{not json", encoding="utf-8")
        assert FileCredentialStorage(path).load() is None
        path.write_text('{"user": {}}', encoding="utf-8")
        assert FileCredentialStorage(path).load() is None
