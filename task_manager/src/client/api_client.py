from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx

from .settings import ClientSettings, get_client_settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """
    A request that did not succeed. status_code is None when the server could
    not be reached at all.
    """

    def __init__(self, status_code: Optional[int], message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @property
    def unauthenticated(self) -> bool:
        return self.status_code == 401


# PUBLIC_INTERFACE
def normalize_due_date(value: Union[date, datetime, str]) -> str:
    """
    Reduce a date, datetime or ISO string (with or without a time part) to
    'YYYY-MM-DD'. Raises ValueError for anything unparseable.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        head = value.strip().split("T", 1)[0].split(" ", 1)[0]
        return date.fromisoformat(head).isoformat()
    raise ValueError(f"unsupported due date {value!r}")


class TaskApiClient:
    """
    Thin synchronous client for the task manager REST API.

    Pass an existing httpx.Client (for instance FastAPI's TestClient) to reuse
    its transport; otherwise one is created from ClientSettings.
    """

    def __init__(self, http: Optional[httpx.Client] = None, settings: Optional[ClientSettings] = None) -> None:
        if http is None:
            settings = settings or get_client_settings()
            http = httpx.Client(base_url=settings.api_base_url, timeout=settings.request_timeout)
            self._owns_http = True
        else:
            self._owns_http = False
        self._http = http

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "TaskApiClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            response = self._http.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(None, "Unable to reach the server") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_error:
            message = body.get("message") or f"Request failed with status {response.status_code}"
            raise ApiError(response.status_code, str(message))
        return body

    def register(self, email: str, password: str, name: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"email": email, "password": password}
        if name:
            payload["name"] = name
        return self._request("POST", "/auth/register", json=payload)["user"]

    def login(self, email: str, password: str) -> Tuple[str, Dict[str, Any]]:
        body = self._request("POST", "/auth/login", json={"email": email, "password": password})
        return body["token"], body["user"]

    def me(self, token: str) -> Dict[str, Any]:
        return self._request("GET", "/auth/me", token=token)["user"]

    def list_tasks(self, token: str) -> List[Dict[str, Any]]:
        return list(self._request("GET", "/tasks", token=token).get("tasks") or [])

    def create_task(
        self,
        token: str,
        title: str,
        description: str,
        due_date: Union[date, datetime, str],
        priority: str,
    ) -> Dict[str, Any]:
        payload = {
            "title": title,
            "description": description or "",
            "due_date": normalize_due_date(due_date),
            "priority": priority,
        }
        return self._request("POST", "/tasks", token=token, json=payload)["task"]

    def update_task(
        self,
        token: str,
        task_id: int,
        title: str,
        description: str,
        due_date: Union[date, datetime, str],
        priority: str,
        is_complete: bool,
    ) -> Dict[str, Any]:
        payload = {
            "title": title,
            "description": description or "",
            "due_date": normalize_due_date(due_date),
            "priority": priority,
            "is_complete": bool(is_complete),
        }
        return self._request("PUT", f"/tasks/{task_id}", token=token, json=payload)["task"]

    def delete_task(self, token: str, task_id: int) -> None:
        self._request("DELETE", f"/tasks/{task_id}", token=token)
