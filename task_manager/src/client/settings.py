from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ClientSettings:
    """
    Client settings loaded from environment variables.

    Env vars:
    - TASK_API_URL: backend base URL. Default 'http://localhost:8000'
    - TASK_CREDENTIAL_PATH: file holding the persisted credential.
      Default '~/.task_manager/credential.json'
    - TASK_API_TIMEOUT: request timeout in seconds. Default 10
    - NOTIFICATION_DURATION_MS: default notification display time. Default 3000
    """

    api_base_url: str
    credential_path: Path
    request_timeout: float
    notification_duration_ms: int


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_number(value: str, default: float) -> float:
    try:
        parsed = float(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


# PUBLIC_INTERFACE
def get_client_settings() -> ClientSettings:
    """Return client settings loaded from environment variables."""
    base_url = _get_env("TASK_API_URL", "http://localhost:8000").strip().rstrip("/")
    credential_path = Path(_get_env("TASK_CREDENTIAL_PATH", "~/.task_manager/credential.json")).expanduser()
    timeout = _parse_number(_get_env("TASK_API_TIMEOUT", "10"), 10.0)
    duration = int(_parse_number(_get_env("NOTIFICATION_DURATION_MS", "3000"), 3000))
    return ClientSettings(
        api_base_url=base_url,
        credential_path=credential_path,
        request_timeout=timeout,
        notification_duration_ms=duration,
    )
