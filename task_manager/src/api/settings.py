from __future__ import annotations

import os
import secrets
from dataclasses import dataclass
from typing import List, Optional

# Used when AUTH_SECRET_KEY is not configured; credentials then die with the process.
_EPHEMERAL_SECRET = secrets.token_urlsafe(32)


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/tasks.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - APP_ENV: 'development' (default) or 'production'; production hides stack traces
    - AUTH_SECRET_KEY: secret used to sign bearer credentials (random per process if unset)
    - TOKEN_TTL_SECONDS: lifetime of issued credentials in seconds. Default 86400 (24h)
    - LOG_LEVEL: root log level name. Default 'INFO'
    - API_HOST / API_PORT: bind address for the bundled server. Default 0.0.0.0:8000
    """

    persistence_backend: str
    sqlite_db_path: str
    cors_allow_origins: List[str]
    app_env: str
    auth_secret_key: str
    auth_secret_configured: bool
    token_ttl_seconds: int
    log_level: str
    host: str = "0.0.0.0"
    port: int = 8000

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        backend = "memory"

    sqlite_path = _get_env("SQLITE_DB_PATH", "./data/tasks.db").strip()
    origins = _parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*"))
    app_env = _get_env("APP_ENV", "development").strip().lower()

    configured_secret: Optional[str] = os.getenv("AUTH_SECRET_KEY") or None
    ttl = _parse_int(_get_env("TOKEN_TTL_SECONDS", "86400"), 86400)
    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    host = _get_env("API_HOST", "0.0.0.0").strip()
    port = _parse_int(_get_env("API_PORT", "8000"), 8000)

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=sqlite_path,
        cors_allow_origins=origins,
        app_env=app_env,
        auth_secret_key=configured_secret or _EPHEMERAL_SECRET,
        auth_secret_configured=configured_secret is not None,
        token_ttl_seconds=ttl,
        log_level=log_level,
        host=host,
        port=port,
    )
