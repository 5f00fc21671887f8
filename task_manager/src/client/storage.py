from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredCredential:
    token: str
    user: Optional[Dict[str, Any]] = None


# PUBLIC_INTERFACE
class CredentialStorage(ABC):
    """Durable home of the bearer credential between client runs."""

    @abstractmethod
    def load(self) -> Optional[StoredCredential]:
        """Return the saved credential, or None."""

    @abstractmethod
    def save(self, credential: StoredCredential) -> None:
        """Persist a credential, replacing any previous one."""

    @abstractmethod
    def clear(self) -> None:
        """Dispose of the saved credential."""


class MemoryCredentialStorage(CredentialStorage):
    def __init__(self, credential: Optional[StoredCredential] = None) -> None:
        self._credential = credential

    def load(self) -> Optional[StoredCredential]:
        return self._credential

    def save(self, credential: StoredCredential) -> None:
        self._credential = credential

    def clear(self) -> None:
        self._credential = None


class FileCredentialStorage(CredentialStorage):
    """
    JSON file storage: {"token": "...", "user": {...}}.

    An unreadable or malformed file is treated as no credential.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[StoredCredential]:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("ignoring unreadable credential file %s: %s", self._path, e)
            return None
        token = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            return None
        user = data.get("user")
        return StoredCredential(token=token, user=user if isinstance(user, dict) else None)

    def save(self, credential: StoredCredential) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(
            json.dumps({"token": credential.token, "user": credential.user}),
            encoding="utf-8",
        )
        tmp.replace(self._path)

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)
