from __future__ import annotations

import traceback
from typing import Any, Dict, Optional

from .models import TaskEntity, UserEntity
from .schemas import TaskOut, UserOut


# PUBLIC_INTERFACE
def error_envelope(message: str, exc: Optional[BaseException] = None, production: bool = False) -> Dict[str, Any]:
    """
    Build the shared error body for every failed request.

    Args:
        message: Client-safe message.
        exc: The exception being reported; its traceback becomes 'stack'.
        production: When True, 'stack' is always null.

    Returns:
        Dict with keys: success (False), message, stack.
    """
    stack: Optional[str] = None
    if exc is not None and not production:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return {"success": False, "message": message, "stack": stack}


def user_out(user: UserEntity) -> UserOut:
    return UserOut(id=user["id"], email=user["email"], name=user["name"])


def task_out(task: TaskEntity) -> TaskOut:
    return TaskOut(**task)  # type: ignore[arg-type]
