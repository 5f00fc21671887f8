from __future__ import annotations

from fastapi import status


class AppError(Exception):
    """
    Base class for failures that map onto a client-facing HTTP error.

    The message is safe to show to the caller; anything sensitive belongs in logs.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class DuplicateEmail(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Email is already registered"


class InvalidCredentials(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password"


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Task not found"


class Internal(AppError):
    pass
