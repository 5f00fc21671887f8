from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Optional, Tuple

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import InvalidCredentials, InvalidInput, Unauthenticated
from .models import UserEntity
from .repositories import UserRepository, get_user_repository
from .security import TokenSigner, hash_password, verify_password
from .settings import get_settings

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

_EMAIL_RE = re.compile(r"^[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}$")

# Compared against when the email is unknown so both login failures take equally long.
_DUMMY_HASH = hash_password("not-a-real-password", salt="0" * 32)

_security = HTTPBearer(auto_error=False)


# PUBLIC_INTERFACE
class AuthService:
    """
    Registers users, checks passwords and issues/validates bearer credentials.
    """

    def __init__(self, users: UserRepository, signer: TokenSigner) -> None:
        self._users = users
        self._signer = signer

    def register(self, email: str, password: str, name: Optional[str] = None) -> UserEntity:
        """
        Create a user with a salted password hash.

        Raises:
            InvalidInput: malformed email or password shorter than 6 characters.
            DuplicateEmail: the email is already registered.
        """
        normalized = (email or "").strip().lower()
        if not _EMAIL_RE.match(normalized):
            raise InvalidInput("Please provide a valid email address")
        if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidInput(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        display_name = name.strip() if name and name.strip() else None

        user = self._users.create(normalized, hash_password(password), display_name)
        logger.info("user registered id=%s", user["id"])
        return user

    def login(self, email: str, password: str) -> Tuple[str, UserEntity]:
        """
        Return (credential, user) for matching email and password.

        Raises:
            InvalidCredentials: unknown email or wrong password, indistinguishably.
        """
        user = self._users.get_by_email((email or "").strip().lower())
        if user is None:
            verify_password(password or "", _DUMMY_HASH)
            logger.info("login rejected")
            raise InvalidCredentials()
        if not verify_password(password or "", user["password_hash"]):
            logger.info("login rejected")
            raise InvalidCredentials()

        token = self._signer.mint(user["id"])
        logger.info("login succeeded user=%s", user["id"])
        return token, user

    def validate(self, token: str) -> int:
        """
        Return the user id carried by a credential.

        Raises:
            Unauthenticated: bad signature, malformed or expired credential.
        """
        try:
            return self._signer.decode(token).user_id
        except Unauthenticated:
            logger.debug("credential rejected")
            raise

    def current_user(self, token: str) -> UserEntity:
        """Validate a credential and load its user; a vanished user is Unauthenticated."""
        user = self._users.get_by_id(self.validate(token))
        if user is None:
            raise Unauthenticated()
        return user


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_token_signer() -> TokenSigner:
    """Process-wide signer configured from AUTH_SECRET_KEY / TOKEN_TTL_SECONDS."""
    settings = get_settings()
    if not settings.auth_secret_configured:
        logger.warning("AUTH_SECRET_KEY is not set; credentials will not survive a restart")
    return TokenSigner(settings.auth_secret_key, settings.token_ttl_seconds)


# PUBLIC_INTERFACE
def get_auth_service(
    users: UserRepository = Depends(get_user_repository),
    signer: TokenSigner = Depends(get_token_signer),
) -> AuthService:
    """FastAPI dependency building the auth service from the configured backends."""
    return AuthService(users, signer)


# PUBLIC_INTERFACE
def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_security),
    auth: AuthService = Depends(get_auth_service),
) -> UserEntity:
    """
    Resolve the caller from the 'Authorization: Bearer <token>' header.

    Raises:
        Unauthenticated if the header is missing, not a bearer scheme, or the
        credential does not validate.
    """
    if creds is None or not creds.credentials:
        raise Unauthenticated()
    return auth.current_user(creds.credentials)
