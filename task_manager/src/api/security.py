from __future__ import annotations

import base64
import hashlib
import hmac
import json
import secrets
import time
from dataclasses import dataclass
from typing import Callable

from .errors import Unauthenticated

_HASH_SCHEME = "pbkdf2_sha256"
_HASH_ITERATIONS = 260_000


# PUBLIC_INTERFACE
def hash_password(password: str, *, salt: str | None = None, iterations: int = _HASH_ITERATIONS) -> str:
    """
    Return a self-describing salted PBKDF2-HMAC-SHA256 hash:
    'pbkdf2_sha256$<iterations>$<salt_hex>$<hash_hex>'.
    """
    if salt is None:
        salt = secrets.token_hex(16)
    key = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return f"{_HASH_SCHEME}${iterations}${salt}${key.hex()}"


# PUBLIC_INTERFACE
def verify_password(password: str, encoded: str) -> bool:
    """Check a password against an encoded hash in constant time."""
    try:
        scheme, iterations, salt, expected = encoded.split("$", 3)
        rounds = int(iterations)
    except ValueError:
        return False
    if scheme != _HASH_SCHEME or rounds < 1:
        return False
    key = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), rounds)
    return hmac.compare_digest(key.hex().encode("ascii"), expected.encode("utf-8"))


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(text: str) -> bytes:
    padding = "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(text + padding)


@dataclass(frozen=True)
class CredentialClaims:
    """Decoded content of a verified bearer credential."""

    user_id: int
    issued_at: int
    expires_at: int
    credential_id: str


# PUBLIC_INTERFACE
class TokenSigner:
    """
    Mints and validates stateless bearer credentials.

    A credential is 'base64url(claims JSON).base64url(HMAC-SHA256)'. It is valid
    exactly when the signature matches the server secret and 'exp' lies in the
    future; nothing is stored server-side.
    """

    def __init__(self, secret: str, ttl_seconds: int, clock: Callable[[], float] = time.time) -> None:
        if not secret:
            raise ValueError("secret must not be empty")
        self._key = secret.encode("utf-8")
        self._ttl = ttl_seconds
        self._clock = clock

    def _sign(self, payload: bytes) -> str:
        return _b64encode(hmac.new(self._key, payload, hashlib.sha256).digest())

    def mint(self, user_id: int) -> str:
        now = int(self._clock())
        claims = {
            "sub": user_id,
            "iat": now,
            "exp": now + self._ttl,
            "jti": secrets.token_hex(8),
        }
        payload = _b64encode(json.dumps(claims, separators=(",", ":"), sort_keys=True).encode("utf-8"))
        return f"{payload}.{self._sign(payload.encode('ascii'))}"

    def decode(self, token: str) -> CredentialClaims:
        """
        Verify a credential and return its claims.

        Raises:
            Unauthenticated: malformed, badly signed, or expired credential.
        """
        parts = token.split(".") if token else []
        if len(parts) != 2 or not all(parts):
            raise Unauthenticated()
        payload, signature = parts

        try:
            expected = self._sign(payload.encode("ascii"))
        except UnicodeEncodeError:
            raise Unauthenticated() from None
        if not hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8")):
            raise Unauthenticated()

        try:
            claims = json.loads(_b64decode(payload))
            user_id = claims["sub"]
            issued_at = claims["iat"]
            expires_at = claims["exp"]
            credential_id = claims.get("jti", "")
        except (ValueError, KeyError, TypeError):
            raise Unauthenticated() from None
        if not isinstance(user_id, int) or not isinstance(expires_at, int):
            raise Unauthenticated()

        if expires_at <= self._clock():
            raise Unauthenticated()

        return CredentialClaims(
            user_id=user_id,
            issued_at=int(issued_at),
            expires_at=expires_at,
            credential_id=str(credential_id),
        )
