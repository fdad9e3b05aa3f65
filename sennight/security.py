"""Credential hashing and bearer token handling."""
from __future__ import annotations

import base64
import hashlib
from datetime import timedelta
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from fastapi import Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext

from .errors import AuthFailure

DEFAULT_TOKEN_TTL = timedelta(days=30)

_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password must not be empty")
    return _pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not password or not hashed:
        return False
    try:
        return _pwd_context.verify(password, hashed)
    except (ValueError, TypeError):
        return False


def _build_cipher(secret: str) -> Fernet:
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    key = base64.urlsafe_b64encode(digest)
    return Fernet(key)


class TokenIssuer:
    """Issue and resolve opaque bearer tokens that identify a user."""

    def __init__(self, secret: str, *, ttl: timedelta = DEFAULT_TOKEN_TTL) -> None:
        if not secret:
            raise ValueError("A token secret must be provided")
        self._cipher = _build_cipher(secret)
        self._ttl = ttl

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self, user_id: str) -> str:
        token = self._cipher.encrypt(user_id.encode("utf-8"))
        return token.decode("ascii")

    def resolve(self, token: str) -> str:
        try:
            plaintext = self._cipher.decrypt(
                token.encode("ascii"),
                ttl=int(self._ttl.total_seconds()),
            )
            user_id = plaintext.decode("utf-8")
        except (InvalidToken, UnicodeError) as exc:
            raise AuthFailure("Invalid or expired token", kind="invalid_token") from exc
        if not user_id:
            raise AuthFailure("Invalid or expired token", kind="invalid_token")
        return user_id


class BearerAuth:
    """FastAPI dependency resolving the caller's user id from a bearer token."""

    def __init__(self, issuer: TokenIssuer) -> None:
        self._issuer = issuer
        self._bearer = HTTPBearer(auto_error=False)

    async def __call__(self, request: Request) -> str:
        credentials: Optional[HTTPAuthorizationCredentials] = await self._bearer(request)
        if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
            raise AuthFailure("Missing bearer token", kind="missing_token")
        return self._issuer.resolve(credentials.credentials)


__all__ = [
    "BearerAuth",
    "DEFAULT_TOKEN_TTL",
    "TokenIssuer",
    "hash_password",
    "verify_password",
]
