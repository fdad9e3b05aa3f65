"""Failure types reported by the dating service core."""
from __future__ import annotations

from typing import Optional


class SennightError(Exception):
    """Base class for failures that carry a stable machine-readable kind."""

    kind = "error"
    status_code = 500
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None, *, kind: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)
        if kind is not None:
            self.kind = kind

    @property
    def detail(self) -> str:
        return str(self)


class ValidationError(SennightError):
    kind = "invalid_request"
    status_code = 400
    default_message = "Invalid request"


class MissingFields(ValidationError):
    kind = "missing_fields"
    default_message = "Required fields are missing"


class MissingText(ValidationError):
    kind = "missing_text"
    default_message = "Message text must not be empty"


class PayloadTooLarge(ValidationError):
    kind = "payload_too_large"
    status_code = 413
    default_message = "Request body is too large"


class ConflictError(SennightError):
    kind = "conflict"
    status_code = 409
    default_message = "Conflicting record"


class EmailExists(ConflictError):
    kind = "email_exists"
    default_message = "A user with that email already exists"


class NotFoundError(SennightError):
    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class UserNotFound(NotFoundError):
    kind = "user_not_found"
    default_message = "User not found"


class ProfileNotFound(NotFoundError):
    kind = "not_found"
    default_message = "Profile not found"


class MatchNotFound(NotFoundError):
    kind = "match_not_found"
    default_message = "Match not found"


class AuthFailure(SennightError):
    kind = "unauthorized"
    status_code = 401
    default_message = "Invalid authentication credentials"


class BadCredentials(AuthFailure):
    kind = "bad_credentials"
    default_message = "Invalid email or password"


class StorageFailure(SennightError):
    kind = "storage_failure"
    status_code = 500
    default_message = "Storage is unavailable"


__all__ = [
    "AuthFailure",
    "BadCredentials",
    "ConflictError",
    "EmailExists",
    "MatchNotFound",
    "MissingFields",
    "MissingText",
    "NotFoundError",
    "PayloadTooLarge",
    "ProfileNotFound",
    "SennightError",
    "StorageFailure",
    "UserNotFound",
    "ValidationError",
]
