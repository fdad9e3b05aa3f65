"""Domain records persisted by the dating service."""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

DEFAULT_GENDER = "unspecified"
DEFAULT_LOOKING_FOR = ("female", "male", "non-binary")


def generate_id() -> str:
    return secrets.token_urlsafe(15)


def current_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_email(email: str) -> str:
    return email.strip().lower()


def as_gender_set(value: Any) -> List[str]:
    """Treat a scalar ``lookingFor`` value as a one-element list."""

    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(item) for item in value]
    return [str(value)]


@dataclass
class User:
    """A registered account and its profile."""

    id: str
    email: str
    pass_hash: str
    name: str
    gender: str = DEFAULT_GENDER
    looking_for: Any = field(default_factory=lambda: list(DEFAULT_LOOKING_FOR))
    age: Optional[int] = None
    city: str = ""
    bio: str = ""
    interests: List[str] = field(default_factory=list)
    photos: List[str] = field(default_factory=list)
    created_at: str = field(default_factory=current_timestamp)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "User":
        return cls(
            id=str(record["id"]),
            email=str(record.get("email", "")),
            pass_hash=str(record.get("passHash", "")),
            name=str(record.get("name", "")),
            gender=record.get("gender", DEFAULT_GENDER),
            looking_for=record.get("lookingFor", list(DEFAULT_LOOKING_FOR)),
            age=record.get("age"),
            city=record.get("city", ""),
            bio=record.get("bio", ""),
            interests=list(record.get("interests") or []),
            photos=list(record.get("photos") or []),
            created_at=str(record.get("createdAt", "")),
        )

    def to_record(self) -> Dict[str, Any]:
        record = self.public()
        record["passHash"] = self.pass_hash
        return record

    def public(self) -> Dict[str, Any]:
        """Return the record without the credential hash."""

        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "gender": self.gender,
            "lookingFor": self.looking_for,
            "age": self.age,
            "city": self.city,
            "bio": self.bio,
            "interests": list(self.interests),
            "photos": list(self.photos),
            "createdAt": self.created_at,
        }

    def is_looking_for(self, gender: Any) -> bool:
        return gender in as_gender_set(self.looking_for)


@dataclass
class Match:
    """The like state between an unordered pair of users."""

    id: str
    users: Tuple[str, str]
    likes: Dict[str, bool] = field(default_factory=dict)
    created_at: str = field(default_factory=current_timestamp)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Match":
        first, second = record["users"]
        return cls(
            id=str(record["id"]),
            users=(str(first), str(second)),
            likes={str(key): value is True for key, value in (record.get("likes") or {}).items()},
            created_at=str(record.get("createdAt", "")),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "users": list(self.users),
            "likes": dict(self.likes),
            "createdAt": self.created_at,
        }

    def involves(self, user_id: str) -> bool:
        return user_id in self.users

    def has_liked(self, user_id: str) -> bool:
        return self.likes.get(user_id) is True

    @property
    def mutual(self) -> bool:
        first, second = self.users
        return self.has_liked(first) and self.has_liked(second)


@dataclass(frozen=True)
class Message:
    """A text message sent within a match."""

    id: str
    match_id: str
    sender_id: str
    text: str
    created_at: str

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Message":
        return cls(
            id=str(record["id"]),
            match_id=str(record["matchId"]),
            sender_id=str(record["from"]),
            text=str(record.get("text", "")),
            created_at=str(record.get("createdAt", "")),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "matchId": self.match_id,
            "from": self.sender_id,
            "text": self.text,
            "createdAt": self.created_at,
        }


def pair_key(first: str, second: str) -> frozenset:
    return frozenset((first, second))


def record_pair(record: Dict[str, Any]) -> frozenset:
    return frozenset(str(user_id) for user_id in record.get("users") or ())


__all__ = [
    "DEFAULT_GENDER",
    "DEFAULT_LOOKING_FOR",
    "Match",
    "Message",
    "User",
    "as_gender_set",
    "current_timestamp",
    "generate_id",
    "normalize_email",
    "pair_key",
    "record_pair",
]
