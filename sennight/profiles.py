"""Account registration, authentication and profile editing."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .errors import BadCredentials, EmailExists, MissingFields, ProfileNotFound, ValidationError
from .models import (
    DEFAULT_GENDER,
    DEFAULT_LOOKING_FOR,
    User,
    as_gender_set,
    generate_id,
    normalize_email,
)
from .security import hash_password, verify_password
from .store import USERS, CollectionStore

logger = logging.getLogger("sennight.profiles")


def _set_text(attribute: str) -> Callable[[User, Any], None]:
    def setter(user: User, value: Any) -> None:
        setattr(user, attribute, "" if value is None else str(value))

    return setter


def _set_name(user: User, value: Any) -> None:
    name = str(value).strip() if value is not None else ""
    if not name:
        raise ValidationError("Name must not be empty", kind="invalid_name")
    user.name = name


def _set_age(user: User, value: Any) -> None:
    if value is None or value == "":
        user.age = None
        return
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError("Age must be a whole number", kind="invalid_age")
    try:
        user.age = int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValidationError("Age must be a whole number", kind="invalid_age") from exc


def _set_string_list(attribute: str) -> Callable[[User, Any], None]:
    def setter(user: User, value: Any) -> None:
        if value is None:
            items: List[str] = []
        elif isinstance(value, (list, tuple)):
            items = [str(item) for item in value]
        else:
            items = [str(value)]
        setattr(user, attribute, items)

    return setter


def _set_looking_for(user: User, value: Any) -> None:
    if isinstance(value, str):
        user.looking_for = value
    else:
        _set_string_list("looking_for")(user, value)


# Keys accepted by ``update_self``; anything else in the payload is ignored.
UPDATABLE_FIELDS: Dict[str, Callable[[User, Any], None]] = {
    "name": _set_name,
    "age": _set_age,
    "city": _set_text("city"),
    "bio": _set_text("bio"),
    "interests": _set_string_list("interests"),
    "photos": _set_string_list("photos"),
    "gender": _set_text("gender"),
    "lookingFor": _set_looking_for,
}


class ProfileRegistry:
    """User records stored in the ``users`` collection."""

    def __init__(self, store: CollectionStore) -> None:
        self._store = store

    def register(
        self,
        email: Optional[str],
        password: Optional[str],
        name: Optional[str],
        gender: Optional[str] = None,
        looking_for: Optional[Iterable[str] | str] = None,
    ) -> User:
        """Create a new account. Raises ``EmailExists`` on a case-insensitive duplicate."""

        if not email or not password or not name:
            raise MissingFields()

        normalized = normalize_email(email)
        if looking_for is None or looking_for == "":
            preferences: Any = list(DEFAULT_LOOKING_FOR)
        elif isinstance(looking_for, str):
            preferences = looking_for
        else:
            preferences = as_gender_set(looking_for)
        password_hash = hash_password(password)

        with self._store.transaction(USERS) as records:
            if any(normalize_email(str(record.get("email", ""))) == normalized for record in records):
                raise EmailExists()
            user = User(
                id=generate_id(),
                email=email,
                pass_hash=password_hash,
                name=name,
                gender=gender or DEFAULT_GENDER,
                looking_for=preferences,
            )
            records.append(user.to_record())

        logger.info("Registered user %s", user.id)
        return user

    def authenticate(self, email: Optional[str], password: Optional[str]) -> User:
        """Return the user for valid credentials; unknown email and wrong password fail alike."""

        if not email or not password:
            raise MissingFields()
        user = self.find_by_email(email)
        if user is None or not verify_password(password, user.pass_hash):
            raise BadCredentials()
        return user

    def find_by_email(self, email: str) -> Optional[User]:
        normalized = normalize_email(email)
        for record in self._store.load(USERS):
            if normalize_email(str(record.get("email", ""))) == normalized:
                return User.from_record(record)
        return None

    def find(self, user_id: str) -> Optional[User]:
        for record in self._store.load(USERS):
            if record.get("id") == user_id:
                return User.from_record(record)
        return None

    def get(self, user_id: str) -> User:
        user = self.find(user_id)
        if user is None:
            raise ProfileNotFound()
        return user

    def exists(self, user_id: str) -> bool:
        return self.find(user_id) is not None

    def list_users(self) -> List[User]:
        return [User.from_record(record) for record in self._store.load(USERS)]

    def update_self(self, user_id: str, fields: Mapping[str, Any]) -> User:
        """Apply the allow-listed subset of ``fields`` to the user's profile."""

        with self._store.transaction(USERS) as records:
            for index, record in enumerate(records):
                if record.get("id") == user_id:
                    break
            else:
                raise ProfileNotFound()

            user = User.from_record(record)
            for key, setter in UPDATABLE_FIELDS.items():
                if key in fields:
                    setter(user, fields[key])
            updated = dict(record)
            updated.update(user.to_record())
            records[index] = updated

        return user


__all__ = ["ProfileRegistry", "UPDATABLE_FIELDS"]
