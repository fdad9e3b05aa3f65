"""Candidate discovery by declared gender preference."""
from __future__ import annotations

from typing import List

from .errors import ProfileNotFound
from .models import User
from .store import USERS, CollectionStore


class DiscoveryEngine:
    def __init__(self, store: CollectionStore) -> None:
        self._store = store

    def find_candidates(self, requester_id: str) -> List[User]:
        """Return every other user whose gender the requester is looking for.

        Already matched users are still listed; discovery does not consult the
        matches collection.
        """

        users = [User.from_record(record) for record in self._store.load(USERS)]
        requester = next((user for user in users if user.id == requester_id), None)
        if requester is None:
            raise ProfileNotFound()
        return [
            user
            for user in users
            if user.id != requester.id and requester.is_looking_for(user.gender)
        ]


__all__ = ["DiscoveryEngine"]
