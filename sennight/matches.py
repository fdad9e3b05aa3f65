"""Like/mutual-match state machine over the ``matches`` collection."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from .errors import MatchNotFound, UserNotFound, ValidationError
from .models import Match, generate_id, pair_key, record_pair
from .profiles import ProfileRegistry
from .store import MATCHES, CollectionStore

logger = logging.getLogger("sennight.matches")


@dataclass(frozen=True)
class LikeResult:
    match_id: str
    mutual: bool


class MatchEngine:
    """Turns one-sided likes into mutual matches.

    There is at most one record per unordered pair of users, so a reciprocal
    like from either side lands on the same match and either participant can
    find it later.
    """

    def __init__(self, store: CollectionStore, profiles: ProfileRegistry) -> None:
        self._store = store
        self._profiles = profiles

    def like(self, liker_id: str, target_id: str) -> LikeResult:
        if not self._profiles.exists(liker_id) or not self._profiles.exists(target_id):
            raise UserNotFound()
        if liker_id == target_id:
            raise ValidationError("Users cannot like themselves", kind="invalid_target")

        wanted = pair_key(liker_id, target_id)
        with self._store.transaction(MATCHES) as records:
            for index, record in enumerate(records):
                if record_pair(record) == wanted:
                    match = Match.from_record(record)
                    break
            else:
                match = Match(id=generate_id(), users=(liker_id, target_id))
                index = len(records)
                records.append(match.to_record())

            already_mutual = match.mutual
            match.likes[liker_id] = True
            mutual = match.has_liked(liker_id) and match.has_liked(target_id)
            updated = dict(records[index])
            updated.update(match.to_record())
            records[index] = updated

        if mutual and not already_mutual:
            logger.info("Users %s and %s are now a mutual match (%s)", liker_id, target_id, match.id)
        return LikeResult(match_id=match.id, mutual=mutual)

    def list_matches_for(self, user_id: str) -> List[Match]:
        return [
            Match.from_record(record)
            for record in self._store.load(MATCHES)
            if user_id in record_pair(record)
        ]

    def get_match_for(self, match_id: str, user_id: str) -> Match:
        """Return the match if it exists and ``user_id`` takes part in it.

        A missing match and a non-participant requester raise the same error.
        """

        for record in self._store.load(MATCHES):
            if record.get("id") == match_id and user_id in record_pair(record):
                return Match.from_record(record)
        raise MatchNotFound()


__all__ = ["LikeResult", "MatchEngine"]
