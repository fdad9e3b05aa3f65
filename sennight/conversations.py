"""Per-match message history."""
from __future__ import annotations

import logging
from typing import List, Optional

from .errors import MissingText
from .matches import MatchEngine
from .models import Message, current_timestamp, generate_id
from .store import MESSAGES, CollectionStore

logger = logging.getLogger("sennight.conversations")


class ConversationLedger:
    """Append-only messages stored in the ``messages`` collection."""

    def __init__(self, store: CollectionStore, matches: MatchEngine) -> None:
        self._store = store
        self._matches = matches

    def post_message(self, match_id: str, sender_id: str, text: Optional[str]) -> Message:
        if not text:
            raise MissingText()
        self._matches.get_match_for(match_id, sender_id)

        message = Message(
            id=generate_id(),
            match_id=match_id,
            sender_id=sender_id,
            text=str(text),
            created_at=current_timestamp(),
        )
        with self._store.transaction(MESSAGES) as records:
            records.append(message.to_record())

        logger.debug("User %s posted message %s to match %s", sender_id, message.id, match_id)
        return message

    def list_messages(self, match_id: str, requester_id: str) -> List[Message]:
        self._matches.get_match_for(match_id, requester_id)
        return [
            Message.from_record(record)
            for record in self._store.load(MESSAGES)
            if record.get("matchId") == match_id
        ]


__all__ = ["ConversationLedger"]
