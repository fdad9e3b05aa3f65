"""Tests for the like/mutual-match state machine."""

from __future__ import annotations

import itertools
import random
import tempfile
import threading
import unittest
from pathlib import Path

from sennight.errors import MatchNotFound, UserNotFound, ValidationError
from sennight.matches import MatchEngine
from sennight.models import Match
from sennight.profiles import ProfileRegistry
from sennight.store import MATCHES, CollectionStore


class MatchEngineTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tempdir = tempfile.TemporaryDirectory()
        self.store = CollectionStore(Path(self._tempdir.name) / "data")
        self.profiles = ProfileRegistry(self.store)
        self.engine = MatchEngine(self.store, self.profiles)
        self.alice = self.profiles.register("alice@example.com", "pw123", "Alice", "female", ["male"])
        self.bob = self.profiles.register("bob@example.com", "pw456", "Bob", "male", ["female"])

    def tearDown(self) -> None:
        self._tempdir.cleanup()

    def _pair_counts(self) -> dict:
        counts: dict = {}
        for record in self.store.load(MATCHES):
            key = frozenset(record["users"])
            counts[key] = counts.get(key, 0) + 1
        return counts

    def test_reciprocal_like_becomes_mutual_on_same_record(self) -> None:
        first = self.engine.like(self.alice.id, self.bob.id)
        self.assertFalse(first.mutual)

        second = self.engine.like(self.bob.id, self.alice.id)
        self.assertTrue(second.mutual)
        self.assertEqual(first.match_id, second.match_id)

        records = self.store.load(MATCHES)
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0]["likes"], {self.alice.id: True, self.bob.id: True})
        self.assertEqual(sorted(records[0]["users"]), sorted([self.alice.id, self.bob.id]))

    def test_like_order_does_not_matter(self) -> None:
        carol = self.profiles.register("carol@example.com", "pw", "Carol")
        dave = self.profiles.register("dave@example.com", "pw", "Dave")

        forward = self.engine.like(self.alice.id, self.bob.id)
        forward_done = self.engine.like(self.bob.id, self.alice.id)
        backward = self.engine.like(dave.id, carol.id)
        backward_done = self.engine.like(carol.id, dave.id)

        self.assertEqual(forward.match_id, forward_done.match_id)
        self.assertEqual(backward.match_id, backward_done.match_id)
        self.assertEqual((forward.mutual, forward_done.mutual), (False, True))
        self.assertEqual((backward.mutual, backward_done.mutual), (False, True))

    def test_repeated_like_is_idempotent(self) -> None:
        first = self.engine.like(self.alice.id, self.bob.id)
        again = self.engine.like(self.alice.id, self.bob.id)

        self.assertEqual(first, again)
        self.assertFalse(again.mutual)
        self.assertEqual(len(self.store.load(MATCHES)), 1)

        self.engine.like(self.bob.id, self.alice.id)
        stable = self.engine.like(self.alice.id, self.bob.id)
        self.assertTrue(stable.mutual)
        self.assertEqual(stable.match_id, first.match_id)
        self.assertEqual(len(self.store.load(MATCHES)), 1)

    def test_explicit_false_entry_is_not_a_like(self) -> None:
        result = self.engine.like(self.alice.id, self.bob.id)
        records = self.store.load(MATCHES)
        records[0]["likes"][self.bob.id] = False
        self.store.replace(MATCHES, records)

        again = self.engine.like(self.alice.id, self.bob.id)
        self.assertFalse(again.mutual)
        self.assertEqual(self.store.load(MATCHES)[0]["likes"][self.bob.id], False)

        flipped = self.engine.like(self.bob.id, self.alice.id)
        self.assertTrue(flipped.mutual)
        self.assertEqual(flipped.match_id, result.match_id)

    def test_truthy_non_boolean_entries_are_not_likes(self) -> None:
        self.engine.like(self.alice.id, self.bob.id)
        records = self.store.load(MATCHES)
        records[0]["likes"][self.bob.id] = "false"
        self.store.replace(MATCHES, records)

        self.assertFalse(Match.from_record(self.store.load(MATCHES)[0]).has_liked(self.bob.id))
        again = self.engine.like(self.alice.id, self.bob.id)
        self.assertFalse(again.mutual)
        self.assertEqual(self.engine.list_matches_for(self.bob.id)[0].likes[self.bob.id], False)

    def test_like_requires_existing_users(self) -> None:
        with self.assertRaises(UserNotFound):
            self.engine.like(self.alice.id, "missing")
        with self.assertRaises(UserNotFound):
            self.engine.like("missing", self.bob.id)
        self.assertEqual(self.store.load(MATCHES), [])

    def test_self_like_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            self.engine.like(self.alice.id, self.alice.id)
        self.assertEqual(self.store.load(MATCHES), [])

    def test_random_like_sequences_keep_one_record_per_pair(self) -> None:
        users = [self.alice, self.bob] + [
            self.profiles.register(f"user{n}@example.com", "pw", f"User {n}") for n in range(4)
        ]
        pairs = list(itertools.permutations([user.id for user in users], 2))
        rng = random.Random(7)
        liked = set()
        for liker, target in rng.choices(pairs, k=60):
            result = self.engine.like(liker, target)
            liked.add((liker, target))
            self.assertEqual(result.mutual, (target, liker) in liked)

        for count in self._pair_counts().values():
            self.assertEqual(count, 1)

    def test_list_matches_for_either_participant(self) -> None:
        carol = self.profiles.register("carol@example.com", "pw", "Carol")
        with_bob = self.engine.like(self.alice.id, self.bob.id)
        with_carol = self.engine.like(carol.id, self.alice.id)

        alice_matches = {match.id for match in self.engine.list_matches_for(self.alice.id)}
        self.assertEqual(alice_matches, {with_bob.match_id, with_carol.match_id})
        self.assertEqual([m.id for m in self.engine.list_matches_for(self.bob.id)], [with_bob.match_id])
        self.assertEqual([m.id for m in self.engine.list_matches_for(carol.id)], [with_carol.match_id])

    def test_get_match_for_hides_matches_from_non_participants(self) -> None:
        carol = self.profiles.register("carol@example.com", "pw", "Carol")
        result = self.engine.like(self.alice.id, self.bob.id)

        self.assertEqual(self.engine.get_match_for(result.match_id, self.bob.id).id, result.match_id)
        with self.assertRaises(MatchNotFound):
            self.engine.get_match_for(result.match_id, carol.id)
        with self.assertRaises(MatchNotFound):
            self.engine.get_match_for("missing", self.alice.id)

    def test_concurrent_reciprocal_likes_converge(self) -> None:
        users = [self.profiles.register(f"p{n}@example.com", "pw", f"P{n}") for n in range(6)]
        jobs = [(a.id, b.id) for a, b in itertools.permutations(users, 2)]
        barrier = threading.Barrier(len(jobs))
        errors: list = []

        def run(liker: str, target: str) -> None:
            barrier.wait()
            try:
                self.engine.like(liker, target)
            except Exception as exc:  # pragma: no cover - surfaced by the assertion below
                errors.append(exc)

        threads = [threading.Thread(target=run, args=job) for job in jobs]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])
        records = self.store.load(MATCHES)
        self.assertEqual(len(records), len(users) * (len(users) - 1) // 2)
        for record in records:
            self.assertEqual(len(record["likes"]), 2)
            self.assertTrue(all(record["likes"].values()))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
