"""Tests for password hashing and bearer token handling."""

from __future__ import annotations

import time
import unittest
from datetime import timedelta

from sennight.errors import AuthFailure
from sennight.security import TokenIssuer, hash_password, verify_password


class PasswordHashingTests(unittest.TestCase):
    def test_hash_and_verify(self) -> None:
        hashed = hash_password("supersecurepassword")
        self.assertTrue(hashed.startswith("$pbkdf2-sha256$"))
        self.assertTrue(verify_password("supersecurepassword", hashed))
        self.assertFalse(verify_password("incorrect", hashed))

    def test_malformed_hash_does_not_verify(self) -> None:
        self.assertFalse(verify_password("anything", "not-a-hash"))
        self.assertFalse(verify_password("anything", ""))

    def test_empty_password_cannot_be_hashed(self) -> None:
        with self.assertRaises(ValueError):
            hash_password("")


class TokenIssuerTests(unittest.TestCase):
    def test_issued_token_resolves_to_user(self) -> None:
        issuer = TokenIssuer("test-secret")
        token = issuer.issue("user-123")
        self.assertEqual(issuer.resolve(token), "user-123")

    def test_token_from_other_secret_is_rejected(self) -> None:
        token = TokenIssuer("secret-a").issue("user-123")
        with self.assertRaises(AuthFailure) as ctx:
            TokenIssuer("secret-b").resolve(token)
        self.assertEqual(ctx.exception.kind, "invalid_token")

    def test_garbage_token_is_rejected(self) -> None:
        with self.assertRaises(AuthFailure):
            TokenIssuer("test-secret").resolve("definitely-not-a-token")

    def test_expired_token_is_rejected(self) -> None:
        issuer = TokenIssuer("test-secret", ttl=timedelta(minutes=5))
        stale = issuer._cipher.encrypt_at_time(b"user-123", int(time.time()) - 3600).decode("ascii")
        with self.assertRaises(AuthFailure):
            issuer.resolve(stale)

    def test_secret_is_required(self) -> None:
        with self.assertRaises(ValueError):
            TokenIssuer("")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
