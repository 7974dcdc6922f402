"""Unit tests for ani3lix.core.security: bcrypt hashing and verification."""

import unittest

from ani3lix.core.security import hash_password, verify_password

ROUNDS = 4


class TestHashPassword(unittest.TestCase):
    """hash_password produces salted bcrypt digests."""

    def test_digest_is_bcrypt_with_requested_cost(self) -> None:
        digest = hash_password("password1", rounds=ROUNDS)
        self.assertTrue(digest.startswith("$2b$04$"))
        self.assertNotIn("password1", digest)

    def test_same_password_hashes_differently(self) -> None:
        self.assertNotEqual(
            hash_password("password1", rounds=ROUNDS),
            hash_password("password1", rounds=ROUNDS),
        )


class TestVerifyPassword(unittest.TestCase):
    """verify_password accepts the right password only and never raises."""

    def test_correct_password_verifies_repeatedly(self) -> None:
        digest = hash_password("correct horse", rounds=ROUNDS)
        for _ in range(3):
            self.assertTrue(verify_password("correct horse", digest))

    def test_wrong_passwords_rejected(self) -> None:
        digest = hash_password("correct horse", rounds=ROUNDS)
        for wrong in ("correct horsE", "correct horse ", "", "battery staple"):
            self.assertFalse(verify_password(wrong, digest))

    def test_unicode_password(self) -> None:
        digest = hash_password("pässwörd-アニメ", rounds=ROUNDS)
        self.assertTrue(verify_password("pässwörd-アニメ", digest))
        self.assertFalse(verify_password("passwort-アニメ", digest))

    def test_malformed_digest_returns_false(self) -> None:
        for digest in ("not-a-hash", "$2b$04$short", "", None):
            self.assertFalse(verify_password("password1", digest))

    def test_long_password_truncated_consistently(self) -> None:
        long_pw = "a" * 100
        digest = hash_password(long_pw, rounds=ROUNDS)
        self.assertTrue(verify_password(long_pw, digest))


if __name__ == "__main__":
    unittest.main()
