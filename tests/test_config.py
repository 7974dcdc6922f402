"""Tests for Settings validation and defaults."""

import unittest

from pydantic import ValidationError

from ani3lix.core.config import Settings


class TestDefaults(unittest.TestCase):
    def test_token_and_account_defaults(self) -> None:
        fields = Settings.model_fields
        self.assertEqual(fields["ACCESS_TOKEN_EXPIRE_MINUTES"].default, 15)
        self.assertEqual(fields["REFRESH_TOKEN_EXPIRE_DAYS"].default, 7)
        self.assertEqual(fields["JWT_LEEWAY_SECONDS"].default, 30)
        self.assertEqual(fields["BCRYPT_ROUNDS"].default, 12)
        self.assertEqual(fields["USERNAME_CHANGE_COOLDOWN_DAYS"].default, 7)
        self.assertEqual(fields["JWT_ISSUER"].default, "ani3lix-api")
        self.assertNotEqual(
            fields["JWT_ACCESS_AUDIENCE"].default, fields["JWT_REFRESH_AUDIENCE"].default
        )


class TestValidation(unittest.TestCase):
    """Out-of-range values are rejected at load time."""

    def test_sqlite_and_postgres_urls_accepted(self) -> None:
        self.assertEqual(Settings(DATABASE_URL="sqlite://").DATABASE_URL, "sqlite://")
        url = "postgresql+psycopg2://u:p@db:5432/ani3lix"
        self.assertEqual(Settings(DATABASE_URL=url).DATABASE_URL, url)

    def test_other_database_urls_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            Settings(DATABASE_URL="mysql://u:p@db/ani3lix")

    def test_empty_jwt_secret_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            Settings(JWT_SECRET="   ")

    def test_secret_not_in_repr(self) -> None:
        settings = Settings(JWT_SECRET="super-secret-value")
        self.assertNotIn("super-secret-value", repr(settings))

    def test_ranges(self) -> None:
        bad_values = {
            "ACCESS_TOKEN_EXPIRE_MINUTES": (0, 1441),
            "REFRESH_TOKEN_EXPIRE_DAYS": (0, 91),
            "JWT_LEEWAY_SECONDS": (-1, 301),
            "BCRYPT_ROUNDS": (3, 17),
            "USERNAME_CHANGE_COOLDOWN_DAYS": (-1, 366),
        }
        for field, values in bad_values.items():
            for value in values:
                with self.subTest(field=field, value=value):
                    with self.assertRaises(ValidationError):
                        Settings(**{field: value})

    def test_claim_values_stripped(self) -> None:
        self.assertEqual(Settings(JWT_ISSUER="  ani3lix-api ").JWT_ISSUER, "ani3lix-api")
        with self.assertRaises(ValidationError):
            Settings(JWT_ACCESS_AUDIENCE="")


if __name__ == "__main__":
    unittest.main()
