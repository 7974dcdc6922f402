"""Tests for the create_user bootstrap script."""

import importlib
import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import patch

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ani3lix.core.security import verify_password
from ani3lix.models import Base
from ani3lix.scripts import create_user
from ani3lix.services.user_store import SqlAlchemyCredentialStore


class TestCreateUser(unittest.TestCase):
    def setUp(self) -> None:
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(engine)
        self.Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        patcher = patch.object(create_user, "SessionLocal", self.Session)
        patcher.start()
        self.addCleanup(patcher.stop)
        log_patcher = patch("logging.basicConfig")
        self.basic_config = log_patcher.start()
        self.addCleanup(log_patcher.stop)

    def run_main(self, *argv: str) -> tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = create_user.main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_creates_site_owner(self) -> None:
        code, out, _ = self.run_main("owner", "owner@example.com", "password1", "site_owner")
        self.assertEqual(code, 0)
        self.basic_config.assert_called_once()
        self.assertIn("site_owner", out)

        store = SqlAlchemyCredentialStore(self.Session())
        user = store.get_by_username("owner")
        self.assertEqual(user.role, "site_owner")
        self.assertTrue(verify_password("password1", user.password_hash))

    def test_default_role_is_user(self) -> None:
        self.assertEqual(self.run_main("alice", "a@example.com", "password1")[0], 0)
        store = SqlAlchemyCredentialStore(self.Session())
        self.assertEqual(store.get_by_username("alice").role, "user")

    def test_rejects_duplicates(self) -> None:
        self.run_main("alice", "a@example.com", "password1")
        code, _, err = self.run_main("alice2", "a@example.com", "password1")
        self.assertEqual(code, 1)
        self.assertIn("email", err)

    def test_rejects_bad_input(self) -> None:
        self.assertEqual(self.run_main("al", "a@example.com", "password1")[0], 1)
        self.assertEqual(self.run_main("alice", "a@example.com", "short")[0], 1)
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                create_user.main(["alice", "a@example.com", "password1", "emperor"])


class TestLoggingSetup(unittest.TestCase):
    def test_import_leaves_root_logging_alone(self) -> None:
        with patch("logging.basicConfig") as basic_config:
            importlib.reload(create_user)
        basic_config.assert_not_called()


if __name__ == "__main__":
    unittest.main()
