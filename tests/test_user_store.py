"""Tests for UserStore write paths: constraint violations and driver failures roll back."""

import unittest
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from app.core.errors import DuplicateKeyError, InternalError, ValidationError
from app.models import User
from app.services.user_store import UserStore
from support import make_session, seed_user


def _account(role: str = "User", email: str = "kim@example.com") -> User:
    return User(username="kim", email=email, address="1 Road", role=role, password_hash="x")


class TestConstraints(unittest.TestCase):
    """Constraint violations against a real in-memory database."""

    def setUp(self) -> None:
        self.session = make_session()
        self.store = UserStore(self.session)

    def tearDown(self) -> None:
        self.session.close()

    def test_unknown_role_is_rejected(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self.store.insert(_account(role="Superuser"))
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(self.store.count(), 0)

    def test_duplicate_email(self) -> None:
        seed_user(self.session, "kim")
        with self.assertRaises(DuplicateKeyError):
            self.store.insert(_account())
        self.assertEqual(self.store.count(), 1)


class TestDriverFailures(unittest.TestCase):
    """Failures after commit, or while deleting, still surface as InternalError."""

    def setUp(self) -> None:
        self.session = MagicMock()
        self.store = UserStore(self.session)

    def test_refresh_failure_on_insert(self) -> None:
        self.session.refresh.side_effect = OperationalError("SELECT", {}, Exception("gone"))
        with self.assertRaises(InternalError):
            self.store.insert(_account())
        self.session.rollback.assert_called_once()

    def test_refresh_failure_on_save(self) -> None:
        self.session.refresh.side_effect = OperationalError("SELECT", {}, Exception("gone"))
        with self.assertRaises(InternalError):
            self.store.save(_account())
        self.session.rollback.assert_called_once()

    def test_delete_failure(self) -> None:
        self.session.delete.side_effect = OperationalError("DELETE", {}, Exception("gone"))
        with self.assertRaises(InternalError):
            self.store.delete(_account())
        self.session.rollback.assert_called_once()
        self.session.commit.assert_not_called()


if __name__ == "__main__":
    unittest.main()
