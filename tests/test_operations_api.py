"""Integration tests for POST /api/v1/operations and GET /api/v1/health."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

from fastapi.testclient import TestClient

from app.core.security import TokenAuthority
from app.main import create_app
from app.models import Base, Role, User
from support import OTHER_SECRET, make_settings, seed_user

OPERATIONS_URL = "/api/v1/operations"


class OperationsApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.app = create_app(make_settings())
        Base.metadata.create_all(self.app.state.engine)
        self.db = self.app.state.session_factory()
        self.admin = seed_user(self.db, "admin", password="admin-password", role=Role.ADMIN)
        self.member = seed_user(self.db, "member", password="member-password", created_offset_sec=1)
        self.client = TestClient(self.app)

    def tearDown(self) -> None:
        self.client.close()
        self.db.close()
        self.app.state.engine.dispose()

    def _call(self, operation: str, arguments: dict | None = None, token: str | None = None):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        return self.client.post(
            OPERATIONS_URL,
            json={"operation": operation, "arguments": arguments or {}},
            headers=headers,
        )

    def _login(self, email: str, password: str) -> str:
        resp = self._call("loginUser", {"email": email, "password": password})
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()["token"]


class TestLoginFlow(OperationsApiTestCase):
    """loginUser then an admin-only operation with the issued token."""

    def test_login_returns_envelope_with_token(self) -> None:
        resp = self._call("loginUser", {"email": "admin@example.com", "password": "admin-password"})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["id"], self.admin.id)
        self.assertEqual(body["data"]["role"], "Admin")
        self.assertNotIn("password_hash", body["data"])
        self.assertTrue(body["token"])

    def test_bad_credentials(self) -> None:
        resp = self._call("loginUser", {"email": "admin@example.com", "password": "wrong-password"})
        self.assertEqual(resp.status_code, 401)
        self.assertFalse(resp.json()["success"])

    def test_admin_lists_users_with_page_info(self) -> None:
        token = self._login("admin@example.com", "admin-password")
        resp = self._call("getUsers", {"pagination": {"limit": 1, "page": 2}}, token)
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual([u["username"] for u in body["data"]], ["member"])
        self.assertEqual(
            body["pageInfo"], {"totalUsers": 2, "totalPages": 2, "currentPage": 2}
        )

    def test_admin_creates_then_fetches_user(self) -> None:
        token = self._login("admin@example.com", "admin-password")
        created = self._call(
            "createUser",
            {
                "userInput": {
                    "username": "new",
                    "email": "new@example.com",
                    "password": "new-password",
                    "address": "7 Oak Ave",
                }
            },
            token,
        )
        self.assertEqual(created.status_code, 201)
        new_id = created.json()["data"]["id"]

        fetched = self._call("getUser", {"id": new_id}, token)
        self.assertEqual(fetched.status_code, 200)
        self.assertEqual(fetched.json()["data"]["email"], "new@example.com")


class TestAccessControl(OperationsApiTestCase):
    """Boundary rejection for bad tokens; envelope 401/403 for missing or insufficient roles."""

    def test_member_cannot_delete(self) -> None:
        token = self._login("member@example.com", "member-password")
        resp = self._call("deleteUser", {"id": self.admin.id}, token)
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["message"], "Forbidden")
        self.db.expire_all()
        self.assertIsNotNone(self.db.get(User, self.admin.id))

    def test_missing_token_on_admin_operation(self) -> None:
        resp = self._call("getUsers")
        self.assertEqual(resp.status_code, 401)
        self.assertFalse(resp.json()["success"])

    def test_garbage_token_is_rejected_before_operation(self) -> None:
        resp = self._call("loginUser", {"email": "admin@example.com", "password": "admin-password"}, "garbage")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.headers.get("www-authenticate"), "Bearer")
        self.assertNotIn("success", resp.json())

    def test_token_signed_with_other_key(self) -> None:
        forged = TokenAuthority(OTHER_SECRET).issue(self.admin)
        resp = self._call("getUsers", token=forged)
        self.assertEqual(resp.status_code, 401)

    def test_expired_token(self) -> None:
        authority = self.app.state.token_authority
        expired = authority.issue(self.admin, now=datetime.now(UTC) - timedelta(hours=2))
        resp = self._call("getUsers", token=expired)
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["detail"], "Token expired")

    def test_token_for_deleted_account(self) -> None:
        token = self._login("member@example.com", "member-password")
        self.db.delete(self.db.get(User, self.member.id))
        self.db.commit()
        resp = self._call("getUsers", token=token)
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["detail"], "User not found")

    def test_token_for_account_with_unknown_role(self) -> None:
        token = self._login("admin@example.com", "admin-password")
        broken = User(
            id=self.admin.id, username="admin", email="admin@example.com", address="x", role="Superuser"
        )
        with patch("app.api.v1.auth.UserStore") as store_cls:
            store_cls.return_value.get.return_value = broken
            resp = self._call("getUsers", token=token)
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["detail"], "Invalid account")

    def test_unknown_operation(self) -> None:
        resp = self._call("dropAll")
        self.assertEqual(resp.status_code, 400)


class TestHealth(OperationsApiTestCase):
    def test_health_reports_database(self) -> None:
        resp = self.client.get("/api/v1/health/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok", "environment": "dev", "database": "connected"})


if __name__ == "__main__":
    unittest.main()
